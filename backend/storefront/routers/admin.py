"""Admin-only views of form submissions."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload

from storefront.database import get_db
from storefront.dependencies import require_admin
from storefront.models import Lead, QuoteRequest
from storefront.schemas import Lead as LeadSchema, QuoteRequest as QuoteRequestSchema

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/leads", response_model=list[LeadSchema])
def list_leads(db: Session = Depends(get_db)):
    """All contact form leads, newest first."""
    return db.query(Lead).order_by(Lead.created_at.desc(), Lead.id).all()


@router.get("/quotes", response_model=list[QuoteRequestSchema])
def list_quotes(db: Session = Depends(get_db)):
    """All quote requests with their items, newest first."""
    return (
        db.query(QuoteRequest)
        .options(selectinload(QuoteRequest.items))
        .order_by(QuoteRequest.created_at.desc(), QuoteRequest.id)
        .all()
    )
