import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.dependencies import Services, get_services, limit_submissions, require_user
from storefront.errors import INTERNAL_ERROR, missing_fields_error
from storefront.models import Product, QuoteItem, QuoteRequest
from storefront.schemas import CreatedResponse, QuoteCreate
from storefront.services.auth import Identity
from storefront.services.notifications import render_quote_email
from storefront.services.sanitizer import sanitize_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])

FREE_TEXT_FIELDS = ["full_name", "company_name", "additional_notes"]
REQUIRED_TEXT_FIELDS = ["full_name", "company_name"]


@router.post(
    "",
    status_code=201,
    response_model=CreatedResponse,
    dependencies=[Depends(limit_submissions)],
)
def create_quote(
    payload: QuoteCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_user),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """
    Create a quote request.

    Every item id must exist in the catalogue, otherwise nothing is written.
    Item names are always taken from the catalogue, never from the client.
    """
    data = sanitize_fields(payload.model_dump(exclude={"items"}), FREE_TEXT_FIELDS)
    empty = [field for field in REQUIRED_TEXT_FIELDS if not data[field]]
    if empty:
        raise missing_fields_error(empty)
    data["additional_notes"] = data["additional_notes"] or None

    # Resolve all requested products in one query
    requested_ids = {item.id for item in payload.items}
    names = dict(
        db.query(Product.id, Product.name).filter(Product.id.in_(requested_ids)).all()
    )
    if len(names) != len(requested_ids):
        missing = sorted(requested_ids - names.keys())
        logger.info(f"Quote rejected, unknown product ids: {missing}")
        raise HTTPException(
            status_code=400,
            detail="One or more products in your quote no longer exist",
        )

    quote = QuoteRequest(
        **data,
        items=[
            QuoteItem(product_id=item.id, product_name=names[item.id], quantity=item.quantity)
            for item in payload.items
        ],
    )
    try:
        db.add(quote)
        db.commit()
        db.refresh(quote)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error submitting quote: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    logger.info(f"Quote {quote.id} submitted by {identity.email or identity.user_id} ({len(quote.items)} items)")
    subject, html = render_quote_email(quote)
    services.notifications.submit(background_tasks, subject, html)

    return CreatedResponse(message="Quote request submitted successfully", id=quote.id)
