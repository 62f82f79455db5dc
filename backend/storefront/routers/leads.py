import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.dependencies import Services, get_services, limit_submissions
from storefront.errors import INTERNAL_ERROR, missing_fields_error
from storefront.models import Lead
from storefront.schemas import CreatedResponse, LeadCreate
from storefront.services.notifications import render_lead_email
from storefront.services.sanitizer import sanitize_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])

FREE_TEXT_FIELDS = ["first_name", "last_name", "subject", "message"]


@router.post(
    "",
    status_code=201,
    response_model=CreatedResponse,
    dependencies=[Depends(limit_submissions)],
)
def create_lead(
    payload: LeadCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    """Store a contact form submission and notify the shop inbox."""
    data = sanitize_fields(payload.model_dump(), FREE_TEXT_FIELDS)
    empty = [field for field in FREE_TEXT_FIELDS if not data[field]]
    if empty:
        raise missing_fields_error(empty)

    lead = Lead(**data)
    try:
        db.add(lead)
        db.commit()
        db.refresh(lead)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Error submitting lead: {e}")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    subject, html = render_lead_email(lead)
    services.notifications.submit(background_tasks, subject, html)

    return CreatedResponse(message="Lead submitted successfully", id=lead.id)
