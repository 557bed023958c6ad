"""
Ticket submission endpoints.

- POST /suggest: suggest a company, or file a correction / feedback ticket
- POST /verify: flag a startup for manual review

Required fields are validated strictly (400), unlike read-side filters.
"Already in the database" and "already suggested" are answered with 200 and
an exists / duplicate flag rather than an error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from startup_tracker.core.database import get_db
from startup_tracker.core.errors import DatabaseError, TrackerError, ValidationError
from startup_tracker.core.models import FeedbackTicket, Startup, StartupSuggestion

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tickets"])

TICKET_TYPES = ("suggest", "correction", "feedback")
MIN_NAME_LENGTH = 2


# =============================================================================
# Request Models
# =============================================================================


class SuggestRequest(BaseModel):
    """Suggestion or ticket body. name/subject and notes/details are aliases."""

    type: str = Field("suggest", description="suggest, correction or feedback")
    name: Optional[str] = None
    subject: Optional[str] = None
    notes: Optional[str] = None
    details: Optional[str] = None
    website: Optional[str] = None
    startup_name: Optional[str] = None
    startup_id: Optional[int] = None


class VerifyRequest(BaseModel):
    """Review flag for an existing startup."""

    startup_id: Optional[int] = None
    startup_name: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# =============================================================================
# Endpoints
# =============================================================================


def submit_suggestion(db: Session, body: SuggestRequest) -> dict:
    name = _clean(body.name or body.subject)
    if not name or len(name) < MIN_NAME_LENGTH:
        raise ValidationError("Company name is required", field="name")

    existing = (
        db.query(Startup.id, Startup.name)
        .filter(func.lower(Startup.name) == name.lower())
        .first()
    )
    if existing:
        return {"exists": True, "message": f"{existing.name} is already in our database!"}

    pending = (
        db.query(StartupSuggestion.id)
        .filter(
            func.lower(StartupSuggestion.name) == name.lower(),
            StartupSuggestion.status == "pending",
        )
        .first()
    )
    if pending:
        return {
            "duplicate": True,
            "message": "This company has already been suggested. We'll review it soon!",
        }

    db.add(StartupSuggestion(
        name=name,
        website=_clean(body.website),
        notes=_clean(body.notes or body.details),
    ))
    db.commit()
    logger.info(f"New startup suggestion: {name}")
    return {"success": True, "message": "Thank you! We'll review and add this company soon."}


def submit_ticket(db: Session, body: SuggestRequest) -> dict:
    subject = _clean(body.subject or body.name)
    details = _clean(body.details or body.notes)
    if not subject and not details:
        raise ValidationError("Subject or details is required", field="subject")

    ticket = FeedbackTicket(
        type=body.type,
        startup_name=_clean(body.startup_name),
        startup_id=body.startup_id,
        subject=subject,
        details=details,
        website=_clean(body.website),
        status="pending",
    )
    db.add(ticket)
    db.commit()
    logger.info(f"New {body.type} ticket for startup_id={body.startup_id}")
    return {"success": True, "message": "Thanks for the feedback! We'll take a look."}


@router.post("/suggest")
def suggest(body: SuggestRequest, db: Session = Depends(get_db)):
    """
    Submit a suggestion, correction or feedback ticket.

    Suggestions for a company already tracked, or already pending review,
    are not stored again.
    """
    if body.type not in TICKET_TYPES:
        raise ValidationError(f"type must be one of {', '.join(TICKET_TYPES)}", field="type")

    try:
        if body.type == "suggest":
            return submit_suggestion(db, body)
        return submit_ticket(db, body)
    except TrackerError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Suggest error: {e}")
        raise DatabaseError("Failed to submit suggestion")


@router.post("/verify")
def verify(body: VerifyRequest, db: Session = Depends(get_db)):
    """Flag a startup for manual review of all its fields."""
    if not body.startup_id:
        raise ValidationError("Missing startup_id", field="startup_id")

    try:
        db.add(FeedbackTicket(
            type="correction",
            startup_name=_clean(body.startup_name),
            startup_id=body.startup_id,
            subject="User flagged for review",
            details="User reported this company may have incorrect info. Please verify and fix all fields.",
            status="pending",
        ))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Verify error: {e}")
        raise DatabaseError("Failed to submit")

    return {
        "success": True,
        "message": "Flagged for review! We'll verify and update this company's info.",
    }
