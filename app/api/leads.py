"""
Lead API endpoints.

This module handles all HTTP endpoints for lead management.
Two routes are public (website inquiry and "list my property" form);
everything else requires a bearer token and is scoped to the caller's
leads unless the caller is an admin.
"""

from fastapi import APIRouter, Depends, Request, status
import logging

from app.api.deps import Actor, get_current_actor, require_roles
from app.core.logging import with_context
from app.db.database import get_db
from app.db.models import Role
from app.db.store import DocumentStore
from app.schemas.common import to_document
from app.schemas.lead import (
    LeadActivityCreate,
    LeadCreate,
    LeadStatusUpdate,
    LeadUpdate,
    ListingSubmission,
    PublicLeadCreate,
)
from app.services.lead_service import LeadService

# Create a router - this groups related endpoints
router = APIRouter(
    prefix="/api/leads",  # All endpoints start with /api/leads
    tags=["leads"]        # For documentation grouping
)

logger = logging.getLogger(__name__)


def get_lead_service(db: DocumentStore = Depends(get_db)) -> LeadService:
    return LeadService(db)


# ===== Public routes (no auth) =====

@router.post("/public", status_code=status.HTTP_201_CREATED)
def create_public_lead(lead_data: PublicLeadCreate, service: LeadService = Depends(get_lead_service)):
    """
    Create a lead from the website contact form.

    Returns:
        The new lead's id and a thank-you message
    """
    logger.info(f"Public inquiry from {lead_data.email}")
    lead = service.create_public_lead(to_document(lead_data))
    return {
        "success": True,
        "message": "Thank you for your inquiry! We will contact you soon.",
        "data": {"id": lead["_id"]},
    }


@router.post("/listing", status_code=status.HTTP_201_CREATED)
def submit_listing(submission: ListingSubmission, service: LeadService = Depends(get_lead_service)):
    """
    Submit a property for listing (sell/rent form).

    Creates a pending property and a lead referencing it.

    Returns:
        {"propertyId": ...}
    """
    logger.info(f"Listing submission from {submission.email}")
    prop = service.submit_listing(submission.model_dump(by_alias=True))
    return {
        "success": True,
        "message": "Your listing has been submitted for review!",
        "data": {"propertyId": prop["_id"]},
    }


# ===== Protected routes =====

@router.get("")
def list_leads(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    """
    List leads visible to the caller.

    Agents see leads assigned to them or created by them; the scope is
    always AND-ed with the filters and ?search= from the query string.
    """
    return service.list_leads(dict(request.query_params), actor)


@router.get("/stats")
def lead_stats(actor: Actor = Depends(get_current_actor), service: LeadService = Depends(get_lead_service)):
    return {"success": True, "data": service.get_stats(actor)}


@router.get("/{lead_id}")
def get_lead(
    lead_id: str,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    """
    Get a single lead by ID.

    Raises:
        404: If lead not found
        403: If the lead is outside the caller's scope
    """
    log = with_context(logger, lead_id=lead_id)
    log.debug("Fetching lead")
    return {"success": True, "data": service.get_lead(lead_id, actor)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_lead(
    lead_data: LeadCreate,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    """Create a lead, assigned to the caller unless assignedTo is given."""
    return {"success": True, "data": service.create_lead(to_document(lead_data), actor)}


@router.api_route("/{lead_id}", methods=["PUT", "PATCH"])
def update_lead(
    lead_id: str,
    lead_data: LeadUpdate,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    """Partial update; a status change is recorded in the activity log."""
    return {"success": True, "data": service.update_lead(lead_id, to_document(lead_data), actor)}


@router.patch("/{lead_id}/status")
def update_lead_status(
    lead_id: str,
    payload: LeadStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    result = service.update_status(lead_id, payload.status, actor)
    return {"success": True, "data": result["lead"], "message": result["message"]}


@router.post("/{lead_id}/activity")
def add_lead_activity(
    lead_id: str,
    payload: LeadActivityCreate,
    actor: Actor = Depends(get_current_actor),
    service: LeadService = Depends(get_lead_service),
):
    lead = service.add_activity(lead_id, payload.activity_type, payload.description, actor)
    return {"success": True, "data": lead}


@router.delete("/{lead_id}", dependencies=[Depends(require_roles(Role.ADMIN.value))])
def delete_lead(lead_id: str, service: LeadService = Depends(get_lead_service)):
    service.delete_lead(lead_id)
    return {"success": True, "message": "Lead deleted successfully"}
