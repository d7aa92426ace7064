"""
Appointment API endpoints.

All routes require a bearer token; agents only see and change the
appointments they booked.
"""

from fastapi import APIRouter, Depends, Request, status
import logging

from app.api.deps import Actor, get_current_actor
from app.db.database import get_db
from app.db.store import DocumentStore
from app.schemas.appointment import AppointmentCreate, AppointmentStatusUpdate, AppointmentUpdate
from app.schemas.common import to_document
from app.services.appointment_service import AppointmentService

router = APIRouter(prefix="/api/appointments", tags=["appointments"])

logger = logging.getLogger(__name__)


def get_appointment_service(db: DocumentStore = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


def _listing(appointments):
    return {"success": True, "count": len(appointments), "data": appointments}


@router.get("")
def list_appointments(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """
    List appointments.

    Query parameters:
        startDate, endDate: ISO dates, both needed for a range filter
        status, type: exact match
    """
    return _listing(service.list_appointments(dict(request.query_params), actor))


@router.get("/upcoming")
def upcoming_appointments(
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _listing(service.get_upcoming(actor))


@router.get("/today")
def todays_appointments(
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _listing(service.get_today(actor))


@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return {"success": True, "data": service.get_appointment(appointment_id, actor)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return {"success": True, "data": service.create_appointment(to_document(appointment_data), actor)}


@router.put("/{appointment_id}")
def update_appointment(
    appointment_id: str,
    appointment_data: AppointmentUpdate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    updated = service.update_appointment(appointment_id, to_document(appointment_data), actor)
    return {"success": True, "data": updated}


@router.put("/{appointment_id}/status")
def update_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return {"success": True, "data": service.update_status(appointment_id, payload.status, actor)}


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id, actor)
    return {"success": True, "message": "Appointment deleted successfully"}
