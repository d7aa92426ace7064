"""
Appointment service - scheduling for viewings, meetings and closings.

Agents see and change only the appointments they booked (the agent
field); admins see everything. Days are computed in UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional
import logging

from app.api.deps import Actor
from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.logging import with_context
from app.db.models import APPOINTMENT_DEFAULTS, AppointmentStatus, serialize, values, with_defaults
from app.db.store import APPOINTMENTS, Document, DocumentStore, utcnow
from app.services.query_builder import parse_date
from app.services.validation import ensure_valid, validate_appointment

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 10
BY_SCHEDULE = [("date", 1), ("startTime", 1), ("_id", 1)]


def appointment_scope(actor: Actor) -> Optional[Document]:
    return None if actor.is_admin else {"agent": actor.id}


def _start_of_day(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def _and(*clauses: Optional[Document]) -> Document:
    present = [c for c in clauses if c]
    if not present:
        return {}
    return present[0] if len(present) == 1 else {"$and": present}


class AppointmentService:
    """Service class for appointment operations."""

    def __init__(self, db: DocumentStore):
        self.db = db
        self.appointments = db.collection(APPOINTMENTS)

    def list_appointments(self, params: Mapping[str, str], actor: Actor) -> List[Document]:
        """
        Appointments in the actor's scope, ordered by date then start time.

        Supported filters:
            startDate + endDate: inclusive date range (both required)
            status, type: exact match
        """
        conditions: Document = {}
        start, end = params.get("startDate"), params.get("endDate")
        if start and end:
            conditions["date"] = {"$gte": parse_date(start), "$lte": parse_date(end)}
        for name in ("status", "type"):
            if params.get(name):
                conditions[name] = params[name]

        docs = self.appointments.find(_and(appointment_scope(actor), conditions), sort=BY_SCHEDULE)
        return [serialize(doc) for doc in docs]

    def get_upcoming(self, actor: Actor) -> List[Document]:
        """Scheduled appointments from the start of today on, at most 10."""
        conditions = {
            "date": {"$gte": _start_of_day(utcnow())},
            "status": AppointmentStatus.SCHEDULED.value,
        }
        docs = self.appointments.find(
            _and(appointment_scope(actor), conditions),
            sort=BY_SCHEDULE,
            limit=UPCOMING_LIMIT,
        )
        return [serialize(doc) for doc in docs]

    def get_today(self, actor: Actor) -> List[Document]:
        today = _start_of_day(utcnow())
        conditions = {"date": {"$gte": today, "$lt": today + timedelta(days=1)}}
        docs = self.appointments.find(
            _and(appointment_scope(actor), conditions),
            sort=[("startTime", 1), ("_id", 1)],
        )
        return [serialize(doc) for doc in docs]

    def get_appointment(self, appointment_id: str, actor: Actor) -> Document:
        appointment = self._get_or_404(appointment_id)
        self._check_owner(appointment, actor, "view")
        return serialize(appointment)

    def create_appointment(self, data: Dict[str, Any], actor: Actor) -> Document:
        """
        Book an appointment for the calling agent.

        Raises:
            ValidationFailed: missing title/date/startTime, bad enum values,
                recurrence without frequency, virtual without a link
        """
        doc = with_defaults(APPOINTMENT_DEFAULTS, data)
        doc["agent"] = actor.id
        ensure_valid(validate_appointment(doc))

        appointment = self.appointments.insert_one(doc)
        logger.info(f"Appointment {appointment['_id']} booked by {actor.id} for {doc['date']:%Y-%m-%d}")
        return serialize(appointment)

    def update_appointment(self, appointment_id: str, changes: Dict[str, Any], actor: Actor) -> Document:
        log = with_context(logger, appointment_id=appointment_id, actor_id=actor.id)
        appointment = self._get_or_404(appointment_id)
        self._check_owner(appointment, actor, "update")

        ensure_valid(validate_appointment({**appointment, **changes}))
        if not changes:
            return serialize(appointment)

        updated = self.appointments.update_one({"_id": appointment_id}, {"$set": changes})
        log.info(f"Appointment updated ({', '.join(sorted(changes))})")
        return serialize(updated)

    def update_status(self, appointment_id: str, status: Optional[str], actor: Actor) -> Document:
        if status not in values(AppointmentStatus):
            raise BadRequestError("Invalid status")
        appointment = self._get_or_404(appointment_id)
        self._check_owner(appointment, actor, "update")

        updated = self.appointments.update_one({"_id": appointment_id}, {"$set": {"status": status}})
        logger.info(f"Appointment {appointment_id} status {appointment.get('status')} -> {status}")
        return serialize(updated)

    def delete_appointment(self, appointment_id: str, actor: Actor) -> None:
        appointment = self._get_or_404(appointment_id)
        self._check_owner(appointment, actor, "delete")
        self.appointments.delete_one({"_id": appointment_id})
        logger.info(f"Appointment {appointment_id} deleted by {actor.id}")

    def _get_or_404(self, appointment_id: str) -> Document:
        appointment = self.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def _check_owner(appointment: Document, actor: Actor, action: str) -> None:
        if actor.is_admin or appointment.get("agent") == actor.id:
            return
        logger.warning(f"Actor {actor.id} may not {action} appointment {appointment['_id']}")
        raise ForbiddenError(f"Not authorized to {action} this appointment")
