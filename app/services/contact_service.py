"""
Contact service - public contact form submissions and their triage.
"""

from math import ceil
from typing import Any, Dict, Mapping, Optional
import logging

from app.core.errors import NotFoundError
from app.db.models import CONTACT_DEFAULTS, ContactStatus, serialize, with_defaults
from app.db.store import CONTACTS, Document, DocumentStore, utcnow
from app.services.notification_service import NotificationService
from app.services.query_builder import parse_positive_int
from app.services.validation import ensure_valid, validate_contact

logger = logging.getLogger(__name__)

CONTACTS_PAGE_SIZE = 50


class ContactService:
    """Service class for contact submissions."""

    def __init__(self, db: DocumentStore, notifier: Optional[NotificationService] = None):
        self.db = db
        self.contacts = db.collection(CONTACTS)
        self.notifier = notifier or NotificationService()

    def submit(self, data: Dict[str, Any], source: Dict[str, Any]) -> Document:
        """
        Store a contact form submission and notify the operator.

        Args:
            data: form fields (wire names)
            source: request metadata (page, userAgent, ip)

        Returns:
            The stored submission
        """
        doc = with_defaults(CONTACT_DEFAULTS, data)
        doc["status"] = ContactStatus.NEW.value
        doc["source"] = {k: v for k, v in source.items() if v}
        ensure_valid(validate_contact(doc))

        contact = self.contacts.insert_one(doc)
        logger.info(f"Contact submission {contact['_id']} received ({contact.get('subject')})")

        # The submission is stored whether or not the email goes out
        try:
            self.notifier.notify_contact_submission(contact)
        except Exception as e:
            logger.error(f"Contact notification for {contact['_id']} failed: {e}")

        return serialize(contact)

    def list_submissions(self, params: Mapping[str, str]) -> Dict[str, Any]:
        """
        Newest submissions first, optionally filtered by status.

        Returns:
            {"data": [...], "pagination": {"total", "page", "pages"}}
        """
        filter: Document = {}
        if params.get("status"):
            filter["status"] = params["status"]
        page = parse_positive_int(params.get("page"), 1)
        limit = parse_positive_int(params.get("limit"), CONTACTS_PAGE_SIZE)

        total = self.contacts.count(filter)
        docs = self.contacts.find(
            filter,
            sort=[("createdAt", -1), ("_id", -1)],
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "data": [serialize(doc) for doc in docs],
            "pagination": {"total": total, "page": page, "pages": ceil(total / limit)},
        }

    def get_submission(self, contact_id: str) -> Document:
        return serialize(self._get_or_404(contact_id))

    def update_submission(self, contact_id: str, changes: Dict[str, Any]) -> Document:
        """
        Change status and/or notes.

        Moving to "replied" stamps repliedAt, to "archived" stamps archivedAt.
        """
        contact = self._get_or_404(contact_id)
        ensure_valid(validate_contact({**contact, **changes}))

        updates = dict(changes)
        status = changes.get("status")
        if status == ContactStatus.REPLIED.value:
            updates["repliedAt"] = utcnow()
        elif status == ContactStatus.ARCHIVED.value:
            updates["archivedAt"] = utcnow()

        if not updates:
            return serialize(contact)
        updated = self.contacts.update_one({"_id": contact_id}, {"$set": updates})
        logger.info(f"Contact submission {contact_id} updated ({', '.join(sorted(updates))})")
        return serialize(updated)

    def delete_submission(self, contact_id: str) -> None:
        self._get_or_404(contact_id)
        self.contacts.delete_one({"_id": contact_id})
        logger.info(f"Contact submission {contact_id} deleted")

    def _get_or_404(self, contact_id: str) -> Document:
        contact = self.contacts.get(contact_id)
        if not contact:
            raise NotFoundError("Contact submission not found")
        return contact
