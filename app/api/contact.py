"""
Contact form endpoints.

Submitting is public; reading and triaging submissions is admin-only.
"""

from fastapi import APIRouter, Depends, Request, status
import logging

from app.api.deps import require_roles
from app.db.database import get_db
from app.db.models import Role
from app.db.store import DocumentStore
from app.schemas.common import to_document
from app.schemas.contact import ContactCreate, ContactUpdate
from app.services.contact_service import ContactService

router = APIRouter(prefix="/api/contact", tags=["contact"])

logger = logging.getLogger(__name__)

admin_only = [Depends(require_roles(Role.ADMIN.value))]


def get_contact_service(db: DocumentStore = Depends(get_db)) -> ContactService:
    return ContactService(db)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_contact(
    contact_data: ContactCreate,
    request: Request,
    service: ContactService = Depends(get_contact_service),
):
    """
    Store a contact form submission.

    The referring page, user agent and client IP are recorded as source
    metadata. A notification email goes out when SMTP is configured.
    """
    data = to_document(contact_data)
    source = {
        "page": data.pop("page", None) or request.headers.get("referer"),
        "userAgent": request.headers.get("user-agent"),
        "ip": _client_ip(request),
    }
    contact = service.submit(data, source)
    return {"success": True, "message": "Contact form submitted successfully", "data": contact}


@router.get("", dependencies=admin_only)
def list_contacts(request: Request, service: ContactService = Depends(get_contact_service)):
    result = service.list_submissions(dict(request.query_params))
    return {"success": True, **result}


@router.get("/{contact_id}", dependencies=admin_only)
def get_contact(contact_id: str, service: ContactService = Depends(get_contact_service)):
    return {"success": True, "data": service.get_submission(contact_id)}


@router.put("/{contact_id}", dependencies=admin_only)
def update_contact(
    contact_id: str,
    contact_data: ContactUpdate,
    service: ContactService = Depends(get_contact_service),
):
    return {"success": True, "data": service.update_submission(contact_id, to_document(contact_data))}


@router.delete("/{contact_id}", dependencies=admin_only)
def delete_contact(contact_id: str, service: ContactService = Depends(get_contact_service)):
    service.delete_submission(contact_id)
    return {"success": True, "message": "Contact submission deleted"}
