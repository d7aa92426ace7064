"""
Property API endpoints.

Public reads (list, featured, detail by id or slug, by agent) and
agent/admin writes. List filters come straight from the query string,
e.g. /api/properties?propertyType=house&price[lte]=500000&sort=-price
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
import logging

from app.api.deps import Actor, get_optional_actor, require_roles
from app.core.logging import with_context
from app.db.database import get_db
from app.db.models import Role
from app.db.store import DocumentStore
from app.schemas.common import to_document
from app.schemas.property import PropertyCreate, PropertyImagesAdd, PropertyUpdate
from app.services.property_service import PropertyService

router = APIRouter(
    prefix="/api/properties",
    tags=["properties"]
)

logger = logging.getLogger(__name__)

require_staff = require_roles(Role.AGENT.value, Role.ADMIN.value)


def get_property_service(db: DocumentStore = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


@router.get("")
def list_properties(
    request: Request,
    viewer: Optional[Actor] = Depends(get_optional_actor),
    service: PropertyService = Depends(get_property_service),
):
    """
    List properties with filtering, search, sorting and pagination.

    Reserved parameters: select, sort, page, limit (default 12), search.
    Every other parameter filters a field; suffixes [gt], [gte], [lt],
    [lte] and [in] select range / membership operators.
    """
    with_context(logger, viewer_id=viewer.id if viewer else None).debug("Listing properties")
    return service.list_properties(dict(request.query_params))


@router.get("/featured")
def featured_properties(service: PropertyService = Depends(get_property_service)):
    properties = service.get_featured()
    return {"success": True, "count": len(properties), "data": properties}


@router.get("/slug/{slug}")
def get_property_by_slug(slug: str, service: PropertyService = Depends(get_property_service)):
    return {"success": True, "data": service.get_by_slug(slug)}


@router.get("/agent/{agent_id}")
def agent_properties(agent_id: str, service: PropertyService = Depends(get_property_service)):
    properties = service.get_by_agent(agent_id)
    return {"success": True, "count": len(properties), "data": properties}


@router.get("/{property_id}")
def get_property(
    property_id: str,
    viewer: Optional[Actor] = Depends(get_optional_actor),
    service: PropertyService = Depends(get_property_service),
):
    """
    Get a single property.

    Each successful fetch counts one view.

    Raises:
        404: If the property does not exist
    """
    with_context(logger, property_id=property_id, viewer_id=viewer.id if viewer else None).debug("Fetching property")
    return {"success": True, "data": service.get_property(property_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_property(
    property_data: PropertyCreate,
    actor: Actor = Depends(require_staff),
    service: PropertyService = Depends(get_property_service),
):
    """Create a property owned by the calling agent."""
    return {"success": True, "data": service.create_property(to_document(property_data), actor)}


@router.put("/{property_id}")
def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    actor: Actor = Depends(require_staff),
    service: PropertyService = Depends(get_property_service),
):
    """
    Update a property.

    Only the owning agent or an admin may update; a new title regenerates
    the slug.
    """
    return {"success": True, "data": service.update_property(property_id, to_document(property_data), actor)}


@router.post("/{property_id}/images")
def add_property_images(
    property_id: str,
    payload: PropertyImagesAdd,
    actor: Actor = Depends(require_staff),
    service: PropertyService = Depends(get_property_service),
):
    return {"success": True, "data": service.add_images(property_id, payload.images or [], actor)}


@router.delete("/{property_id}")
def delete_property(
    property_id: str,
    actor: Actor = Depends(require_staff),
    service: PropertyService = Depends(get_property_service),
):
    service.delete_property(property_id, actor)
    return {"success": True, "message": "Property deleted successfully", "data": {}}
