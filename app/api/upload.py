"""
File upload endpoints.

Multipart uploads are stored by UploadService under the configured
upload directory; the returned url points at the /uploads static mount.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
import logging

from app.api.deps import get_current_actor
from app.core.errors import BadRequestError
from app.services.upload_service import UploadService

router = APIRouter(
    prefix="/api/upload",
    tags=["upload"],
    dependencies=[Depends(get_current_actor)],
)

logger = logging.getLogger(__name__)

MAX_PROPERTY_IMAGES = 20
MAX_FLOOR_PLANS = 5
MAX_DOCUMENTS = 10


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.uploads


def _with_url(request: Request, info: dict) -> dict:
    base = str(request.base_url).rstrip("/")
    return {**info, "url": f"{base}{info['path']}"}


def _check_count(files: List[UploadFile], limit: int, field: str) -> None:
    if len(files) > limit:
        raise BadRequestError(f"Too many files for {field} (maximum {limit})")


@router.post("/avatar")
def upload_avatar(
    request: Request,
    avatar: Optional[UploadFile] = File(None),
    service: UploadService = Depends(get_upload_service),
):
    if avatar is None:
        raise BadRequestError("Please upload a file")
    return {"success": True, "data": _with_url(request, service.save_file("avatar", avatar))}


@router.post("/property-images")
def upload_property_images(
    request: Request,
    property_images: Optional[List[UploadFile]] = File(None, alias="propertyImages"),
    service: UploadService = Depends(get_upload_service),
):
    """Upload up to 20 images in the propertyImages field."""
    if not property_images:
        raise BadRequestError("Please upload at least one image")
    _check_count(property_images, MAX_PROPERTY_IMAGES, "propertyImages")
    files = [_with_url(request, info) for info in service.save_files("propertyImages", property_images)]
    return {"success": True, "count": len(files), "data": files}


@router.post("/property-files")
def upload_property_files(
    request: Request,
    property_images: Optional[List[UploadFile]] = File(None, alias="propertyImages"),
    floor_plan: Optional[List[UploadFile]] = File(None, alias="floorPlan"),
    document: Optional[List[UploadFile]] = File(None),
    service: UploadService = Depends(get_upload_service),
):
    """Images, floor plans and documents of a property in one request."""
    groups = {
        "propertyImages": (property_images or [], MAX_PROPERTY_IMAGES),
        "floorPlan": (floor_plan or [], MAX_FLOOR_PLANS),
        "document": (document or [], MAX_DOCUMENTS),
    }
    for field, (files, limit) in groups.items():
        _check_count(files, limit, field)

    saved = service.save_groups({field: files for field, (files, _) in groups.items()})
    result = {field: [_with_url(request, info) for info in infos] for field, infos in saved.items()}
    return {"success": True, "data": result}


@router.post("/document")
def upload_document(
    request: Request,
    document: Optional[UploadFile] = File(None),
    service: UploadService = Depends(get_upload_service),
):
    if document is None:
        raise BadRequestError("Please upload a file")
    return {"success": True, "data": _with_url(request, service.save_file("document", document))}


@router.delete("/{folder}/{filename}")
def delete_upload(folder: str, filename: str, service: UploadService = Depends(get_upload_service)):
    service.delete_file(folder, filename)
    return {"success": True, "message": "File deleted successfully"}
