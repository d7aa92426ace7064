"""
Upload service - stores multipart uploads on local disk.

Files land in a folder chosen by the form field they arrived in and get a
collision-free name: <field>-<epoch ms>-<random>.<ext>. The folders are
served read-only under /uploads.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import random
import time

from fastapi import UploadFile

from app.core.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

FIELD_FOLDERS = {
    "avatar": "avatars",
    "propertyImages": "properties",
    "floorPlan": "floorplans",
    "document": "documents",
}
MISC_FOLDER = "misc"
ALLOWED_FOLDERS = tuple(FIELD_FOLDERS.values()) + (MISC_FOLDER,)

IMAGE_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "webp"}
DOCUMENT_EXTENSIONS = {"pdf", "doc", "docx"}
FILE_TYPE_ERROR = "Only images (jpeg, jpg, png, gif, webp) and documents (pdf, doc, docx) are allowed"

CHUNK_SIZE = 1024 * 1024


def folder_for(field: str) -> str:
    return FIELD_FOLDERS.get(field, MISC_FOLDER)


def is_allowed(filename: str, content_type: Optional[str]) -> bool:
    """Images need an image/* content type; documents are judged by extension."""
    ext = Path(filename or "").suffix.lower().lstrip(".")
    if ext in IMAGE_EXTENSIONS and (content_type or "").startswith("image/"):
        return True
    return ext in DOCUMENT_EXTENSIONS


def unique_filename(field: str, original_name: str) -> str:
    suffix = Path(original_name or "").suffix
    return f"{field}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


class UploadService:
    """
    Saves and deletes uploaded files under one root directory.

    Args:
        root: the uploads directory
        max_file_size: per-file ceiling in bytes
    """

    def __init__(self, root: Union[str, Path], max_file_size: int):
        self.root = Path(root)
        self.max_file_size = max_file_size

    def ensure_folders(self) -> None:
        for folder in ALLOWED_FOLDERS:
            (self.root / folder).mkdir(parents=True, exist_ok=True)

    def save_groups(self, groups: Dict[str, List[UploadFile]]) -> Dict[str, List[Dict[str, object]]]:
        """
        Check and store files grouped by form field.

        Every file of every group is type-checked before anything is written;
        if one turns out too large, all files already written by this call
        are removed.

        Raises:
            BadRequestError: disallowed type or file too large
        """
        for uploads in groups.values():
            for upload in uploads:
                if not is_allowed(upload.filename, upload.content_type):
                    logger.info(f"Rejected upload '{upload.filename}' ({upload.content_type})")
                    raise BadRequestError(FILE_TYPE_ERROR)

        saved: Dict[str, List[Dict[str, object]]] = {field: [] for field in groups}
        try:
            for field, uploads in groups.items():
                for upload in uploads:
                    saved[field].append(self._write(field, upload))
        except BadRequestError:
            for infos in saved.values():
                for info in infos:
                    (self.root / str(info["folder"]) / str(info["filename"])).unlink(missing_ok=True)
            raise
        return saved

    def save_files(self, field: str, uploads: List[UploadFile]) -> List[Dict[str, object]]:
        return self.save_groups({field: uploads})[field]

    def save_file(self, field: str, upload: UploadFile) -> Dict[str, object]:
        return self.save_files(field, [upload])[0]

    def _write(self, field: str, upload: UploadFile) -> Dict[str, object]:
        folder = folder_for(field)
        filename = unique_filename(field, upload.filename)
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / filename

        size = 0
        with target.open("wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_file_size:
                    break
                out.write(chunk)

        if size > self.max_file_size:
            target.unlink(missing_ok=True)
            limit_mb = self.max_file_size / (1024 * 1024)
            logger.info(f"Rejected upload '{upload.filename}': larger than {limit_mb:g} MB")
            raise BadRequestError(f"File too large. Maximum size is {limit_mb:g} MB")

        logger.info(f"Stored upload {folder}/{filename} ({size} bytes)")
        return {
            "folder": folder,
            "filename": filename,
            "path": f"/uploads/{folder}/{filename}",
            "originalName": upload.filename,
            "size": size,
        }

    def delete_file(self, folder: str, filename: str) -> None:
        """
        Remove a stored file.

        Raises:
            BadRequestError: unknown folder or a name that leaves the folder
            NotFoundError: no such file
        """
        if folder not in ALLOWED_FOLDERS:
            raise BadRequestError("Invalid folder")
        if not filename or Path(filename).name != filename or filename.startswith("."):
            raise BadRequestError("Invalid filename")

        target = self.root / folder / filename
        if not target.is_file():
            raise NotFoundError("File not found")
        target.unlink()
        logger.info(f"Deleted upload {folder}/{filename}")
