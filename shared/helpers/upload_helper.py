import logging
import os
import shutil
import uuid
from typing import List

from fastapi import UploadFile

from shared.core.config import settings
from shared.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def check_extension(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    allowed = [e.lower() for e in settings.ALLOWED_UPLOAD_EXTENSIONS]
    if ext not in allowed:
        raise ValidationError(
            f"Unsupported file type '{ext or filename}'",
            [{"path": "file", "msg": f"Allowed: {', '.join(allowed)}"}]
        )
    return ext


def save_upload(file: UploadFile, folder: str = "") -> str:
    """Store an uploaded file under UPLOAD_DIR and return its public URL."""
    ext = check_extension(file.filename)

    target_dir = os.path.join(settings.UPLOAD_DIR, folder) if folder else settings.UPLOAD_DIR
    os.makedirs(target_dir, exist_ok=True)

    stored_name = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(target_dir, stored_name), "wb") as out:
        shutil.copyfileobj(file.file, out)

    url_path = f"{folder}/{stored_name}" if folder else stored_name
    logger.info("Stored upload %s as %s", file.filename, url_path)
    return f"{settings.UPLOAD_BASE_URL.rstrip('/')}/{url_path}"


def save_uploads(files: List[UploadFile], folder: str = "") -> List[str]:
    # reject the batch before anything is written
    for file in files:
        check_extension(file.filename)
    return [save_upload(file, folder) for file in files]
