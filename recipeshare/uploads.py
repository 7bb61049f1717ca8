"""
Recipe image uploads: one image per request, size and type checked, stored
under a unique name. `upload_guard` removes the stored file if anything after
the upload fails, so failed requests leave no orphaned files.
"""
import os
import secrets
import time
from contextlib import contextmanager
from typing import NamedTuple, Optional

from fastapi import UploadFile

from recipeshare import config
from recipeshare.errors import UpstreamFailure, ValidationFailure
from recipeshare.logger import get_logger

logger = get_logger("uploads")

CHUNK_SIZE = 64 * 1024


class StoredImage(NamedTuple):
    public_path: str
    file_path: str


def unique_filename(original_name: str) -> str:
    ext = os.path.splitext(original_name or "")[1].lower()
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}"
    return f"recipe-{unique_suffix}{ext}"


def save_image(upload: UploadFile) -> StoredImage:
    if upload.content_type not in config.ALLOWED_IMAGE_TYPES:
        raise ValidationFailure("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.")

    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    filename = unique_filename(upload.filename)
    file_path = os.path.join(config.UPLOAD_DIR, filename)

    written = 0
    try:
        with open(file_path, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > config.MAX_UPLOAD_BYTES:
                    raise ValidationFailure(
                        f"File too large. Maximum size is {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
                    )
                out.write(chunk)
    except ValidationFailure:
        delete_file(file_path)
        raise
    except OSError as e:
        delete_file(file_path)
        logger.error(f"Error storing upload {upload.filename!r}: {e}")
        raise UpstreamFailure("Error saving uploaded image")

    logger.info(f"Stored upload {filename} ({written} bytes)")
    return StoredImage(public_path=config.UPLOAD_URL_PREFIX + filename, file_path=file_path)


def delete_file(file_path: str) -> None:
    try:
        os.remove(file_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Error deleting file {file_path}: {e}")


def delete_image(public_path: Optional[str]) -> None:
    """Remove a previously stored recipe image; the default image is never touched."""
    if not public_path or public_path == config.DEFAULT_RECIPE_IMAGE:
        return
    if not public_path.startswith(config.UPLOAD_URL_PREFIX):
        return
    filename = os.path.basename(public_path)
    delete_file(os.path.join(config.UPLOAD_DIR, filename))


@contextmanager
def upload_guard(upload: Optional[UploadFile]):
    """Store `upload` (if any) and yield it; delete it again if the block raises."""
    stored = save_image(upload) if upload is not None else None
    try:
        yield stored
    except BaseException:
        if stored is not None:
            logger.info(f"Removing upload {stored.file_path} after failed request")
            delete_file(stored.file_path)
        raise
