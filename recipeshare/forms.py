"""
Decoding of recipe submissions.

Multipart forms carry structured recipe fields as JSON text. They are decoded
here, before validation; text that does not decode becomes an empty list or
object and validation reports what is missing.
"""
import json
from typing import Any, Optional, Tuple

from fastapi import Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from recipeshare.errors import ValidationFailure, field_errors
from recipeshare.logger import get_logger

logger = get_logger("forms")

LIST_FIELDS = ("ingredients", "instructions", "tags")
OBJECT_FIELDS = ("dietary_info", "nutrition_info")


def decode_json_field(value: Any, fallback):
    """Decode `value` if it is JSON text of the fallback's shape; otherwise return a fresh fallback."""
    if not isinstance(value, str):
        return value
    try:
        decoded = json.loads(value)
    except ValueError:
        logger.debug(f"Could not decode form field value {value[:40]!r}")
        return type(fallback)()
    if not isinstance(decoded, type(fallback)):
        return type(fallback)()
    return decoded


def decode_recipe_fields(data: dict) -> dict:
    decoded = dict(data)
    for field in LIST_FIELDS:
        if field in decoded:
            decoded[field] = decode_json_field(decoded[field], [])
    for field in OBJECT_FIELDS:
        if field in decoded:
            decoded[field] = decode_json_field(decoded[field], {})
    return decoded


async def read_recipe_submission(request: Request) -> Tuple[dict, Optional[UploadFile]]:
    """
    Read a recipe create/update body, JSON or multipart.

    Returns the decoded field dict and the uploaded image (multipart only).
    """
    content_type = request.headers.get("content-type", "")
    image = None
    if content_type.startswith("multipart/form-data") or content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        data = {}
        for key, value in form.multi_items():
            if isinstance(value, StarletteUploadFile):
                if key == "image" and value.filename:
                    image = value
                continue
            data[key] = value
    else:
        try:
            data = await request.json()
        except ValueError:
            raise ValidationFailure("Request body must be valid JSON")
        if not isinstance(data, dict):
            raise ValidationFailure("Request body must be a JSON object")
    return decode_recipe_fields(data), image


def validate_submission(model, data: dict):
    """Validate decoded submission data against a pydantic model, reporting per-field errors."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationFailure(errors=field_errors(e.errors()))
