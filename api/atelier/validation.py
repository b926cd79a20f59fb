"""URL and inline image validation utilities."""

from __future__ import annotations

import base64
import binascii

from pydantic import HttpUrl, TypeAdapter, ValidationError

DATA_URL_PREFIX = "data:image/"

_http_url = TypeAdapter(HttpUrl)


def is_image_data_url(value: str) -> bool:
    """Check that a string is a base64 `data:image/...` URL."""
    if not value.startswith(DATA_URL_PREFIX):
        return False
    header, sep, _ = value.partition(",")
    return bool(sep) and header.endswith(";base64")


def validate_image_url(value: str) -> str:
    """Accept hosted http(s) image URLs and inline data URLs produced by the upload step."""
    if is_image_data_url(value):
        return value
    try:
        return str(_http_url.validate_python(value))
    except ValidationError:
        raise ValueError("Must be a valid URL")


def data_url_size(value: str) -> int:
    """
    Return the decoded byte size of an inline image.

    Hosted URLs report 0: their size was enforced by the upload collaborator.

    Raises:
        ValueError: if the data URL payload is not valid base64
    """
    if not is_image_data_url(value):
        return 0
    payload = value.partition(",")[2]
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image data is not valid base64") from e
