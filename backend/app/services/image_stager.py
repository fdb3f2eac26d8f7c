"""
Turns the caller's image reference into a URL the provider can fetch.

Remote URLs pass straight through. Base64 data URLs are decoded and
uploaded once to the configured staging backend.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Protocol

from app.core.errors import DataUrlDecodeError
from app.core.logger import logger

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<b64>.+)$", re.DOTALL | re.IGNORECASE)
MIME_PATTERN = re.compile(r"^\w+/(?P<subtype>[\w.+-]+)$")
FALLBACK_EXTENSION = "png"


class ImageUploader(Protocol):
    def upload(self, data: bytes, content_type: str, filename: str) -> str:
        ...


@dataclass
class DecodedImage:
    data: bytes
    content_type: str
    extension: str

    @property
    def filename(self) -> str:
        return f"upload.{self.extension}"


def is_data_url(value: str) -> bool:
    return isinstance(value, str) and value[:5].lower() == "data:"


def extension_for(content_type: str) -> str:
    """image/jpeg -> jpeg, image/svg+xml -> svg; falls back to png."""
    match = MIME_PATTERN.match(content_type.strip().lower())
    if not match:
        return FALLBACK_EXTENSION
    subtype = match.group("subtype").split("+", 1)[0]
    return subtype or FALLBACK_EXTENSION


def decode_data_url(value: str) -> DecodedImage:
    """
    Decode a `data:<mime>;base64,<payload>` string.

    Raises:
        DataUrlDecodeError: If the string does not match the pattern or
            the payload is not valid base64
    """
    match = DATA_URL_PATTERN.match(value)
    if not match:
        raise DataUrlDecodeError("Invalid data URL")

    payload = "".join(match.group("b64").split())
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DataUrlDecodeError(f"Invalid data URL: base64 payload could not be decoded ({e})") from e

    if not data:
        raise DataUrlDecodeError("Invalid data URL: empty payload")

    content_type = match.group("mime").strip()
    return DecodedImage(data=data, content_type=content_type, extension=extension_for(content_type))


class ImageStager:
    def __init__(self, uploader: ImageUploader):
        self.uploader = uploader

    def stage(self, image_reference: str) -> str:
        """Return a fetchable URL for `image_reference`."""
        if not is_data_url(image_reference):
            return image_reference

        image = decode_data_url(image_reference)
        logger.info(f"Staging inline image ({image.content_type}, {len(image.data)} bytes)")
        url = self.uploader.upload(image.data, image.content_type, image.filename)
        logger.info(f"Staged inline image at {url}")
        return url
