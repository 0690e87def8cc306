"""
validator.py

Checks the image payload before any remote call is made.
"""

import base64
import binascii
import re
from typing import Union

from bula_service.errors import InvalidArgumentError

# data:image/jpeg;base64,....
DATA_URL_PREFIX = re.compile(r"^data:[\w/+.-]+;base64,", re.IGNORECASE)

MISSING_IMAGE_MESSAGE = "Os dados da imagem (Base64) são obrigatórios."
MALFORMED_IMAGE_MESSAGE = "Os dados da imagem não estão em Base64 válido."


def validate_image_payload(image_data: Union[str, bytes, None]) -> bytes:
    """
    Validate the image sent by the caller and return the raw bytes.

    Rules:
    - None, empty or whitespace-only payloads are rejected
    - bytes are taken as the raw image
    - strings are base64 (an optional data URL prefix is removed)

    Raises:
    - InvalidArgumentError for any missing or malformed payload
    """

    if image_data is None:
        raise InvalidArgumentError(MISSING_IMAGE_MESSAGE)

    if isinstance(image_data, (bytes, bytearray)):
        if not bytes(image_data).strip():
            raise InvalidArgumentError(MISSING_IMAGE_MESSAGE)
        return bytes(image_data)

    if not isinstance(image_data, str) or not image_data.strip():
        raise InvalidArgumentError(MISSING_IMAGE_MESSAGE)

    # Remove data URL prefix and any line breaks added by the client
    encoded = DATA_URL_PREFIX.sub("", image_data.strip())
    encoded = "".join(encoded.split())

    if not encoded:
        raise InvalidArgumentError(MISSING_IMAGE_MESSAGE)

    try:
        image_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidArgumentError(MALFORMED_IMAGE_MESSAGE)

    if not image_bytes:
        raise InvalidArgumentError(MISSING_IMAGE_MESSAGE)

    return image_bytes
