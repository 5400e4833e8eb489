"""Encoding of cached top-track responses.

Responses are stored as JSON wrapped in base64 so they survive any store
that treats values as opaque text.
"""

import base64

from toptrack.models import AggregatedResponse


def encode_response(response: AggregatedResponse) -> str:
    """Serialize a response to its cached text form."""
    return base64.b64encode(response.model_dump_json().encode("utf-8")).decode("ascii")


def decode_response(value: str) -> AggregatedResponse:
    """Deserialize a cached value.

    Raises:
        ValueError: If the value is not valid base64 or not a valid response
            (``binascii.Error`` and ``pydantic.ValidationError`` are both ValueErrors)
    """
    raw = base64.b64decode(value, validate=True)
    return AggregatedResponse.model_validate_json(raw)
