"""
classifier.py

Maps a completed response onto exactly one outcome of the error taxonomy.

Classification is a pure function of the envelope and the body that was read
from it: calling it twice on the same content gives the same answer, and it
never raises. Malformed or empty bodies only degrade the message.
"""

import json
from typing import Optional, Tuple

from .errors import AcceptedError, APIError, ErrorResponse, RateLimitError
from .rate import HEADER_RATE_REMAINING
from .response import Response

HEADER_REQUEST_ID = "x-request-id"


def _error_details(body: bytes) -> Tuple[str, str, str]:
    """
    Extract ``(message, id, request_id)`` from an error body.

    The API's error shape is ``{"id": ..., "message": ..., "request_id": ...}``.
    Anything else falls back to the raw body text as the message.
    """
    if not body:
        return "", "", ""
    text = body.decode("utf-8", errors="replace")
    try:
        document = json.loads(text)
    except ValueError:
        return text, "", ""
    if not isinstance(document, dict) or not isinstance(document.get("message"), str):
        return text, "", ""

    def _str(key: str) -> str:
        value = document.get(key)
        return value if isinstance(value, str) else ""

    return document["message"], _str("id"), _str("request_id")


def check_response(response: Response, body: bytes = b"") -> Optional[APIError]:
    """
    Classify a response.

    :param response: envelope of the completed exchange
    :param body: the full response body, already read
    :return: None for a 2xx other than 202, otherwise the matching APIError
    """
    status = response.status_code
    message, error_id, request_id = _error_details(body)

    if status == 202:
        return AcceptedError(response, message)
    if 200 <= status <= 299:
        return None

    remaining = response.headers.get(HEADER_RATE_REMAINING)
    if status == 403 and remaining is not None and remaining.strip() == "0":
        return RateLimitError(response, message)

    return ErrorResponse(
        response,
        message,
        error_id=error_id,
        request_id=request_id or response.headers.get(HEADER_REQUEST_ID, ""),
    )
