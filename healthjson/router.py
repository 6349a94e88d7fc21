# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# STATUS: HTTP - health+json endpoint
# PURPOSE: Method dispatch, content negotiation and response encoding
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Router

FastAPI router serving the aggregated health response at ``/``.

Methods:
    OPTIONS /  - 204, Allow: OPTIONS, GET, HEAD
    GET /      - health+json body
    HEAD /     - same status and headers as GET, no body
    other      - 405

Content negotiation:
    application/health+json is preferred, application/json is accepted.
    The response is always UTF-8; a client whose Accept-Charset excludes
    UTF-8 gets 406, as does one that accepts neither media type.

Response Codes:
    200 - pass or warn
    500 - fail, or the check could not complete
"""

from http import HTTPStatus
from typing import List, Optional, Sequence, Tuple

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic_core import PydanticSerializationError

from healthjson.core.config import ALTERNATIVE_CONTENT_TYPE, CONTENT_TYPE
from healthjson.core.context import Context
from healthjson.core.errors import HealthError
from healthjson.core.logging import get_logger, log_context
from healthjson.executor import HealthCheckExecutor, get_executor
from healthjson.models import Status

logger = get_logger(__name__)

ALLOW = "OPTIONS, GET, HEAD"
CHARSET = "utf-8"

# Every standard method reaches the handler so it can answer 405 itself
ROUTE_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]

health_router = APIRouter(tags=["Health"])


# ============================================================================
# CONTENT NEGOTIATION
# ============================================================================

def parse_accept(value: str) -> List[Tuple[str, float]]:
    """Parse an Accept-style header into (token, quality) pairs."""
    items = []
    for part in value.split(","):
        token, _, params = part.partition(";")
        token = token.strip().lower()
        if not token:
            continue

        quality = 1.0
        for param in params.split(";"):
            key, _, raw = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    quality = float(raw.strip())
                except ValueError:
                    quality = 0.0
        items.append((token, quality))
    return items


def accepts_charset(header: Optional[str], charset: str = CHARSET) -> bool:
    """True if an Accept-Charset header allows ``charset``."""
    if header is None or not header.strip():
        return True

    exact = wildcard = None
    for token, quality in parse_accept(header):
        if token == charset:
            exact = quality
        elif token == "*":
            wildcard = quality

    quality = exact if exact is not None else wildcard
    return quality is not None and quality > 0


def _media_quality(offer: str, ranges: List[Tuple[str, float]]) -> float:
    offer_type, _, offer_subtype = offer.lower().partition("/")
    best_specificity, best_quality = 0, 0.0

    for media_range, quality in ranges:
        range_type, _, range_subtype = media_range.partition("/")
        if media_range == offer.lower():
            specificity = 3
        elif range_type == offer_type and range_subtype == "*":
            specificity = 2
        elif media_range in ("*/*", "*"):
            specificity = 1
        else:
            continue

        if specificity > best_specificity:
            best_specificity, best_quality = specificity, quality

    return best_quality


def negotiate_type(header: Optional[str], offers: Sequence[str]) -> Optional[str]:
    """
    Pick the media type to respond with.

    Offers are in server preference order; the client's quality values
    win, ties go to the earlier offer. No Accept header selects the
    first offer.
    """
    if header is None or not header.strip():
        return offers[0] if offers else None

    ranges = parse_accept(header)
    selected, selected_quality = None, 0.0
    for offer in offers:
        quality = _media_quality(offer, ranges)
        if quality > selected_quality:
            selected, selected_quality = offer, quality
    return selected


def _error(status: HTTPStatus, message: str = "") -> PlainTextResponse:
    return PlainTextResponse(message or status.phrase, status_code=status)


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@health_router.api_route("/", methods=ROUTE_METHODS, include_in_schema=False)
async def health(request: Request) -> Response:
    """
    Serve the aggregated health response.

    Runs every registered checker on GET and HEAD. A fail status is
    reported as HTTP 500 with the full response in the body.
    """
    method = request.method

    if method == "OPTIONS":
        return Response(status_code=HTTPStatus.NO_CONTENT, headers={"Allow": ALLOW})

    if method not in ("GET", "HEAD"):
        response = _error(HTTPStatus.METHOD_NOT_ALLOWED)
        response.headers["Allow"] = ALLOW
        return response

    if not accepts_charset(request.headers.get("accept-charset")):
        return _error(HTTPStatus.NOT_ACCEPTABLE)

    content_type = negotiate_type(
        request.headers.get("accept"),
        (CONTENT_TYPE, ALTERNATIVE_CONTENT_TYPE),
    )
    if content_type is None:
        return _error(HTTPStatus.NOT_ACCEPTABLE)

    remote = request.client.host if request.client else None
    with log_context(remote=remote):
        logger.debug(f"Health check requested: {method} ({content_type})")

    executor: HealthCheckExecutor = getattr(request.app.state, "executor", None) or get_executor()
    parent: Context = getattr(request.app.state, "context", None) or Context.background()
    ctx = parent.with_cancel()

    try:
        result = await executor.check_now(ctx)
    except HealthError as e:
        with log_context(remote=remote):
            logger.warning(f"Health check failed: {e}")
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR, str(e))
    finally:
        ctx.cancel()

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR if result.status == Status.FAIL else HTTPStatus.OK
    headers = {"Content-Encoding": "UTF-8"}

    if method == "HEAD":
        headers["Content-Length"] = "0"
        return Response(status_code=status_code, headers=headers, media_type=content_type)

    try:
        body = result.to_json()
    except PydanticSerializationError as e:
        logger.error(f"Failed to encode health response: {e}")
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR, str(e))

    return Response(
        content=body,
        status_code=status_code,
        headers=headers,
        media_type=content_type,
    )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "health_router",
    "accepts_charset",
    "negotiate_type",
    "parse_accept",
]
