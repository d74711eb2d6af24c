"""Helpers shared by the serverless function handlers."""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel

from vesta.services.session import get_correlation_id as get_request_correlation_id
from vesta.services.session import get_current_account_id
from vesta.utils.errors import InvalidOperationError, ListingValidationError, TenantResolutionError
from vesta.utils.logging import correlation_context, get_structured_logger, tenant_context
from vesta.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

ERROR_STATUS_CODES = (
    (TenantResolutionError, 401),
    (InvalidOperationError, 400),
    (ListingValidationError, 422),
)


def _to_jsonable(payload: Any) -> Any:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    if isinstance(payload, dict):
        return {key: _to_jsonable(value) for key, value in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_to_jsonable(value) for value in payload]
    return payload


def json_response(status_code: int, payload: Any, correlation_id: Optional[str] = None) -> dict:
    headers = {"Content-Type": "application/json"}
    if correlation_id:
        headers[LoggingConfig.LOG_CORRELATION_ID_HEADER] = correlation_id
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(_to_jsonable(payload), ensure_ascii=False),
    }


def query_params(request: dict) -> dict:
    return request.get("query", {}) or {}


def json_body(request: dict) -> Any:
    """Decoded request body; raises InvalidOperationError on malformed JSON."""
    body = request.get("body")
    if body is None or isinstance(body, (dict, list)):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidOperationError(f"Malformed JSON body: {e}") from e


async def _serve(request: dict, handle: Callable[[dict, int], Awaitable[Any]]) -> Any:
    account_id = get_current_account_id(request.get("headers"))
    with tenant_context(account_id):
        return await handle(request, account_id)


def run_handler(
    request: dict,
    operation: str,
    handle: Callable[[dict, int], Awaitable[Any]]
) -> dict:
    """
    Resolve the tenant and run an async handler body for it.

    The body runs inside a correlation context and receives the account id.
    Known errors map to 4xx responses; anything else is logged and returned
    as a generic 500.
    """
    headers = request.get("headers", {}) or {}
    incoming_id = get_request_correlation_id(headers, LoggingConfig.LOG_CORRELATION_ID_HEADER)

    with correlation_context(incoming_id) as correlation_id:
        try:
            payload = asyncio.run(_serve(request, handle))
            return json_response(200, payload, correlation_id)
        except Exception as e:
            for error_type, status_code in ERROR_STATUS_CODES:
                if isinstance(e, error_type):
                    logger.warning(
                        f"Rejected {operation} request",
                        operation=operation,
                        status_code=status_code,
                        error=str(e)
                    )
                    return json_response(status_code, {"error": str(e)}, correlation_id)

            logger.error(
                f"Error handling {operation} request",
                exc_info=True,
                operation=operation,
                error=str(e)
            )
            return json_response(500, {"error": "Internal server error"}, correlation_id)
