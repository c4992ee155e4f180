"""
Middleware for request context and logging
"""

import json
import re
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import clear_request_context, get_logger, set_request_context

logger = get_logger(__name__)

GRAPHQL_PATHS = {"/patient", "/graphql"}
REQUEST_ID_HEADER = "X-Request-ID"

# Keys that carry GraphQL payloads (which may contain patient data)
_REDACTED_PARAMS = {"query", "variables", "extensions"}

_OPERATION_RE = re.compile(r"^\s*(query|mutation|subscription)\b\s*(\w+)?")
_FIELD_RE = re.compile(r"\{\s*(\w+)")


def describe_graphql_operation(query: str | None) -> str | None:
    """Summarize a GraphQL document for logs without logging its arguments.

    Returns ``"<kind>:<name>"`` for named operations, ``"<kind>:<first field>"``
    for anonymous ones and ``"__introspection"`` for schema queries.
    """
    if not isinstance(query, str) or not query.strip():
        return None
    if "__schema" in query or "IntrospectionQuery" in query:
        return "__introspection"

    match = _OPERATION_RE.match(query)
    kind = match.group(1) if match else "query"
    if match and match.group(2):
        return f"{kind}:{match.group(2)}"

    field = _FIELD_RE.search(query)
    if field:
        return f"{kind}:{field.group(1)}"
    return f"{kind}:unnamed_operation"


def sanitize_query_params(params: dict[str, Any]) -> dict[str, Any]:
    """Replace GraphQL payload parameters with a redaction marker."""
    return {
        key: "[REDACTED]" if key in _REDACTED_PARAMS else value for key, value in params.items()
    }


async def extract_graphql_operation(request: Request) -> str | None:
    if request.url.path not in GRAPHQL_PATHS:
        return None

    query = request.query_params.get("query")
    if query is None and request.method == "POST" and request.url.path == "/graphql":
        try:
            body = await request.body()
            data = json.loads(body) if body else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        if isinstance(data, dict):
            operation_name = data.get("operationName")
            if isinstance(operation_name, str) and operation_name:
                return operation_name
            query = data.get("query")

    return describe_graphql_operation(query)


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Middleware to set logging context for each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(request.headers.get(REQUEST_ID_HEADER))

        try:
            sanitized_params = None
            if request.query_params:
                sanitized_params = sanitize_query_params(dict(request.query_params))

            graphql_operation = await extract_graphql_operation(request)

            log_data = {
                "method": request.method,
                "path": request.url.path,
                "query_params": sanitized_params,
                "user_agent": request.headers.get("user-agent"),
                "remote_addr": request.client.host if request.client else None,
            }
            if graphql_operation:
                log_data["graphql_operation"] = graphql_operation

            logger.info("Request started", **log_data)

            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            logger.info(
                "Request completed",
                status_code=response.status_code,
                method=request.method,
                path=request.url.path,
                graphql_operation=graphql_operation,
            )

            return response

        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
            )
            raise

        finally:
            clear_request_context()
