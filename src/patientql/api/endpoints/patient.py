"""
/patient endpoint: GraphQL over URL query parameters
"""

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...graphql.context import build_context
from ...graphql.schema import schema
from ...logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# The document always travels in the URL, whatever the method.
PATIENT_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"data": None, "errors": [{"message": message}]},
    )


def _parse_variables(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    variables = json.loads(raw)
    if not isinstance(variables, dict):
        raise ValueError("variables must be a JSON object")
    return variables


@router.api_route("/patient", methods=PATIENT_METHODS)
async def execute_patient_query(request: Request) -> JSONResponse:
    """Execute the GraphQL document in the ``query`` URL parameter."""
    params = request.query_params

    query = params.get("query")
    if not query:
        logger.info("Rejected request without GraphQL query", method=request.method)
        return _error_response("No GraphQL query found in the request")

    try:
        variables = _parse_variables(params.get("variables"))
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        logger.info("Rejected request with malformed variables", error=str(e))
        return _error_response("Unable to parse request variables")

    result = await schema.execute(
        query,
        variable_values=variables,
        context_value=build_context(request),
        operation_name=params.get("operationName") or None,
    )

    payload: dict[str, Any] = {"data": result.data}
    if result.errors:
        payload["errors"] = [error.formatted for error in result.errors]

    return JSONResponse(content=payload)
