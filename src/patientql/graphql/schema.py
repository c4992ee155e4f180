"""
Main GraphQL schema definition using Strawberry
"""

from typing import Any

import strawberry
from fastapi import Request
from graphql import GraphQLError
from graphql import validate_schema as gql_validate_schema
from strawberry.extensions import MaskErrors
from strawberry.fastapi import GraphQLRouter
from strawberry.types import ExecutionContext

from ..config import settings
from ..errors import PatientError
from ..logging import get_logger
from .context import build_context
from .mutations.root import Mutation
from .queries.root import Query

logger = get_logger(__name__)


class PatientSchema(strawberry.Schema):
    """Schema that logs domain errors as expected outcomes, not failures."""

    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, PatientError):
                logger.info(
                    "GraphQL request rejected",
                    code=original.code,
                    error=error.message,
                    path=error.path,
                )
            else:
                logger.error(
                    "GraphQL execution error",
                    error=error.message,
                    path=error.path,
                    exc_info=original,
                )


UNEXPECTED_ERROR_MESSAGE = "Unexpected error"


def should_mask_error(error: GraphQLError) -> bool:
    """Hide messages of unexpected exceptions; domain and request errors pass through."""
    original = error.original_error
    # Syntax and validation errors have no original exception
    if original is None:
        return False
    return not isinstance(original, PatientError)


# Create the GraphQL schema
schema = PatientSchema(
    query=Query,
    mutation=Mutation,
    extensions=[
        MaskErrors(should_mask_error=should_mask_error, error_message=UNEXPECTED_ERROR_MESSAGE)
    ],
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Checks the schema structure and runs an introspection query so a broken
    type definition stops the server from starting.

    Raises:
        Exception: If the schema is invalid or introspection fails
    """
    try:
        graphql_schema = schema._schema

        errors = gql_validate_schema(graphql_schema)
        if errors:
            error_messages = [str(e) for e in errors]
            raise Exception(f"GraphQL schema validation failed: {'; '.join(error_messages)}")

        from graphql import get_introspection_query, graphql_sync

        result = graphql_sync(graphql_schema, get_introspection_query())
        if result.errors:
            error_messages = [str(e) for e in result.errors]
            raise Exception(f"GraphQL introspection failed: {'; '.join(error_messages)}")

        logger.info("GraphQL schema validation successful")

    except Exception as e:
        logger.error("GraphQL schema validation failed", error=str(e))
        raise


def create_graphql_router() -> GraphQLRouter[dict[str, Any], None]:
    """Create the standard GraphQL router (JSON body, GraphiQL) for FastAPI."""

    async def get_context(request: Request) -> dict[str, Any]:
        return build_context(request)

    return GraphQLRouter(
        schema,
        path="/graphql",
        graphql_ide="graphiql" if settings.graphiql else None,
        context_getter=get_context,
    )
