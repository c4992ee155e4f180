"""
Per-request GraphQL context
"""

from typing import Any

import strawberry
from fastapi import Request

from ..repository import PatientRepository


def build_context(request: Request) -> dict[str, Any]:
    """Build the resolver context from the application's storage client."""
    return {
        "request": request,
        "repository": request.app.state.repository,
    }


def get_repository(info: strawberry.Info) -> PatientRepository:
    repository = info.context.get("repository")
    if repository is None:
        raise RuntimeError("Storage client missing from GraphQL context")
    return repository
