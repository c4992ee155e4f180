"""
Patient GraphQL type definitions
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry

if TYPE_CHECKING:
    from ...dbmodels import Patients


@strawberry.type(description="This is a patient type.")
class Patient:
    """Patient type for GraphQL API."""

    id: int
    name: str
    email: str
    phone: str

    @classmethod
    def from_model(cls, patient: Patients) -> Patient:
        return cls(
            id=patient.id,
            name=patient.name,
            email=patient.email,
            phone=patient.phone,
        )


@strawberry.type(description="Acknowledgement returned by the delete mutation.")
class DeletePatientPayload:
    id: int
    deleted: bool = strawberry.field(
        description="True when a patient was removed, false when no patient had this id."
    )
