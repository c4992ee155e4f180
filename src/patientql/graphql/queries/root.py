"""
Root GraphQL query definitions
"""

import strawberry

from ..types.patient import Patient


@strawberry.type
class Query:
    """Root GraphQL query type."""

    @strawberry.field(name="getPatient", description="Get a patient by id")
    async def get_patient(self, info: strawberry.Info, id: int | None = None) -> Patient | None:
        from ..resolvers.patient import resolve_patient_by_id

        return await resolve_patient_by_id(info, id)

    @strawberry.field(name="getPatients", description="Gets a patient list")
    async def get_patients(self, info: strawberry.Info) -> list[Patient]:
        from ..resolvers.patient import resolve_patients

        return await resolve_patients(info)
