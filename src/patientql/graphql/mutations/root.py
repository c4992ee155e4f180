"""
Root GraphQL mutation definitions
"""

import strawberry

from ..types.patient import DeletePatientPayload, Patient


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    @strawberry.mutation(description="Creates a new patient")
    async def create(
        self, info: strawberry.Info, name: str, email: str, phone: str
    ) -> Patient | None:
        from ..resolvers.patient import create_patient

        return await create_patient(info, name, email, phone)

    @strawberry.mutation(description="Updates an existing patient.")
    async def update(
        self,
        info: strawberry.Info,
        id: int,
        email: str,
        phone: str,
        name: str | None = None,
    ) -> Patient | None:
        from ..resolvers.patient import update_patient

        return await update_patient(info, id, email, phone, name)

    @strawberry.mutation(description="Delete a patient by id")
    async def delete(self, info: strawberry.Info, id: int) -> DeletePatientPayload:
        from ..resolvers.patient import delete_patient

        return await delete_patient(info, id)
