from __future__ import annotations

import strawberry

from ...errors import PatientNotFoundError
from ...logging import get_logger
from ..context import get_repository
from ..types.patient import DeletePatientPayload, Patient

logger = get_logger(__name__)


# Query resolvers
async def resolve_patient_by_id(info: strawberry.Info, id: int | None) -> Patient:
    """
    Resolve a single patient.

    A missing id is treated like an unknown one and reported as NOT_FOUND.
    """
    if id is None:
        raise PatientNotFoundError(None)

    repository = get_repository(info)
    patient = await repository.get(id)
    return Patient.from_model(patient)


async def resolve_patients(info: strawberry.Info) -> list[Patient]:
    repository = get_repository(info)
    patients = await repository.list_all()
    return [Patient.from_model(patient) for patient in patients]


# Mutation resolvers
async def create_patient(info: strawberry.Info, name: str, email: str, phone: str) -> Patient:
    repository = get_repository(info)
    patient = await repository.create(name=name, email=email, phone=phone)
    return Patient.from_model(patient)


async def update_patient(
    info: strawberry.Info,
    id: int,
    email: str,
    phone: str,
    name: str | None = None,
) -> Patient:
    """
    Update a patient in place.

    email and phone always overwrite the stored values; name is only
    replaced when provided, otherwise the stored name is kept.
    """
    repository = get_repository(info)
    patient = await repository.update(id, email=email, phone=phone, name=name)
    return Patient.from_model(patient)


async def delete_patient(info: strawberry.Info, id: int) -> DeletePatientPayload:
    repository = get_repository(info)
    deleted = await repository.delete(id)
    if not deleted:
        logger.info("Delete requested for unknown patient", patient_id=id)
    return DeletePatientPayload(id=id, deleted=deleted)
