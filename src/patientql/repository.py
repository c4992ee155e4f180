"""Storage client for the ``patients`` table.

Each method issues exactly one statement in its own session and translates
driver failures into :mod:`patientql.errors` types.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .dbmodels import Patients
from .errors import PatientConflictError, PatientNotFoundError, StorageError
from .logging import get_logger

if TYPE_CHECKING:
    from .database.connection import Database

logger = get_logger(__name__)


class PatientRepository:
    def __init__(self, database: Database) -> None:
        self.database = database

    @asynccontextmanager
    async def _session(
        self, operation: str, email: str | None = None
    ) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.database.session() as session:
                yield session
        except IntegrityError as e:
            logger.info("Patient email conflict", operation=operation, email=email)
            raise PatientConflictError(email or "") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Storage operation failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageError() from e

    async def get(self, patient_id: int) -> Patients:
        async with self._session("get") as session:
            stmt = select(Patients).where(Patients.id == patient_id)
            result = await session.execute(stmt)
            patient = result.scalar_one_or_none()

        if patient is None:
            logger.info("Patient not found", patient_id=patient_id)
            raise PatientNotFoundError(patient_id)
        return patient

    async def list_all(self) -> list[Patients]:
        """Return every patient ordered by id. There is no implicit limit."""
        async with self._session("list_all") as session:
            result = await session.execute(select(Patients).order_by(Patients.id))
            return list(result.scalars().all())

    async def create(self, *, name: str, email: str, phone: str) -> Patients:
        async with self._session("create", email=email) as session:
            patient = Patients(name=name, email=email, phone=phone)
            session.add(patient)
            await session.flush()

        logger.info("Patient created", patient_id=patient.id)
        return patient

    async def update(
        self, patient_id: int, *, email: str, phone: str, name: str | None = None
    ) -> Patients:
        """Overwrite email and phone; overwrite name only when one is given."""
        values: dict[str, str] = {"email": email, "phone": phone}
        if name is not None:
            values["name"] = name

        async with self._session("update", email=email) as session:
            stmt = (
                update(Patients)
                .where(Patients.id == patient_id)
                .values(**values)
                .returning(Patients)
            )
            result = await session.execute(stmt)
            patient = result.scalar_one_or_none()

        if patient is None:
            logger.info("Patient not found for update", patient_id=patient_id)
            raise PatientNotFoundError(patient_id)

        logger.info("Patient updated", patient_id=patient_id, fields=sorted(values))
        return patient

    async def delete(self, patient_id: int) -> bool:
        """Delete a patient. Returns False when no row had that id."""
        async with self._session("delete") as session:
            stmt = delete(Patients).where(Patients.id == patient_id)
            result = await session.execute(stmt)
            deleted = result.rowcount > 0

        logger.info("Patient delete processed", patient_id=patient_id, deleted=deleted)
        return deleted
