"""
Tests for the patients storage client
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from patientql.dbmodels import Patients
from patientql.errors import PatientConflictError, PatientNotFoundError, StorageError
from patientql.repository import PatientRepository


def make_patient(patient_id: int = 1, **overrides) -> Patients:
    fields = {"name": "Andrew", "email": "andrew@test.com", "phone": "890123490"}
    fields.update(overrides)
    return Patients(id=patient_id, **fields)


def result_with(scalar=None, scalars=None, rowcount=None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.rowcount = rowcount
    return result


def compiled_params(statement) -> dict:
    return statement.compile(dialect=postgresql.dialect()).params


@pytest.fixture
def repository(mock_database):
    return PatientRepository(mock_database)


class TestGet:
    @pytest.mark.asyncio
    async def test_returns_matching_patient(self, repository, mock_session):
        patient = make_patient(3)
        mock_session.execute.return_value = result_with(scalar=patient)

        assert await repository.get(3) is patient
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, repository, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(PatientNotFoundError) as exc_info:
            await repository.get(42)

        assert exc_info.value.patient_id == 42
        assert exc_info.value.extensions["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_id_is_bound_not_interpolated(self, repository, mock_session):
        mock_session.execute.return_value = result_with(scalar=make_patient(7))

        await repository.get(7)

        statement = mock_session.execute.call_args.args[0]
        assert "7" not in str(statement)
        assert 7 in compiled_params(statement).values()


class TestListAll:
    @pytest.mark.asyncio
    async def test_empty_table_returns_empty_list(self, repository, mock_session):
        mock_session.execute.return_value = result_with(scalars=[])

        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_returns_all_rows_without_limit(self, repository, mock_session):
        rows = [make_patient(i, email=f"p{i}@test.com") for i in range(1, 4)]
        mock_session.execute.return_value = result_with(scalars=rows)

        assert await repository.list_all() == rows

        statement = mock_session.execute.call_args.args[0]
        assert statement._limit_clause is None
        assert "ORDER BY patients.id" in str(statement)


class TestCreate:
    @pytest.mark.asyncio
    async def test_storage_assigns_id(self, repository, mock_session):
        def assign_id():
            mock_session.add.call_args.args[0].id = 11

        mock_session.flush.side_effect = assign_id

        patient = await repository.create(
            name="Andrew", email="andrew@test.com", phone="890123490"
        )

        assert patient.id == 11
        assert (patient.name, patient.email, patient.phone) == (
            "Andrew",
            "andrew@test.com",
            "890123490",
        )
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_email_raises_conflict(self, repository, mock_session):
        mock_session.flush.side_effect = IntegrityError(
            "INSERT INTO patients", {}, Exception("duplicate key value violates unique constraint")
        )

        with pytest.raises(PatientConflictError) as exc_info:
            await repository.create(name="Dup", email="dup@test.com", phone="1")

        assert exc_info.value.email == "dup@test.com"
        assert exc_info.value.extensions == {"code": "CONFLICT"}
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_failure_raises_storage_error(self, repository, mock_session):
        mock_session.flush.side_effect = OperationalError(
            "INSERT INTO patients", {}, Exception("server closed the connection")
        )

        with pytest.raises(StorageError) as exc_info:
            await repository.create(name="A", email="a@test.com", phone="1")

        # Driver details are logged, not returned to clients
        assert "server closed" not in exc_info.value.message


class TestUpdate:
    @pytest.mark.asyncio
    async def test_updates_all_given_fields(self, repository, mock_session):
        updated = make_patient(5, name="New", email="new@test.com", phone="2")
        mock_session.execute.return_value = result_with(scalar=updated)

        patient = await repository.update(5, name="New", email="new@test.com", phone="2")

        assert patient is updated
        params = compiled_params(mock_session.execute.call_args.args[0])
        assert params["name"] == "New"
        assert params["email"] == "new@test.com"
        assert params["phone"] == "2"

    @pytest.mark.asyncio
    async def test_omitted_name_is_preserved(self, repository, mock_session):
        mock_session.execute.return_value = result_with(scalar=make_patient(5))

        await repository.update(5, email="new@test.com", phone="2")

        params = compiled_params(mock_session.execute.call_args.args[0])
        assert "name" not in params
        assert params["email"] == "new@test.com"

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, repository, mock_session):
        mock_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(PatientNotFoundError):
            await repository.update(99, email="x@test.com", phone="1")

    @pytest.mark.asyncio
    async def test_email_taken_raises_conflict(self, repository, mock_session):
        mock_session.execute.side_effect = IntegrityError("UPDATE patients", {}, Exception("dup"))

        with pytest.raises(PatientConflictError):
            await repository.update(1, email="taken@test.com", phone="1")

        mock_session.rollback.assert_awaited_once()


class TestDelete:
    @pytest.mark.asyncio
    async def test_existing_row_reports_deleted(self, repository, mock_session):
        mock_session.execute.return_value = result_with(rowcount=1)

        assert await repository.delete(1) is True

    @pytest.mark.asyncio
    async def test_missing_row_reports_not_deleted(self, repository, mock_session):
        mock_session.execute.return_value = result_with(rowcount=0)

        assert await repository.delete(1) is False

    @pytest.mark.asyncio
    async def test_connection_error_raises_storage_error(self, repository, mock_session):
        mock_session.execute.side_effect = ConnectionRefusedError("Connection refused")

        with pytest.raises(StorageError):
            await repository.delete(1)
