"""
Testes de gestão de membros: cadastro, atualização, remoção e importação.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from library_desk.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from library_desk.core.security import verify_password
from library_desk.models.member import Member
from library_desk.schemas.member import MemberCreate, MemberUpdate
from library_desk.services.member import MemberService, normalize_column
from library_desk.services.reservation import ReservationService

HEADER = ["full_name", "email", "reg_number", "fee_balance"]


class TestNormalizeColumn:
    """Normalização dos nomes de coluna do arquivo importado."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("full_name", "full_name"),
            (" Full Name ", "full_name"),
            ("FullName", "full_name"),
            ("REG-NUMBER", "reg_number"),
            ("\ufeffemail", "email"),
            ("feeBalance", "fee_balance"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_column(raw) == expected


@pytest.mark.anyio
class TestCreateMember:
    """Cadastro manual de alunos."""

    async def test_create_member_generates_initial_password(self, test_db, load):
        data = MemberCreate(
            name="Ana Maria Souza",
            email="ana@escola.edu",
            reg_number="2024001",
        )

        member, initial_password = await MemberService(test_db).create_member(data)

        assert initial_password == "Ana2024001"
        stored = await load(Member, member.id)
        assert stored.fee_balance == Decimal("0.00")
        assert verify_password(initial_password, stored.password_hash)

    async def test_duplicate_email_and_reg_number(self, test_db, student):
        data = MemberCreate(
            name="Outra Pessoa",
            email=student.email,
            reg_number=student.reg_number,
        )

        with pytest.raises(ValidationFailedError) as exc_info:
            await MemberService(test_db).create_member(data)

        error = exc_info.value
        assert error.status_code == 422
        assert error.operation == "member_create"
        assert {detail.field for detail in error.details} == {"email", "reg_number"}

    def test_negative_fee_balance_rejected(self):
        with pytest.raises(ValidationError):
            MemberCreate(
                name="Ana",
                email="ana@escola.edu",
                reg_number="1",
                fee_balance=Decimal("-1.00"),
            )


@pytest.mark.anyio
class TestUpdateMember:
    """Atualização de membros."""

    async def test_update_fee_balance(self, test_db, load, student):
        await MemberService(test_db).update_member(
            student.id,
            MemberUpdate(fee_balance=Decimal("12.50")),
        )

        stored = await load(Member, student.id)
        assert stored.fee_balance == Decimal("12.50")
        assert stored.email == student.email

    async def test_update_email_in_use(self, test_db, make_member):
        first = await make_member()
        second = await make_member()

        with pytest.raises(ValidationFailedError) as exc_info:
            await MemberService(test_db).update_member(
                second.id,
                MemberUpdate(email=first.email),
            )

        assert exc_info.value.operation == "member_update"
        assert exc_info.value.details[0].field == "email"

    async def test_update_keeps_own_email(self, test_db, student):
        """Reenviar o próprio email não conta como duplicado."""
        member = await MemberService(test_db).update_member(
            student.id,
            MemberUpdate(email=student.email, name="Nome Novo"),
        )

        assert member.name == "Nome Novo"

    async def test_update_unknown_member(self, test_db, random_uuid):
        with pytest.raises(NotFoundError):
            await MemberService(test_db).update_member(random_uuid, MemberUpdate(name="X"))


@pytest.mark.anyio
class TestDeleteMember:
    """Remoção de membros."""

    async def test_delete_member(self, test_db, load, student):
        await MemberService(test_db).delete_member(student.id)

        assert await load(Member, student.id) is None

    async def test_delete_blocked_by_pending_reservation(
        self, test_db, load, student, make_book
    ):
        book = await make_book(total=1)
        await ReservationService(test_db).reserve(student.id, book.id)

        with pytest.raises(InvalidStateError) as exc_info:
            await MemberService(test_db).delete_member(student.id)

        assert exc_info.value.operation == "member_delete"
        assert await load(Member, student.id) is not None

    async def test_delete_staff_blocked(self, test_db, staff):
        with pytest.raises(InvalidStateError):
            await MemberService(test_db).delete_member(staff.id)


@pytest.mark.anyio
class TestImportMembers:
    """Importação em lote a partir de linhas de CSV."""

    async def test_import_reports_failed_row(self, test_db, session_factory):
        """Email repetido na terceira linha de dados: 4 importados, 1 erro na linha 4."""
        rows = [
            HEADER,
            ["Ana Souza", "ana@escola.edu", "1001", "0"],
            ["Bruno Lima", "bruno@escola.edu", "1002", "0.00"],
            ["Ana Duplicada", "ana@escola.edu", "1003", "0"],
            ["Carla Dias", "carla@escola.edu", "1004", "5.50"],
            ["Diego Reis", "diego@escola.edu", "1005", "0"],
        ]

        report = await MemberService(test_db).import_members(rows)

        assert report.imported_count == 4
        assert report.failed_count == 1
        assert len(report.errors) == 1
        assert report.errors[0].startswith("Row 4:")
        assert "email" in report.errors[0]

        async with session_factory() as session:
            members, total = await MemberService(session).list_members()
        assert total == 4
        assert "1003" not in {member.reg_number for member in members}

    async def test_import_invalid_values(self, test_db):
        rows = [
            HEADER,
            ["", "sem-nome@escola.edu", "2001", "0"],
            ["Email Ruim", "nao-e-email", "2002", "0"],
            ["Saldo Negativo", "neg@escola.edu", "2003", "-3"],
        ]

        report = await MemberService(test_db).import_members(rows)

        assert report.imported_count == 0
        assert report.failed_count == 3
        assert report.errors[0].startswith("Row 2: full_name")
        assert report.errors[1].startswith("Row 3: email")
        assert report.errors[2].startswith("Row 4: fee_balance")

    async def test_import_requires_fee_balance(self, test_db):
        """Saldo em branco não vira zero: a linha é rejeitada."""
        rows = [
            HEADER,
            ["Ana Souza", "ana@escola.edu", "1", ""],
            ["Bruno Lima", "bruno@escola.edu", "2", "0"],
        ]

        report = await MemberService(test_db).import_members(rows)

        assert report.imported_count == 1
        assert report.failed_count == 1
        assert report.errors[0].startswith("Row 2: fee_balance")

    async def test_import_missing_column(self, test_db):
        rows = [
            ["full_name", "email", "fee_balance"],
            ["Ana Souza", "ana@escola.edu", "0"],
        ]

        with pytest.raises(ValidationFailedError) as exc_info:
            await MemberService(test_db).import_members(rows)

        assert exc_info.value.operation == "member_import"
        assert [detail.field for detail in exc_info.value.details] == ["reg_number"]

    async def test_import_empty_file(self, test_db):
        with pytest.raises(ValidationFailedError):
            await MemberService(test_db).import_members([])

    async def test_import_normalized_header_and_blank_rows(self, test_db):
        """Cabeçalho em outro formato e linhas em branco no meio do arquivo."""
        rows = [
            ["Fee Balance", "RegNumber", "EMAIL", "Full Name"],
            ["0", "3001", "eva@escola.edu", "Eva Torres"],
            [],
            ["", "", "", ""],
            ["1.25", "3002", "fabio@escola.edu", "Fábio Melo"],
        ]

        report = await MemberService(test_db).import_members(rows)

        assert report.imported_count == 2
        assert report.failed_count == 0
        assert report.errors == []
