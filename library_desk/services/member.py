"""
Service para lógica de negócio de Member.

Cadastro manual e importação em lote usam a mesma validação
(`create_member`). Na importação, cada linha é uma transação própria: uma
linha rejeitada não desfaz as anteriores.
"""

import re
from typing import Iterable, Sequence
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.exceptions import (
    InvalidStateError,
    LibraryError,
    NotFoundError,
    ValidationFailedError,
)
from library_desk.core.logging import get_logger
from library_desk.core.security import generate_initial_password, hash_password
from library_desk.db.transaction import transaction
from library_desk.models.enums import MemberRole
from library_desk.models.member import Member
from library_desk.repositories.loan import LoanRepository
from library_desk.repositories.member import MemberRepository
from library_desk.repositories.reservation import ReservationRepository
from library_desk.schemas.base import ErrorDetail
from library_desk.schemas.member import ImportReport, MemberCreate, MemberUpdate

logger = get_logger(__name__)

IMPORT_COLUMNS = ("full_name", "email", "reg_number", "fee_balance")


def normalize_column(name: str) -> str:
    """
    Normaliza nome de coluna do arquivo importado.

    Exemplos:
        " Full Name " -> "full_name"
        "RegNumber" -> "reg_number"
        "FEE-BALANCE" -> "fee_balance"
    """
    name = name.replace("\ufeff", "").strip()
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name)
    name = re.sub(r"[\s\-]+", "_", name)
    return name.lower()


def _format_details(details: list[ErrorDetail], fallback: str) -> str:
    if not details:
        return fallback
    return "; ".join(
        f"{detail.field}: {detail.message}" if detail.field else detail.message
        for detail in details
    )


class MemberService:
    """Service para operações de Member."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = MemberRepository(db)
        self.reservation_repo = ReservationRepository(db)
        self.loan_repo = LoanRepository(db)

    async def get_member(self, member_id: UUID) -> Member:
        """
        Busca membro por ID.

        Raises:
            NotFoundError: Membro não encontrado
        """
        member = await self.repo.get_by_id(member_id)
        if not member:
            raise NotFoundError("Membro não encontrado")
        return member

    async def create_member(
        self,
        data: MemberCreate,
        operation: str = "member_create",
    ) -> tuple[Member, str]:
        """
        Cadastra um aluno com senha inicial gerada.

        Returns:
            Tupla (membro, senha inicial em texto plano)

        Raises:
            ValidationFailedError: Email ou matrícula já cadastrados
        """
        async with transaction(self.db, operation):
            details = []
            if await self.repo.email_exists(data.email):
                details.append(ErrorDetail(field="email", message="Email já cadastrado"))
            if await self.repo.reg_number_exists(data.reg_number):
                details.append(ErrorDetail(field="reg_number", message="Matrícula já cadastrada"))
            if details:
                raise ValidationFailedError(operation=operation, details=details)

            initial_password = generate_initial_password(data.name, data.reg_number)
            member = await self.repo.create(
                name=data.name,
                email=data.email,
                reg_number=data.reg_number,
                password_hash=hash_password(initial_password),
                role=MemberRole.STUDENT,
                fee_balance=data.fee_balance,
            )

        logger.info(f"Membro cadastrado: id={member.id} reg_number={member.reg_number}")
        return member, initial_password

    async def update_member(self, member_id: UUID, data: MemberUpdate) -> Member:
        """
        Atualiza um membro.

        Raises:
            NotFoundError: Membro não encontrado
            ValidationFailedError: Email ou matrícula em uso por outro membro
        """
        operation = "member_update"

        async with transaction(self.db, operation):
            member = await self.repo.get_by_id(member_id)
            if not member:
                raise NotFoundError("Membro não encontrado", operation=operation)

            details = []
            if data.email and await self.repo.email_exists(data.email, exclude_id=member_id):
                details.append(ErrorDetail(field="email", message="Email já cadastrado"))
            if data.reg_number and await self.repo.reg_number_exists(
                data.reg_number, exclude_id=member_id
            ):
                details.append(ErrorDetail(field="reg_number", message="Matrícula já cadastrada"))
            if details:
                raise ValidationFailedError(operation=operation, details=details)

            member = await self.repo.update(
                member,
                name=data.name,
                email=data.email,
                reg_number=data.reg_number,
                fee_balance=data.fee_balance,
            )

        logger.info(f"Membro atualizado: id={member_id}")
        return member

    async def delete_member(self, member_id: UUID) -> None:
        """
        Remove um aluno.

        Raises:
            NotFoundError: Membro não encontrado
            InvalidStateError: Conta de staff, reserva pendente ou empréstimo ativo
        """
        operation = "member_delete"

        async with transaction(self.db, operation):
            member = await self.repo.get_by_id(member_id)
            if not member:
                raise NotFoundError("Membro não encontrado", operation=operation)

            if member.is_staff:
                raise InvalidStateError(
                    "Contas de bibliotecário não podem ser removidas",
                    operation=operation,
                )

            pending = await self.reservation_repo.count_pending_by_member(member_id)
            active = await self.loan_repo.count_active_by_member(member_id)
            if pending or active:
                raise InvalidStateError(
                    f"Membro possui {pending} reserva(s) pendente(s) e "
                    f"{active} empréstimo(s) ativo(s)",
                    operation=operation,
                )

            await self.repo.delete(member)

        logger.info(f"Membro removido: id={member_id}")

    async def list_members(
        self,
        search: str | None = None,
        with_balance: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Member], int]:
        """Lista alunos com filtros e paginação."""
        return await self.repo.search(
            search=search,
            with_balance=with_balance,
            page=page,
            page_size=page_size,
        )

    async def import_members(self, rows: Iterable[Sequence[str]]) -> ImportReport:
        """
        Importa alunos a partir de linhas tabulares.

        A primeira linha é o cabeçalho; precisa conter as colunas
        full_name, email, reg_number e fee_balance (sem diferenciar
        maiúsculas, espaços viram "_"). Linhas em branco são ignoradas.

        Cada linha passa pela mesma validação do cadastro manual, em
        transação própria. Falhas são registradas como "Row N: ..." (o
        cabeçalho é a linha 1) e a importação segue.

        Raises:
            ValidationFailedError: Arquivo vazio ou coluna obrigatória ausente
                (nenhuma linha é processada)
        """
        operation = "member_import"
        iterator = iter(rows)

        header = next(iterator, None)
        if not header:
            raise ValidationFailedError("Arquivo vazio", operation=operation)

        columns = [normalize_column(name) for name in header]
        missing = [column for column in IMPORT_COLUMNS if column not in columns]
        if missing:
            raise ValidationFailedError(
                f"Colunas obrigatórias ausentes: {', '.join(missing)}",
                operation=operation,
                details=[ErrorDetail(field=column, message="coluna ausente") for column in missing],
            )
        positions = {column: columns.index(column) for column in IMPORT_COLUMNS}

        imported = 0
        errors: list[str] = []

        for row_number, row in enumerate(iterator, start=2):
            if not any(cell.strip() for cell in row):
                continue

            record = {
                column: row[index].strip() if index < len(row) else ""
                for column, index in positions.items()
            }

            try:
                data = MemberCreate(
                    name=record["full_name"],
                    email=record["email"],
                    reg_number=record["reg_number"],
                    fee_balance=record["fee_balance"],
                )
                await self.create_member(data, operation=operation)
            except ValidationError as e:
                failure = ValidationFailedError.from_pydantic(e.errors(), operation=operation)
                for detail in failure.details:
                    if detail.field == "name":
                        detail.field = "full_name"
                errors.append(f"Row {row_number}: {_format_details(failure.details, failure.message)}")
            except LibraryError as e:
                errors.append(f"Row {row_number}: {_format_details(e.details, e.message)}")
            else:
                imported += 1

        report = ImportReport(
            imported_count=imported,
            failed_count=len(errors),
            errors=errors,
        )
        logger.info(
            f"Importação de membros concluída: imported={report.imported_count} "
            f"failed={report.failed_count}"
        )
        return report
