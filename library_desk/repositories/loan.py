"""
Repository para operações de Loan no banco de dados.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.models.base import utcnow
from library_desk.models.enums import LoanStatus
from library_desk.models.loan import Loan
from library_desk.repositories.base import BaseRepository


class LoanRepository(BaseRepository[Loan]):
    """Repository para operações CRUD de Loan."""

    def __init__(self, db: AsyncSession):
        super().__init__(Loan, db)

    async def count_active_by_book(self, book_id: UUID) -> int:
        """Conta empréstimos ainda não devolvidos de um livro."""
        result = await self.db.execute(
            select(func.count(Loan.id)).where(
                Loan.book_id == book_id,
                Loan.status == LoanStatus.BORROWED,
            )
        )
        return result.scalar_one()

    async def count_active_by_member(self, member_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Loan.id)).where(
                Loan.member_id == member_id,
                Loan.status == LoanStatus.BORROWED,
            )
        )
        return result.scalar_one()

    async def mark_returned(
        self,
        loan_id: UUID,
        returned_at: datetime,
        fine_amount: Decimal,
    ) -> bool:
        """
        Marca o empréstimo como devolvido (só se ainda estiver BORROWED).

        Returns:
            False se o empréstimo já tinha sido devolvido
        """
        result = await self.db.execute(
            update(Loan)
            .where(Loan.id == loan_id, Loan.status == LoanStatus.BORROWED)
            .values(
                status=LoanStatus.RETURNED,
                returned_at=returned_at,
                fine_amount=fine_amount,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def search(
        self,
        member_id: UUID | None = None,
        book_id: UUID | None = None,
        status: str | None = None,  # "borrowed", "returned", "overdue"
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Loan], int]:
        """
        Busca empréstimos com filtros e paginação.

        Args:
            member_id: Filtro por membro
            book_id: Filtro por livro
            status: "borrowed" (ativo), "returned" ou "overdue" (ativo e atrasado)
            page: Número da página
            page_size: Tamanho da página

        Returns:
            Tupla (lista de empréstimos, total)
        """
        query = select(Loan)

        if member_id:
            query = query.where(Loan.member_id == member_id)

        if book_id:
            query = query.where(Loan.book_id == book_id)

        if status == "borrowed":
            query = query.where(Loan.status == LoanStatus.BORROWED)
        elif status == "returned":
            query = query.where(Loan.status == LoanStatus.RETURNED)
        elif status == "overdue":
            query = query.where(
                Loan.status == LoanStatus.BORROWED,
                Loan.due_date < utcnow(),
            )

        return await self.paginate(
            query.order_by(Loan.borrowed_at.desc()),
            page,
            page_size,
        )

    async def get_active_by_member(self, member_id: UUID) -> list[Loan]:
        """Empréstimos ativos de um membro, ordenados pelo prazo."""
        result = await self.db.execute(
            select(Loan)
            .where(
                Loan.member_id == member_id,
                Loan.status == LoanStatus.BORROWED,
            )
            .order_by(Loan.due_date)
        )
        return list(result.scalars().all())

    async def get_overdue(self) -> list[Loan]:
        """Empréstimos ativos com prazo vencido, do mais antigo ao mais novo."""
        result = await self.db.execute(
            select(Loan)
            .where(
                Loan.status == LoanStatus.BORROWED,
                Loan.due_date < utcnow(),
            )
            .order_by(Loan.due_date)
        )
        return list(result.scalars().all())
