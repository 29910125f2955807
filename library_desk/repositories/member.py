"""
Repository para operações de Member no banco de dados.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.models.enums import MemberRole
from library_desk.models.member import Member
from library_desk.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Repository para operações CRUD de Member."""

    def __init__(self, db: AsyncSession):
        super().__init__(Member, db)

    async def get_by_email(self, email: str) -> Member | None:
        """Busca membro pelo email (login)."""
        result = await self.db.execute(select(Member).where(Member.email == email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str, exclude_id: UUID | None = None) -> bool:
        query = select(Member.id).where(Member.email == email)
        if exclude_id:
            query = query.where(Member.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def reg_number_exists(
        self,
        reg_number: str,
        exclude_id: UUID | None = None,
    ) -> bool:
        query = select(Member.id).where(Member.reg_number == reg_number)
        if exclude_id:
            query = query.where(Member.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def search(
        self,
        search: str | None = None,
        with_balance: bool = False,
        role: MemberRole | None = MemberRole.STUDENT,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Member], int]:
        """
        Busca membros com filtros e paginação.

        Args:
            search: Trecho de nome, matrícula ou email
            with_balance: Apenas membros com saldo devedor
            role: Papel (padrão: apenas alunos; None para todos)
            page: Número da página
            page_size: Tamanho da página

        Returns:
            Tupla (lista de membros, total)
        """
        query = select(Member)

        if role:
            query = query.where(Member.role == role)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Member.name.ilike(pattern),
                    Member.reg_number.ilike(pattern),
                    Member.email.ilike(pattern),
                )
            )

        if with_balance:
            query = query.where(Member.fee_balance > 0)

        return await self.paginate(query.order_by(Member.name), page, page_size)

    async def add_fee(self, member_id: UUID, amount: Decimal) -> None:
        """Soma `amount` ao saldo devedor no próprio banco (sem ler antes)."""
        await self.db.execute(
            update(Member)
            .where(Member.id == member_id)
            .values(fee_balance=Member.fee_balance + amount)
            .execution_options(synchronize_session=False)
        )
