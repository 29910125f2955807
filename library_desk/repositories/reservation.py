"""
Repository para operações de Reservation no banco de dados.
"""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.models.enums import ReservationStatus
from library_desk.models.reservation import Reservation
from library_desk.repositories.base import BaseRepository


class ReservationRepository(BaseRepository[Reservation]):
    """Repository para operações CRUD de Reservation."""

    def __init__(self, db: AsyncSession):
        super().__init__(Reservation, db)

    async def get_pending(self, member_id: UUID, book_id: UUID) -> Reservation | None:
        """Busca a reserva pendente de um membro para um livro (se houver)."""
        result = await self.db.execute(
            select(Reservation).where(
                Reservation.member_id == member_id,
                Reservation.book_id == book_id,
                Reservation.status == ReservationStatus.PENDING,
            )
        )
        return result.scalar_one_or_none()

    async def count_pending_by_book(self, book_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Reservation.id)).where(
                Reservation.book_id == book_id,
                Reservation.status == ReservationStatus.PENDING,
            )
        )
        return result.scalar_one()

    async def count_pending_by_member(self, member_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Reservation.id)).where(
                Reservation.member_id == member_id,
                Reservation.status == ReservationStatus.PENDING,
            )
        )
        return result.scalar_one()

    async def transition(
        self,
        reservation_id: UUID,
        source: ReservationStatus,
        target: ReservationStatus,
    ) -> bool:
        """
        Muda o status de `source` para `target` num único UPDATE condicional.

        Returns:
            False se a reserva não estava mais em `source` (outra transação
            chegou antes)
        """
        result = await self.db.execute(
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.status == source)
            .values(status=target)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def search(
        self,
        member_id: UUID | None = None,
        book_id: UUID | None = None,
        statuses: list[ReservationStatus] | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Reservation], int]:
        """
        Busca reservas com filtros e paginação (mais recentes primeiro).

        Args:
            member_id: Filtro por membro
            book_id: Filtro por livro
            statuses: Filtro por um ou mais status
            page: Número da página
            page_size: Tamanho da página

        Returns:
            Tupla (lista de reservas, total)
        """
        query = select(Reservation)

        if member_id:
            query = query.where(Reservation.member_id == member_id)

        if book_id:
            query = query.where(Reservation.book_id == book_id)

        if statuses:
            query = query.where(Reservation.status.in_(statuses))

        return await self.paginate(
            query.order_by(Reservation.reserved_at.desc()),
            page,
            page_size,
        )
