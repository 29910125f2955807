"""
Service para lógica de negócio de Reservation.

Regras de negócio:
    - Reservar retira um exemplar de available_copies (UPDATE condicional,
      então dois membros disputando o último exemplar nunca levam os dois)
    - Um membro tem no máximo uma reserva pendente por livro; reservas de
      livros diferentes são permitidas
    - Confirmar a retirada exige saldo devedor zero e cria o empréstimo na
      mesma transação; o exemplar continua fora do estoque, agora pelo Loan
    - Cancelar ou expirar devolve o exemplar ao estoque
    - Toda transição parte de PENDING; qualquer outra gera InvalidStateError
      sem alterar nada

Não há expiração automática: o prazo para retirada não está definido, então
EXPIRED só é aplicado manualmente pelo bibliotecário.
"""

from datetime import timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.cache import cache_service
from library_desk.core.config import get_settings
from library_desk.core.exceptions import (
    DuplicateReservationError,
    FeeBalanceOutstandingError,
    InvalidStateError,
    NotFoundError,
    UnavailableError,
)
from library_desk.core.logging import get_logger
from library_desk.db.transaction import transaction
from library_desk.models.base import utcnow
from library_desk.models.enums import LoanStatus, ReservationStatus
from library_desk.models.reservation import Reservation
from library_desk.repositories.book import BookRepository
from library_desk.repositories.loan import LoanRepository
from library_desk.repositories.member import MemberRepository
from library_desk.repositories.reservation import ReservationRepository
from library_desk.schemas.base import ErrorDetail, PaginatedResponse
from library_desk.schemas.loan import LoanDetail
from library_desk.schemas.reservation import (
    PickupResponse,
    ReservationDetail,
    ReservationResponse,
)

logger = get_logger(__name__)
settings = get_settings()

# Status listados por padrão na tela de gestão de reservas
OPEN_STATUSES = [ReservationStatus.PENDING, ReservationStatus.CONFIRMED_PICKUP]


class ReservationService:
    """Service para operações de Reservation."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.reservation_repo = ReservationRepository(db)
        self.book_repo = BookRepository(db)
        self.member_repo = MemberRepository(db)
        self.loan_repo = LoanRepository(db)

    # ==========================================
    # Reserve
    # ==========================================

    async def reserve(self, member_id: UUID, book_id: UUID) -> ReservationResponse:
        """
        Cria uma reserva pendente e retira um exemplar do estoque.

        Fluxo (uma única transação):
            1. Membro e livro precisam existir
            2. Membro não pode ter reserva pendente para o mesmo livro
            3. UPDATE condicional available_copies - 1 (WHERE > 0)
            4. Insere Reservation(PENDING, reserved_at=agora)

        Raises:
            NotFoundError: Membro ou livro inexistente
            DuplicateReservationError: Já existe reserva pendente
            UnavailableError: Nenhum exemplar disponível
        """
        operation = "reserve"

        async with transaction(self.db, operation):
            member = await self.member_repo.get_by_id(member_id)
            if not member:
                raise NotFoundError("Membro não encontrado", operation=operation)

            book = await self.book_repo.get_by_id(book_id)
            if not book:
                raise NotFoundError("Livro não encontrado", operation=operation)

            if await self.reservation_repo.get_pending(member_id, book_id):
                raise DuplicateReservationError(operation=operation)

            if not await self.book_repo.claim_copy(book_id):
                logger.info(f"Reserva negada, sem exemplares: book={book_id} member={member_id}")
                raise UnavailableError(operation=operation)

            try:
                reservation = await self.reservation_repo.create(
                    member_id=member_id,
                    book_id=book_id,
                    status=ReservationStatus.PENDING,
                    reserved_at=utcnow(),
                )
            except IntegrityError as e:
                # Outra transação criou a mesma reserva pendente antes desta
                raise DuplicateReservationError(operation=operation) from e

        logger.info(f"Reserva criada: id={reservation.id} book={book_id} member={member_id}")
        await cache_service.invalidate_availability(book_id)

        return ReservationResponse(
            reservation=ReservationDetail.from_reservation(reservation, member, book),
            message=f"Reserva de '{book.title}' criada. Aguardando retirada.",
        )

    # ==========================================
    # Confirm pickup
    # ==========================================

    async def confirm_pickup(self, reservation_id: UUID) -> PickupResponse:
        """
        Confirma a retirada: PENDING -> CONFIRMED_PICKUP e cria o Loan.

        As duas escritas acontecem na mesma transação; se qualquer uma
        falhar, nenhuma é gravada. available_copies não muda, o exemplar
        já tinha saído do estoque na reserva.

        Raises:
            NotFoundError: Reserva inexistente
            InvalidStateError: Reserva não está PENDING
            FeeBalanceOutstandingError: Membro com saldo devedor
        """
        operation = "confirm_pickup"

        async with transaction(self.db, operation):
            reservation = await self._get_reservation(reservation_id, operation)
            self._ensure_transition(reservation, ReservationStatus.CONFIRMED_PICKUP, operation)

            member = await self.member_repo.get_by_id(reservation.member_id)
            if member.has_outstanding_balance:
                logger.info(
                    f"Retirada bloqueada por saldo devedor: reservation={reservation_id} "
                    f"member={member.id} balance={member.fee_balance}"
                )
                raise FeeBalanceOutstandingError(
                    operation=operation,
                    details=[
                        ErrorDetail(
                            field="fee_balance",
                            message=f"Saldo devedor atual: {member.fee_balance}",
                        )
                    ],
                )

            await self._transition(reservation, ReservationStatus.CONFIRMED_PICKUP, operation)

            now = utcnow()
            loan = await self.loan_repo.create(
                member_id=reservation.member_id,
                book_id=reservation.book_id,
                reservation_id=reservation.id,
                borrowed_at=now,
                due_date=now + timedelta(days=settings.LOAN_PERIOD_DAYS),
                status=LoanStatus.BORROWED,
            )
            reservation = await self._get_reservation(reservation_id, operation)

        logger.info(
            f"Retirada confirmada: reservation={reservation.id} loan={loan.id} "
            f"due_date={loan.due_date.isoformat()}"
        )

        return PickupResponse(
            reservation=ReservationDetail.from_reservation(reservation),
            loan=LoanDetail.from_loan(loan, reservation.member, reservation.book),
            message=f"Retirada confirmada. Devolver até {loan.due_date.strftime('%d/%m/%Y')}.",
        )

    # ==========================================
    # Cancel / Expire
    # ==========================================

    async def cancel(self, reservation_id: UUID) -> ReservationResponse:
        """
        Cancela uma reserva pendente e devolve o exemplar ao estoque.

        A checagem de dono (aluno só cancela a própria reserva) é feita
        pelo router.

        Raises:
            NotFoundError: Reserva inexistente
            InvalidStateError: Reserva não está PENDING
        """
        reservation = await self._release(reservation_id, ReservationStatus.CANCELLED, "cancel")
        return ReservationResponse(
            reservation=ReservationDetail.from_reservation(reservation),
            message="Reserva cancelada",
        )

    async def expire(self, reservation_id: UUID) -> ReservationResponse:
        """
        Expira uma reserva pendente (ação do bibliotecário).

        Mesmo efeito do cancelamento sobre o estoque.
        """
        reservation = await self._release(reservation_id, ReservationStatus.EXPIRED, "expire")
        return ReservationResponse(
            reservation=ReservationDetail.from_reservation(reservation),
            message="Reserva expirada",
        )

    async def _release(
        self,
        reservation_id: UUID,
        target: ReservationStatus,
        operation: str,
    ) -> Reservation:
        """PENDING -> target e available_copies + 1, na mesma transação."""
        async with transaction(self.db, operation):
            reservation = await self._get_reservation(reservation_id, operation)
            self._ensure_transition(reservation, target, operation)

            await self._transition(reservation, target, operation)

            if not await self.book_repo.release_copy(reservation.book_id):
                logger.warning(
                    f"Livro {reservation.book_id} já estava com todos os exemplares "
                    f"disponíveis ao liberar a reserva {reservation_id}"
                )

            reservation = await self._get_reservation(reservation_id, operation)

        logger.info(f"Reserva {target.value}: id={reservation_id} book={reservation.book_id}")
        await cache_service.invalidate_availability(reservation.book_id)
        return reservation

    # ==========================================
    # Queries
    # ==========================================

    async def get_detail(self, reservation_id: UUID) -> ReservationDetail:
        reservation = await self._get_reservation(reservation_id, "reservation_detail")
        return ReservationDetail.from_reservation(reservation)

    async def list_reservations(
        self,
        member_id: UUID | None = None,
        book_id: UUID | None = None,
        statuses: list[ReservationStatus] | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[ReservationDetail]:
        """
        Lista reservas para gestão (mais recentes primeiro).

        Sem filtro de status, traz apenas PENDING e CONFIRMED_PICKUP.
        """
        reservations, total = await self.reservation_repo.search(
            member_id=member_id,
            book_id=book_id,
            statuses=statuses or OPEN_STATUSES,
            page=page,
            page_size=page_size,
        )
        return PaginatedResponse[ReservationDetail].create(
            items=[ReservationDetail.from_reservation(r) for r in reservations],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_member_reservations(
        self,
        member_id: UUID,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[ReservationDetail]:
        """Todas as reservas de um membro, em qualquer status."""
        reservations, total = await self.reservation_repo.search(
            member_id=member_id,
            page=page,
            page_size=page_size,
        )
        return PaginatedResponse[ReservationDetail].create(
            items=[ReservationDetail.from_reservation(r) for r in reservations],
            total=total,
            page=page,
            page_size=page_size,
        )

    # ==========================================
    # Helpers
    # ==========================================

    async def _get_reservation(self, reservation_id: UUID, operation: str) -> Reservation:
        reservation = await self.reservation_repo.get_by_id(reservation_id)
        if not reservation:
            raise NotFoundError("Reserva não encontrada", operation=operation)
        return reservation

    @staticmethod
    def _ensure_transition(
        reservation: Reservation,
        target: ReservationStatus,
        operation: str,
    ) -> None:
        if not reservation.status.can_transition_to(target):
            raise InvalidStateError(
                f"Reserva com status '{reservation.status.value}' "
                f"não pode passar para '{target.value}'",
                operation=operation,
            )

    async def _transition(
        self,
        reservation: Reservation,
        target: ReservationStatus,
        operation: str,
    ) -> None:
        """UPDATE condicional; perde a corrida -> InvalidStateError."""
        changed = await self.reservation_repo.transition(
            reservation.id,
            source=ReservationStatus.PENDING,
            target=target,
        )
        if not changed:
            raise InvalidStateError(
                "Reserva foi alterada por outra operação",
                operation=operation,
            )
