"""
Service para lógica de negócio de empréstimos (Loan).

Empréstimos só nascem da confirmação de retirada de uma reserva
(ReservationService.confirm_pickup). Aqui fica o restante do ciclo:

    - Devolução: BORROWED -> RETURNED, exemplar volta ao estoque
    - Multa por atraso: dias completos de atraso * FINE_PER_DAY, gravada
      no empréstimo e somada ao fee_balance do membro na mesma transação
    - Consultas: por membro, livro, status e atrasados
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.cache import cache_service
from library_desk.core.config import get_settings
from library_desk.core.exceptions import InvalidStateError, NotFoundError
from library_desk.core.logging import get_logger
from library_desk.db.transaction import transaction
from library_desk.models.base import utcnow
from library_desk.models.loan import Loan
from library_desk.repositories.book import BookRepository
from library_desk.repositories.loan import LoanRepository
from library_desk.repositories.member import MemberRepository
from library_desk.schemas.base import PaginatedResponse
from library_desk.schemas.loan import LoanDetail, LoanReturn

logger = get_logger(__name__)
settings = get_settings()

CENTS = Decimal("0.01")


def calculate_fine(due_date: datetime, returned_at: datetime) -> Decimal:
    """
    Multa de um empréstimo devolvido em `returned_at`.

    Conta apenas dias completos de atraso: devolver 23h depois do prazo
    ainda não gera multa.

    Exemplo:
        >>> calculate_fine(datetime(2024, 1, 1), datetime(2024, 1, 4, 10))
        Decimal('6.00')
    """
    days_overdue = max(0, (returned_at - due_date).days)
    return (Decimal(days_overdue) * settings.FINE_PER_DAY).quantize(CENTS)


class LoanService:
    """Service para operações de empréstimo."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.loan_repo = LoanRepository(db)
        self.book_repo = BookRepository(db)
        self.member_repo = MemberRepository(db)

    # ==========================================
    # Return Loan
    # ==========================================

    async def return_loan(self, loan_id: UUID) -> LoanReturn:
        """
        Registra a devolução de um empréstimo.

        Fluxo (uma única transação):
            1. Empréstimo precisa estar BORROWED
            2. Calcula multa (dias de atraso * FINE_PER_DAY)
            3. UPDATE condicional para RETURNED (WHERE status = 'borrowed')
            4. available_copies + 1
            5. Multa > 0: soma ao fee_balance do membro

        Raises:
            NotFoundError: Empréstimo inexistente
            InvalidStateError: Empréstimo já devolvido
        """
        operation = "return_loan"

        async with transaction(self.db, operation):
            loan = await self._get_loan(loan_id, operation)
            if not loan.is_active:
                raise InvalidStateError("Empréstimo já foi devolvido", operation=operation)

            returned_at = utcnow()
            fine = calculate_fine(loan.due_date, returned_at)

            if not await self.loan_repo.mark_returned(loan.id, returned_at, fine):
                raise InvalidStateError("Empréstimo já foi devolvido", operation=operation)

            if not await self.book_repo.release_copy(loan.book_id):
                logger.warning(
                    f"Livro {loan.book_id} já estava com todos os exemplares "
                    f"disponíveis na devolução do empréstimo {loan.id}"
                )

            if fine > 0:
                await self.member_repo.add_fee(loan.member_id, fine)

            loan = await self._get_loan(loan_id, operation)

        logger.info(f"Empréstimo devolvido: id={loan.id} book={loan.book_id} fine={fine}")
        await cache_service.invalidate_availability(loan.book_id)

        if fine > 0:
            message = f"Livro devolvido com {loan.days_overdue()} dia(s) de atraso. Multa: R$ {fine}"
        else:
            message = "Livro devolvido no prazo"

        return LoanReturn(
            loan=LoanDetail.from_loan(loan),
            fine_applied=fine,
            message=message,
        )

    # ==========================================
    # Queries
    # ==========================================

    async def get_detail(self, loan_id: UUID) -> LoanDetail:
        loan = await self._get_loan(loan_id, "loan_detail")
        return LoanDetail.from_loan(loan)

    async def list_loans(
        self,
        member_id: UUID | None = None,
        book_id: UUID | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[LoanDetail]:
        """
        Lista empréstimos com filtros.

        status: "borrowed", "returned" ou "overdue"
        """
        loans, total = await self.loan_repo.search(
            member_id=member_id,
            book_id=book_id,
            status=status,
            page=page,
            page_size=page_size,
        )
        return PaginatedResponse[LoanDetail].create(
            items=[LoanDetail.from_loan(loan) for loan in loans],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def get_member_active_loans(self, member_id: UUID) -> list[LoanDetail]:
        loans = await self.loan_repo.get_active_by_member(member_id)
        return [LoanDetail.from_loan(loan) for loan in loans]

    async def get_overdue_loans(self) -> list[LoanDetail]:
        loans = await self.loan_repo.get_overdue()
        return [LoanDetail.from_loan(loan) for loan in loans]

    async def _get_loan(self, loan_id: UUID, operation: str) -> Loan:
        loan = await self.loan_repo.get_by_id(loan_id)
        if not loan:
            raise NotFoundError("Empréstimo não encontrado", operation=operation)
        return loan
