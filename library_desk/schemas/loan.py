"""
Schemas Pydantic para Loan (empréstimo).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field, computed_field

from library_desk.core.config import get_settings
from library_desk.models.base import utcnow
from library_desk.models.enums import LoanStatus
from library_desk.schemas.base import BaseSchema

settings = get_settings()


class LoanDetail(BaseSchema):
    """
    Schema de leitura de empréstimo com cálculo de multa dinâmica.

    Para empréstimos ativos e atrasados a multa é calculada em tempo real,
    sem persistir no banco. Após a devolução vale fine_amount.
    """
    id: UUID
    member_id: UUID
    member_name: str | None = None
    book_id: UUID
    book_title: str | None = None
    reservation_id: UUID
    borrowed_at: datetime
    due_date: datetime
    returned_at: datetime | None = None
    status: LoanStatus
    fine_amount: Decimal | None = None

    @computed_field
    @property
    def is_overdue(self) -> bool:
        if self.status != LoanStatus.BORROWED:
            return False
        return utcnow() > self.due_date.replace(tzinfo=None)

    @computed_field
    @property
    def days_overdue(self) -> int:
        """Dias em atraso (0 se não atrasado ou já devolvido)."""
        if not self.is_overdue:
            return 0
        return max(0, (utcnow() - self.due_date.replace(tzinfo=None)).days)

    @computed_field
    @property
    def current_fine(self) -> Decimal:
        if self.status == LoanStatus.RETURNED:
            return self.fine_amount or Decimal("0.00")
        return Decimal(self.days_overdue) * settings.FINE_PER_DAY

    @classmethod
    def from_loan(cls, loan, member=None, book=None) -> "LoanDetail":
        """
        Cria LoanDetail a partir de um Loan.

        member/book podem ser passados quando o Loan acabou de ser criado
        (relacionamentos ainda não carregados).
        """
        member = member or loan.member
        book = book or loan.book

        return cls(
            id=loan.id,
            member_id=loan.member_id,
            member_name=member.name if member else None,
            book_id=loan.book_id,
            book_title=book.title if book else None,
            reservation_id=loan.reservation_id,
            borrowed_at=loan.borrowed_at,
            due_date=loan.due_date,
            returned_at=loan.returned_at,
            status=loan.status,
            fine_amount=loan.fine_amount,
        )


class LoanReturn(BaseSchema):
    """Schema de resposta para devolução de livro."""
    loan: LoanDetail
    fine_applied: Decimal = Field(..., description="Multa aplicada (pode ser 0)")
    message: str
