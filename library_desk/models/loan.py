"""
Model de empréstimo de livros.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_desk.db.session import Base
from library_desk.models.base import UUIDMixin, TimestampMixin, utcnow
from library_desk.models.enums import LoanStatus, enum_values

if TYPE_CHECKING:
    from library_desk.models.book import Book
    from library_desk.models.member import Member


class Loan(Base, UUIDMixin, TimestampMixin):
    """
    Empréstimo de um exemplar para um membro.

    Só é criado pela confirmação de retirada de uma reserva, na mesma
    transação; reservation_id é único (uma reserva gera no máximo um
    empréstimo).

    Regras de negócio:
        - Prazo: LOAN_PERIOD_DAYS (padrão 14 dias)
        - Multa por atraso: FINE_PER_DAY por dia, somada ao fee_balance
          do membro na devolução

    Attributes:
        id: UUID único do empréstimo
        member_id: FK para o membro
        book_id: FK para o livro
        reservation_id: FK para a reserva que originou o empréstimo
        borrowed_at: Data/hora da retirada (UTC)
        due_date: Data/hora limite para devolução (UTC)
        returned_at: Data/hora da devolução (null enquanto ativo)
        status: BORROWED ou RETURNED
        fine_amount: Multa calculada na devolução
    """
    __tablename__ = "loans"

    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    book_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    borrowed_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    returned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[LoanStatus] = mapped_column(
        SQLEnum(LoanStatus, name="loan_status", values_callable=enum_values),
        nullable=False,
        default=LoanStatus.BORROWED,
    )
    fine_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    member: Mapped["Member"] = relationship("Member", lazy="selectin")
    book: Mapped["Book"] = relationship("Book", lazy="selectin")

    __table_args__ = (
        Index("ix_loans_member_status", "member_id", "status"),
        Index("ix_loans_book_status", "book_id", "status"),
        # Empréstimos atrasados
        Index("ix_loans_overdue", "status", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<Loan {self.id} - {self.status.value}>"

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.BORROWED

    def days_overdue(self, at: Optional[datetime] = None) -> int:
        """Dias completos de atraso em `at` (padrão: devolução ou agora)."""
        reference = at or self.returned_at or utcnow()
        delta = reference - self.due_date
        return max(0, delta.days)
