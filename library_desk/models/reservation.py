"""
Model de reserva de livros.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_desk.db.session import Base
from library_desk.models.base import UUIDMixin, TimestampMixin, utcnow
from library_desk.models.enums import ReservationStatus, enum_values

if TYPE_CHECKING:
    from library_desk.models.book import Book
    from library_desk.models.member import Member


class Reservation(Base, UUIDMixin, TimestampMixin):
    """
    Reserva de um exemplar de livro por um membro.

    Fluxo de estados (ver ReservationStatus):
        PENDING -> CONFIRMED_PICKUP: retirada confirmada, cria Loan
        PENDING -> CANCELLED: devolve o exemplar ao estoque
        PENDING -> EXPIRED: devolve o exemplar ao estoque

    Regras de negócio:
        - Criar a reserva retira um exemplar de available_copies
        - No máximo uma reserva PENDING por (membro, livro), garantido
          pelo índice único parcial abaixo
        - Reservas de livros diferentes são independentes

    Attributes:
        id: UUID único da reserva
        member_id: FK para o membro
        book_id: FK para o livro
        status: Status atual
        reserved_at: Data/hora da reserva (UTC)
    """
    __tablename__ = "reservations"

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
    status: Mapped[ReservationStatus] = mapped_column(
        SQLEnum(
            ReservationStatus,
            name="reservation_status",
            values_callable=enum_values,
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    reserved_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )

    member: Mapped["Member"] = relationship("Member", lazy="selectin")
    book: Mapped["Book"] = relationship("Book", lazy="selectin")

    __table_args__ = (
        Index("ix_reservations_member_id", "member_id"),
        Index("ix_reservations_book_status", "book_id", "status"),
        Index("ix_reservations_status_reserved_at", "status", "reserved_at"),
        # Uma única reserva pendente por membro e livro
        Index(
            "uq_reservations_member_book_pending",
            "member_id",
            "book_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Reservation {self.id} - {self.status.value}>"
