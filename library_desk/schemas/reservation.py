"""
Schemas Pydantic para Reservation.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from library_desk.models.enums import ReservationStatus
from library_desk.schemas.base import BaseSchema, TimestampSchema
from library_desk.schemas.loan import LoanDetail


class ReservationCreate(BaseSchema):
    """
    Schema para criação de reserva.

    member_id só é aceito de bibliotecários; alunos reservam para si.
    """
    book_id: UUID
    member_id: UUID | None = Field(None, description="Apenas staff")


class ReservationRead(TimestampSchema):
    """Schema para leitura de reserva."""
    id: UUID
    member_id: UUID
    book_id: UUID
    status: ReservationStatus
    reserved_at: datetime


class ReservationDetail(ReservationRead):
    """Schema com nome do membro e título do livro."""
    member_name: str | None = None
    book_title: str | None = None

    @classmethod
    def from_reservation(cls, reservation, member=None, book=None) -> "ReservationDetail":
        """Constrói a partir de um model Reservation."""
        member = member or reservation.member
        book = book or reservation.book
        return cls(
            id=reservation.id,
            member_id=reservation.member_id,
            book_id=reservation.book_id,
            status=reservation.status,
            reserved_at=reservation.reserved_at,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
            member_name=member.name if member else None,
            book_title=book.title if book else None,
        )


class ReservationResponse(BaseSchema):
    """Resposta das operações sobre uma reserva."""
    reservation: ReservationDetail
    message: str


class PickupResponse(BaseSchema):
    """Resposta da confirmação de retirada: reserva e empréstimo gerado."""
    reservation: ReservationDetail
    loan: LoanDetail
    message: str
