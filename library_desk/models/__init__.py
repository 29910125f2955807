"""
Models SQLAlchemy da aplicação.

Importar todos os models aqui para que Base.metadata conheça todas as tabelas.
"""

from library_desk.models.enums import LoanStatus, MemberRole, ReservationStatus
from library_desk.models.member import Member
from library_desk.models.book import Book
from library_desk.models.reservation import Reservation
from library_desk.models.loan import Loan

__all__ = [
    "MemberRole",
    "ReservationStatus",
    "LoanStatus",
    "Member",
    "Book",
    "Reservation",
    "Loan",
]
