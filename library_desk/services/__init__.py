"""
Módulo de serviços - lógica de negócio.
"""

from library_desk.services.auth import AuthService
from library_desk.services.book import BookService
from library_desk.services.loan import LoanService
from library_desk.services.member import MemberService
from library_desk.services.reservation import ReservationService

__all__ = [
    "AuthService",
    "BookService",
    "LoanService",
    "MemberService",
    "ReservationService",
]
