"""
Módulo de repositórios - acesso a dados.
"""

from library_desk.repositories.base import BaseRepository
from library_desk.repositories.member import MemberRepository
from library_desk.repositories.book import BookRepository
from library_desk.repositories.reservation import ReservationRepository
from library_desk.repositories.loan import LoanRepository

__all__ = [
    "BaseRepository",
    "MemberRepository",
    "BookRepository",
    "ReservationRepository",
    "LoanRepository",
]
