"""
Schemas Pydantic da aplicação.
"""

from library_desk.schemas.base import (
    BaseSchema,
    ErrorDetail,
    ErrorResponse,
    MessageResponse,
    PaginatedResponse,
    TimestampSchema,
)
from library_desk.schemas.health import HealthResponse
from library_desk.schemas.member import (
    ImportReport,
    MemberCreate,
    MemberCreated,
    MemberRead,
    MemberUpdate,
)
from library_desk.schemas.auth import LoginRequest, MemberWithToken, TokenResponse
from library_desk.schemas.book import (
    BookAvailability,
    BookCreate,
    BookRead,
    BookUpdate,
    InventoryReport,
)
from library_desk.schemas.loan import LoanDetail, LoanReturn
from library_desk.schemas.reservation import (
    PickupResponse,
    ReservationCreate,
    ReservationDetail,
    ReservationRead,
    ReservationResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "PaginatedResponse",
    "TimestampSchema",
    # Health
    "HealthResponse",
    # Member
    "ImportReport",
    "MemberCreate",
    "MemberCreated",
    "MemberRead",
    "MemberUpdate",
    # Auth
    "LoginRequest",
    "MemberWithToken",
    "TokenResponse",
    # Book
    "BookAvailability",
    "BookCreate",
    "BookRead",
    "BookUpdate",
    "InventoryReport",
    # Loan
    "LoanDetail",
    "LoanReturn",
    # Reservation
    "PickupResponse",
    "ReservationCreate",
    "ReservationDetail",
    "ReservationRead",
    "ReservationResponse",
]
