"""
Enums utilizados nos models da aplicação.

Os valores são gravados no banco em minúsculas (ver `enum_values`).
"""

import enum


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """values_callable para sqlalchemy.Enum: persiste .value em vez de .name."""
    return [member.value for member in enum_cls]


class MemberRole(str, enum.Enum):
    """Papel do membro no sistema."""
    STUDENT = "student"
    STAFF = "staff"


class ReservationStatus(str, enum.Enum):
    """
    Status de uma reserva.

    Transições válidas (todas partem de PENDING):
        PENDING -> CONFIRMED_PICKUP (retirada confirmada, gera empréstimo)
        PENDING -> CANCELLED (cancelada pelo membro ou bibliotecário)
        PENDING -> EXPIRED (expirada pelo bibliotecário)

    Os demais status são finais.
    """
    PENDING = "pending"
    CONFIRMED_PICKUP = "confirmed_pickup"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        """Retorna True se a transição self -> target é permitida."""
        return target in RESERVATION_TRANSITIONS[self]


RESERVATION_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({
        ReservationStatus.CONFIRMED_PICKUP,
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    }),
    ReservationStatus.CONFIRMED_PICKUP: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.EXPIRED: frozenset(),
}


class LoanStatus(str, enum.Enum):
    """
    Status de um empréstimo.

    BORROWED -> RETURNED é a única transição.
    """
    BORROWED = "borrowed"
    RETURNED = "returned"
