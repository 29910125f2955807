"""
Model de membro da biblioteca (aluno ou bibliotecário).
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Enum as SQLEnum, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from library_desk.db.session import Base
from library_desk.models.base import UUIDMixin, TimestampMixin
from library_desk.models.enums import MemberRole, enum_values


class Member(Base, UUIDMixin, TimestampMixin):
    """
    Membro da biblioteca.

    Attributes:
        id: UUID único do membro
        name: Nome completo
        email: Email único (usado como login)
        reg_number: Número de matrícula único (nulo para contas de staff)
        password_hash: Hash bcrypt da senha
        role: STUDENT ou STAFF
        fee_balance: Saldo devedor; bloqueia a retirada enquanto positivo
    """
    __tablename__ = "members"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    reg_number: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole, name="member_role", values_callable=enum_values),
        nullable=False,
        default=MemberRole.STUDENT,
    )
    fee_balance: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    __table_args__ = (
        CheckConstraint("fee_balance >= 0", name="ck_members_fee_balance"),
    )

    def __repr__(self) -> str:
        return f"<Member {self.email}>"

    @property
    def is_staff(self) -> bool:
        return self.role == MemberRole.STAFF

    @property
    def has_outstanding_balance(self) -> bool:
        """True se o membro deve alguma quantia (bloqueia retirada)."""
        return self.fee_balance > 0
