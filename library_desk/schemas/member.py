"""
Schemas Pydantic para Member e importação em lote.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import EmailStr, Field

from library_desk.models.enums import MemberRole
from library_desk.schemas.base import BaseSchema, TimestampSchema


class MemberCreate(BaseSchema):
    """
    Schema para cadastro de aluno pelo bibliotecário.

    A senha inicial é gerada (primeiro nome + matrícula) e devolvida uma
    única vez em MemberCreated.
    """
    name: str = Field(..., min_length=1, max_length=255, examples=["Ana Souza"])
    email: EmailStr = Field(..., max_length=255, examples=["ana@escola.edu"])
    reg_number: str = Field(..., min_length=1, max_length=255, examples=["2024001"])
    fee_balance: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)


class MemberUpdate(BaseSchema):
    """Schema para atualização de membro."""
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = Field(None, max_length=255)
    reg_number: str | None = Field(None, min_length=1, max_length=255)
    fee_balance: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class MemberRead(TimestampSchema):
    """
    Schema para leitura de membro.

    Nunca expõe password_hash.
    """
    id: UUID
    name: str
    email: EmailStr
    reg_number: str | None
    role: MemberRole
    fee_balance: Decimal


class MemberCreated(BaseSchema):
    """Retorno do cadastro: membro e senha inicial."""
    member: MemberRead
    initial_password: str


class ImportReport(BaseSchema):
    """
    Resultado da importação de membros.

    errors traz uma linha por registro rejeitado, no formato
    "Row N: mensagem" (o cabeçalho é a linha 1).
    """
    imported_count: int
    failed_count: int
    errors: list[str] = Field(default_factory=list)
