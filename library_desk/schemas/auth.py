"""
Schemas Pydantic para autenticação.
"""

from pydantic import EmailStr

from library_desk.schemas.base import BaseSchema
from library_desk.schemas.member import MemberRead


class LoginRequest(BaseSchema):
    """Schema para login."""
    email: EmailStr
    password: str


class TokenResponse(BaseSchema):
    """Resposta de autenticação com token JWT."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MemberWithToken(BaseSchema):
    """Membro com token JWT (retorno do login)."""
    member: MemberRead
    token: TokenResponse
