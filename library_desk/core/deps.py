"""
Dependencies FastAPI para autenticação e autorização.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.security import decode_token
from library_desk.db.session import get_db
from library_desk.models.enums import MemberRole
from library_desk.models.member import Member

# Scheme Bearer para extrair token do header Authorization
security = HTTPBearer()


async def get_current_member(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Member:
    """
    Dependency que retorna o membro autenticado.

    Extrai o token JWT do header Authorization, decodifica e
    busca o membro no banco.

    Raises:
        HTTPException 401: Token inválido, expirado ou membro não encontrado
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token inválido ou expirado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    member_id: str | None = payload.get("sub")
    if member_id is None:
        raise credentials_exception

    try:
        member_uuid = UUID(member_id)
    except ValueError:
        raise credentials_exception

    result = await db.execute(select(Member).where(Member.id == member_uuid))
    member = result.scalar_one_or_none()

    if member is None:
        raise credentials_exception

    return member


async def require_staff(
    current_member: Annotated[Member, Depends(get_current_member)],
) -> Member:
    """
    Dependency que exige que o membro seja bibliotecário (STAFF).

    Raises:
        HTTPException 403: Membro não é staff
    """
    if current_member.role != MemberRole.STAFF:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso restrito a bibliotecários",
        )
    return current_member


# Type aliases para uso nos endpoints
CurrentMember = Annotated[Member, Depends(get_current_member)]
StaffMember = Annotated[Member, Depends(require_staff)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
