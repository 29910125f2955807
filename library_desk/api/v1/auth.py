"""
Endpoints de autenticação.

Rate Limiting aplicado:
    - POST /login: 10 req/min (rate_limit_auth)
"""

from fastapi import APIRouter, Depends

from library_desk.core.deps import CurrentMember, DbSession
from library_desk.core.rate_limit import rate_limit_auth
from library_desk.schemas.auth import LoginRequest, MemberWithToken
from library_desk.schemas.member import MemberRead
from library_desk.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=MemberWithToken,
    summary="Autenticar membro",
    description="Retorna token JWT para autenticação nos endpoints protegidos.",
)
async def login(
    data: LoginRequest,
    db: DbSession,
    _: None = Depends(rate_limit_auth),
) -> MemberWithToken:
    """
    Login de aluno ou bibliotecário.

    Uso: `Authorization: Bearer <access_token>`

    Rate limit: 10 req/min por IP
    """
    service = AuthService(db)
    return await service.login(data.email, data.password)


@router.get(
    "/me",
    response_model=MemberRead,
    summary="Dados do membro autenticado",
)
async def get_me(current_member: CurrentMember) -> MemberRead:
    return MemberRead.model_validate(current_member)
