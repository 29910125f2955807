"""
Service de autenticação.

Não há auto-cadastro: contas de alunos são criadas pelo bibliotecário
(MemberService) e a conta de staff inicial pelo seed.
"""

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.config import get_settings
from library_desk.core.logging import get_logger
from library_desk.core.security import create_access_token, verify_password
from library_desk.repositories.member import MemberRepository
from library_desk.schemas.auth import MemberWithToken, TokenResponse
from library_desk.schemas.member import MemberRead

logger = get_logger(__name__)
settings = get_settings()


class AuthService:
    """Service para operações de autenticação."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.member_repo = MemberRepository(db)

    async def login(self, email: str, password: str) -> MemberWithToken:
        """
        Autentica membro e retorna token JWT.

        Args:
            email: Email do membro
            password: Senha em texto plano

        Returns:
            Membro com token JWT

        Raises:
            HTTPException 401: Credenciais inválidas
        """
        member = await self.member_repo.get_by_email(email)

        if member is None or not verify_password(password, member.password_hash):
            logger.info(f"Login recusado: {email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email ou senha incorretos",
                headers={"WWW-Authenticate": "Bearer"},
            )

        access_token = create_access_token(
            subject=str(member.id),
            extra_data={"role": member.role.value},
        )

        return MemberWithToken(
            member=MemberRead.model_validate(member),
            token=TokenResponse(
                access_token=access_token,
                token_type="bearer",
                expires_in=settings.JWT_EXPIRES_MINUTES * 60,
            ),
        )
