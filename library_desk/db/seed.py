"""
Script de seed para criar dados iniciais no banco.

Uso:
    python -m library_desk.db.seed

Cria as tabelas (se não existirem) e a conta de bibliotecário inicial.
"""

import asyncio

from sqlalchemy import select

import library_desk.models  # noqa: F401  registra todas as tabelas em Base.metadata
from library_desk.core.config import get_settings
from library_desk.core.logging import get_logger, setup_logging
from library_desk.core.security import hash_password
from library_desk.db.session import Base, async_session_factory, engine
from library_desk.models.enums import MemberRole
from library_desk.models.member import Member

logger = get_logger(__name__)
settings = get_settings()


async def create_schema() -> None:
    """Cria as tabelas que ainda não existem."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema verificado")


async def create_staff() -> None:
    """
    Cria a conta de bibliotecário se não existir.

    Lê email e senha do .env (ADMIN_EMAIL, ADMIN_PASSWORD).
    """
    async with async_session_factory() as db:
        result = await db.execute(
            select(Member).where(Member.email == settings.ADMIN_EMAIL)
        )
        if result.scalar_one_or_none():
            logger.info(f"Bibliotecário já existe: {settings.ADMIN_EMAIL}")
            return

        staff = Member(
            name="Bibliotecário",
            email=settings.ADMIN_EMAIL,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=MemberRole.STAFF,
        )
        db.add(staff)
        await db.commit()
        await db.refresh(staff)

        logger.info(f"Bibliotecário criado: {settings.ADMIN_EMAIL} (ID: {staff.id})")


async def main() -> None:
    """Executa todos os seeds."""
    setup_logging()
    logger.info("Executando seeds...")
    await create_schema()
    await create_staff()
    await engine.dispose()
    logger.info("Seeds concluídos!")


if __name__ == "__main__":
    asyncio.run(main())
