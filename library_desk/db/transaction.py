"""
Unidade atômica de escrita.

Services abrem um bloco `transaction` por operação de negócio; repositories
só fazem flush. Assim, ou tudo o que a operação escreveu é confirmado, ou
nada é.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.exceptions import StoreFailureError
from library_desk.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def transaction(
    session: AsyncSession,
    operation: str,
) -> AsyncIterator[AsyncSession]:
    """
    Tudo o que for executado no bloco é confirmado junto ou desfeito junto.

    - Saída normal: commit
    - Erro de negócio (LibraryError) ou qualquer outro: rollback e relança
    - SQLAlchemyError: rollback, log com stacktrace e StoreFailureError
      com mensagem genérica (detalhes internos não vazam para o cliente)

    Uso:
        async with transaction(self.db, "reserve"):
            ...

    Args:
        session: Sessão do request
        operation: Nome da operação (vai para o log e para o erro)
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception(f"Falha no banco durante '{operation}': {type(e).__name__}")
        raise StoreFailureError(operation=operation) from e
    except BaseException:
        await session.rollback()
        raise
