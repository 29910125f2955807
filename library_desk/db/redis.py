"""
Conexão com Redis, usada pelo cache de disponibilidade e pelo rate limiting.

O cliente é um global do módulo, criado no startup (`init_redis`) e
fechado no shutdown (`close_redis`). Consumidores devem ler
`library_desk.db.redis.redis_client` no momento do uso, nunca importar
o nome diretamente, já que ele é reatribuído no startup.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from library_desk.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Cliente Redis (None até o startup ou se o Redis estiver indisponível)
redis_client: Optional[redis.Redis] = None


async def init_redis() -> redis.Redis:
    """
    Inicializa a conexão com o Redis.

    Returns:
        Cliente Redis (a conexão real é aberta no primeiro comando).
    """
    global redis_client
    redis_client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
    )
    return redis_client


async def close_redis() -> None:
    """Fecha a conexão com o Redis."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


async def check_redis_connection() -> bool:
    """Retorna True se o Redis responde ao PING."""
    if redis_client is None:
        return False
    try:
        await redis_client.ping()
        return True
    except Exception as e:
        logger.warning(f"Erro ao verificar conexão Redis: {e}")
        return False
