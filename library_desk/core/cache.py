"""
Cache de disponibilidade de livros no Redis.

Configurável via variáveis de ambiente:
    - CACHE_ENABLED: bool (default: True)
    - CACHE_AVAILABILITY_TTL_SECONDS: int (default: 15)

Uso:
    data = await cache_service.get_availability(book_id)
    if data is None:
        data = await compute_availability()
        await cache_service.set_availability(book_id, data)

Invalidação (toda operação que altera available_copies):
    reserve, cancel, expire, return_loan, update_book, delete_book
"""

import json
import logging
from typing import Optional
from uuid import UUID

from library_desk.core.config import get_settings
from library_desk.db import redis as redis_db

logger = logging.getLogger(__name__)
settings = get_settings()


class CacheService:
    """
    Cache de disponibilidade (GET /books/{id}/availability).

    Falhas do Redis nunca quebram o request: leitura devolve None,
    escrita e invalidação devolvem False.
    """

    PREFIX_AVAILABILITY = "cache:availability"

    def __init__(self, ttl: Optional[int] = None):
        """
        Args:
            ttl: TTL padrão em segundos (default: config)
        """
        self.ttl = ttl or settings.CACHE_AVAILABILITY_TTL_SECONDS

    def _key(self, book_id: UUID) -> str:
        return f"{self.PREFIX_AVAILABILITY}:{book_id}"

    def _client(self):
        if not settings.CACHE_ENABLED:
            return None
        return redis_db.redis_client

    async def get_availability(self, book_id: UUID) -> Optional[dict]:
        """Busca availability do cache (None se ausente ou cache desligado)."""
        client = self._client()
        if client is None:
            return None

        try:
            data = await client.get(self._key(book_id))
            return json.loads(data) if data else None
        except Exception as e:
            logger.warning(f"Erro ao buscar cache availability: {e}")
            return None

    async def set_availability(
        self,
        book_id: UUID,
        data: dict,
        ttl: Optional[int] = None,
    ) -> bool:
        """Salva availability no cache."""
        client = self._client()
        if client is None:
            return False

        try:
            await client.setex(
                self._key(book_id),
                ttl or self.ttl,
                json.dumps(data, default=str),
            )
            return True
        except Exception as e:
            logger.warning(f"Erro ao salvar cache availability: {e}")
            return False

    async def invalidate_availability(self, book_id: UUID) -> bool:
        """Remove a availability de um livro do cache."""
        client = self._client()
        if client is None:
            return False

        try:
            await client.delete(self._key(book_id))
            return True
        except Exception as e:
            logger.warning(f"Erro ao invalidar cache availability: {e}")
            return False


# Instância global para uso nos routers
cache_service = CacheService()
