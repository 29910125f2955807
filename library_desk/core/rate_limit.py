"""
Rate limiting com Redis (janela fixa por identificador).

Identifica o cliente pelo `sub` do JWT quando autenticado, senão pelo IP.
Configurável via variáveis de ambiente:
    - RATE_LIMIT_ENABLED: bool (default: True)
    - RATE_LIMIT_REQUESTS: int (default: 60)
    - RATE_LIMIT_WINDOW_SECONDS: int (default: 60)

Uso:
    @router.post("/reservations")
    async def create_reservation(
        _: None = Depends(rate_limit_reserve),
    ):
        ...
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from library_desk.core.config import get_settings
from library_desk.core.security import decode_token
from library_desk.db import redis as redis_db

settings = get_settings()
security = HTTPBearer(auto_error=False)


class RateLimiter:
    """
    Dependency de rate limiting.

    Args:
        requests: Número máximo de requests na janela (default: config)
        window: Janela de tempo em segundos (default: config)
        key_prefix: Prefixo da chave no Redis
    """

    def __init__(
        self,
        requests: Optional[int] = None,
        window: Optional[int] = None,
        key_prefix: str = "rate_limit",
    ):
        self.requests = requests or settings.RATE_LIMIT_REQUESTS
        self.window = window or settings.RATE_LIMIT_WINDOW_SECONDS
        self.key_prefix = key_prefix

    async def __call__(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    ) -> None:
        """
        Incrementa o contador do cliente e bloqueia acima do limite.

        Fail-open: desligado, sem Redis ou com erro no Redis, o request passa.

        Raises:
            HTTPException 429: Rate limit excedido
        """
        if not settings.RATE_LIMIT_ENABLED:
            return

        client = redis_db.redis_client
        if client is None:
            return

        key = f"{self.key_prefix}:{self._get_identifier(request, credentials)}"

        try:
            current = await client.incr(key)
            if current == 1:
                await client.expire(key, self.window)

            if current > self.requests:
                ttl = await client.ttl(key)
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"Rate limit excedido. Tente novamente em {ttl} segundos.",
                    headers={"Retry-After": str(ttl)},
                )
        except HTTPException:
            raise
        except Exception:
            # Redis fora do ar não deve derrubar a API
            return

    @staticmethod
    def _get_identifier(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials],
    ) -> str:
        """
        Identificador do cliente.

        Prioridade:
            1. sub do JWT (membro autenticado)
            2. primeiro IP de X-Forwarded-For
            3. IP da conexão
        """
        if credentials:
            payload = decode_token(credentials.credentials)
            if payload and "sub" in payload:
                return f"member:{payload['sub']}"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"


# Instâncias pré-configuradas
rate_limit_default = RateLimiter()
rate_limit_reserve = RateLimiter(requests=30, window=60, key_prefix="rate_limit:reserve")
rate_limit_auth = RateLimiter(requests=10, window=60, key_prefix="rate_limit:auth")
