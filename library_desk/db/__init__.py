"""
Módulo de banco de dados - conexões e sessões.

Exports:
    - Base: Classe base para modelos SQLAlchemy
    - engine: Engine async do SQLAlchemy
    - get_db: Dependency para injeção de sessão
    - init_redis / close_redis: Ciclo de vida do cliente Redis
"""

from library_desk.db.session import (
    Base,
    engine,
    get_db,
    async_session_factory,
)
from library_desk.db.redis import init_redis, close_redis

__all__ = [
    "Base",
    "engine",
    "get_db",
    "async_session_factory",
    "init_redis",
    "close_redis",
]
