"""
Configuração de logging da aplicação.

Nível configurável via LOG_LEVEL. Cada linha traz timestamp, nível,
nome do logger e mensagem, no mesmo formato para API e scripts (seed).
"""

import logging
import sys
from typing import Optional

from library_desk.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers de terceiros que só interessam em WARNING ou acima
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configura o root logger com um único handler em stdout.

    Args:
        level: Nível de logging. Se não fornecido, usa LOG_LEVEL do .env

    Pode ser chamada mais de uma vez (ex.: reload do uvicorn): os handlers
    anteriores são removidos antes de instalar o novo.
    """
    settings = get_settings()
    log_level = (level or settings.LOG_LEVEL).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configurado com nível: {log_level}")


def get_logger(name: str) -> logging.Logger:
    """
    Retorna um logger para o módulo especificado.

    Args:
        name: Nome do módulo (geralmente __name__)
    """
    return logging.getLogger(name)
