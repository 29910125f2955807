"""
Utilitários de segurança: hash de senha, senha inicial de membros e JWT.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from library_desk.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def hash_password(password: str) -> str:
    """Gera hash bcrypt da senha."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica se a senha corresponde ao hash.

    Hash malformado conta como senha incorreta.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except Exception as e:
        logger.debug(f"Erro na verificação de senha: {type(e).__name__}")
        return False


def generate_initial_password(full_name: str, reg_number: str) -> str:
    """
    Senha inicial de um membro: primeiro nome + número de matrícula.

    Exemplo:
        >>> generate_initial_password("Ana Maria Souza", "2024001")
        'Ana2024001'
    """
    first_name = full_name.strip().split(" ", 1)[0]
    return f"{first_name}{reg_number.strip()}"


def create_access_token(
    subject: str,
    extra_data: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Cria token JWT.

    Args:
        subject: ID do membro
        extra_data: Dados adicionais para o payload (ex.: role)
        expires_delta: Tempo de expiração customizado

    Returns:
        Token JWT assinado
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRES_MINUTES))

    payload: dict[str, Any] = {"sub": subject, "exp": expire, "iat": now}
    if extra_data:
        payload.update(extra_data)

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decodifica e valida token JWT.

    Returns:
        Payload do token ou None se inválido/expirado
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
