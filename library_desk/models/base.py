"""
Mixins e utilitários comuns aos models SQLAlchemy.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """
    Data/hora atual em UTC, sem tzinfo.

    Colunas de domínio (reserved_at, due_date...) são DateTime sem timezone
    e guardam sempre UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UUIDMixin:
    """Mixin que adiciona ID do tipo UUID como primary key."""
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """Mixin que adiciona timestamps de criação e atualização."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
