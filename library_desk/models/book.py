"""
Model de livro do catálogo.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from library_desk.db.session import Base
from library_desk.models.base import UUIDMixin, TimestampMixin

TAG_SEPARATOR = ","


def join_tags(tags: list[str]) -> str:
    """Serializa tags para a coluna de texto (sem vazios nem repetidas)."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return TAG_SEPARATOR.join(seen)


def split_tags(value: str | None) -> list[str]:
    if not value:
        return []
    return [tag.strip() for tag in value.split(TAG_SEPARATOR) if tag.strip()]


class Book(Base, UUIDMixin, TimestampMixin):
    """
    Livro do catálogo com contagem de exemplares.

    Invariante: 0 <= available_copies <= total_copies (também garantida
    por CHECK no banco). available_copies só é alterado por UPDATE
    condicional em BookRepository.

    Attributes:
        id: UUID único do livro
        title: Título
        author: Autor (texto livre)
        isbn: ISBN único
        category: Categoria
        description: Descrição
        tags: Tags separadas por vírgula (ver join_tags/split_tags)
        published_year: Ano de publicação
        image_url: URL da capa (opcional)
        total_copies: Exemplares do acervo
        available_copies: Exemplares livres para reserva
    """
    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    isbn: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published_year: Mapped[int] = mapped_column(Integer, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_available_copies",
        ),
    )

    def __repr__(self) -> str:
        return f"<Book {self.title}>"

    @property
    def held_copies(self) -> int:
        """Exemplares fora da prateleira (reservas pendentes + empréstimos ativos)."""
        return self.total_copies - self.available_copies
