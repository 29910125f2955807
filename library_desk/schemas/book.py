"""
Schemas Pydantic para Book.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, HttpUrl, field_validator, model_validator

from library_desk.models.book import split_tags
from library_desk.schemas.base import BaseSchema, TimestampSchema

MIN_PUBLISHED_YEAR = 1000


def _max_published_year() -> int:
    return datetime.now().year + 1


def _coerce_tags(v):
    """Aceita lista ou texto separado por vírgulas."""
    if v is None:
        return v
    if isinstance(v, str):
        return split_tags(v)
    return [tag.strip() for tag in v if tag and tag.strip()]


class BookBase(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255, examples=["Dom Casmurro"])
    author: str = Field(..., min_length=1, max_length=255, examples=["Machado de Assis"])
    isbn: str = Field(..., min_length=1, max_length=255, examples=["9788535910663"])
    category: str = Field(..., min_length=1, max_length=255, examples=["Romance"])
    description: str = Field(..., min_length=1)
    tags: list[str] = Field(..., min_length=1, examples=[["clássico", "brasileiro"]])
    published_year: int = Field(..., examples=[1899])
    image_url: HttpUrl | None = Field(None, max_length=2048)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _coerce_tags(v)

    @field_validator("published_year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if not MIN_PUBLISHED_YEAR <= v <= _max_published_year():
            raise ValueError(
                f"Ano de publicação deve estar entre {MIN_PUBLISHED_YEAR} "
                f"e {_max_published_year()}"
            )
        return v


class BookCreate(BookBase):
    """
    Schema para criação de livro.

    available_copies é opcional: por padrão todos os exemplares ficam
    disponíveis. Nunca pode passar de total_copies.
    """
    total_copies: int = Field(..., ge=0, examples=[3])
    available_copies: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def check_copies(self) -> "BookCreate":
        if self.available_copies is None:
            self.available_copies = self.total_copies
        elif self.available_copies > self.total_copies:
            raise ValueError("available_copies não pode ser maior que total_copies")
        return self


class BookUpdate(BaseSchema):
    """
    Schema para atualização de livro.

    Alterar total_copies desloca available_copies pela mesma diferença.
    """
    title: str | None = Field(None, min_length=1, max_length=255)
    author: str | None = Field(None, min_length=1, max_length=255)
    isbn: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    tags: list[str] | None = Field(None, min_length=1)
    published_year: int | None = None
    image_url: HttpUrl | None = Field(None, max_length=2048)
    total_copies: int | None = Field(None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _coerce_tags(v)

    @field_validator("published_year")
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        if v is not None and not MIN_PUBLISHED_YEAR <= v <= _max_published_year():
            raise ValueError(
                f"Ano de publicação deve estar entre {MIN_PUBLISHED_YEAR} "
                f"e {_max_published_year()}"
            )
        return v


class BookRead(TimestampSchema):
    """Schema para leitura de livro."""
    id: UUID
    title: str
    author: str
    isbn: str
    category: str
    description: str
    tags: list[str]
    published_year: int
    image_url: str | None
    total_copies: int
    available_copies: int

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _coerce_tags(v) or []


class BookAvailability(BaseSchema):
    """Disponibilidade de um livro (cacheada no Redis)."""
    book_id: UUID
    title: str
    total_copies: int
    available_copies: int
    is_available: bool


class InventoryReport(BaseSchema):
    """
    Conferência do estoque de um livro.

    expected_available = total_copies - pending_reservations - active_loans
    """
    book_id: UUID
    total_copies: int
    available_copies: int
    pending_reservations: int
    active_loans: int
    expected_available: int
    consistent: bool
