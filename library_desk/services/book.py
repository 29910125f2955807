"""
Service para lógica de negócio de Book (catálogo).

Regras de negócio:
    - ISBN único
    - available_copies nunca passa de total_copies nem fica negativo
    - Alterar total_copies desloca available_copies pela mesma diferença;
      não é possível remover exemplares que estão reservados ou emprestados
    - Livro com reserva pendente ou empréstimo ativo não pode ser removido
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.core.cache import cache_service
from library_desk.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from library_desk.core.logging import get_logger
from library_desk.db.transaction import transaction
from library_desk.models.book import Book, join_tags
from library_desk.repositories.book import BookRepository
from library_desk.repositories.loan import LoanRepository
from library_desk.repositories.reservation import ReservationRepository
from library_desk.schemas.book import (
    BookAvailability,
    BookCreate,
    BookUpdate,
    InventoryReport,
)

logger = get_logger(__name__)


class BookService:
    """Service para operações de Book."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.book_repo = BookRepository(db)
        self.reservation_repo = ReservationRepository(db)
        self.loan_repo = LoanRepository(db)

    async def get_book(self, book_id: UUID) -> Book:
        """
        Busca livro por ID.

        Raises:
            NotFoundError: Livro não encontrado
        """
        book = await self.book_repo.get_by_id(book_id)
        if not book:
            raise NotFoundError("Livro não encontrado")
        return book

    async def create_book(self, data: BookCreate) -> Book:
        """
        Cadastra um livro.

        Raises:
            ValidationFailedError: ISBN já cadastrado (operation="book_create")
        """
        operation = "book_create"

        async with transaction(self.db, operation):
            if await self.book_repo.isbn_exists(data.isbn):
                raise ValidationFailedError.for_field(
                    "isbn", "ISBN já cadastrado", operation=operation
                )

            book = await self.book_repo.create(
                title=data.title,
                author=data.author,
                isbn=data.isbn,
                category=data.category,
                description=data.description,
                tags=join_tags(data.tags),
                published_year=data.published_year,
                image_url=str(data.image_url) if data.image_url else None,
                total_copies=data.total_copies,
                available_copies=data.available_copies,
            )

        logger.info(f"Livro cadastrado: id={book.id} isbn={book.isbn} copies={book.total_copies}")
        return book

    async def update_book(self, book_id: UUID, data: BookUpdate) -> Book:
        """
        Atualiza um livro.

        Raises:
            NotFoundError: Livro não encontrado
            ValidationFailedError: ISBN em uso ou total_copies menor que os
                exemplares reservados/emprestados (operation="book_update")
        """
        operation = "book_update"
        fields = data.model_dump(exclude_unset=True, exclude={"total_copies"})

        async with transaction(self.db, operation):
            book = await self.book_repo.get_by_id(book_id)
            if not book:
                raise NotFoundError("Livro não encontrado", operation=operation)

            isbn = fields.get("isbn")
            if isbn and isbn != book.isbn and await self.book_repo.isbn_exists(isbn, exclude_id=book_id):
                raise ValidationFailedError.for_field(
                    "isbn", "ISBN já cadastrado", operation=operation
                )

            if data.total_copies is not None and data.total_copies != book.total_copies:
                delta = data.total_copies - book.total_copies
                if not await self.book_repo.resize(book_id, delta):
                    raise ValidationFailedError.for_field(
                        "total_copies",
                        f"{book.held_copies} exemplar(es) reservados ou emprestados; "
                        f"total_copies não pode ficar abaixo disso",
                        operation=operation,
                    )

            if "tags" in fields:
                fields["tags"] = join_tags(fields["tags"])
            if fields.get("image_url") is not None:
                fields["image_url"] = str(fields["image_url"])

            book = await self.book_repo.update(book, **fields)

        logger.info(f"Livro atualizado: id={book_id}")
        await cache_service.invalidate_availability(book_id)
        return book

    async def delete_book(self, book_id: UUID) -> None:
        """
        Remove um livro.

        Raises:
            NotFoundError: Livro não encontrado
            InvalidStateError: Há reservas pendentes ou empréstimos ativos
        """
        operation = "book_delete"

        async with transaction(self.db, operation):
            book = await self.book_repo.get_by_id(book_id)
            if not book:
                raise NotFoundError("Livro não encontrado", operation=operation)

            pending = await self.reservation_repo.count_pending_by_book(book_id)
            active = await self.loan_repo.count_active_by_book(book_id)
            if pending or active:
                raise InvalidStateError(
                    f"Livro possui {pending} reserva(s) pendente(s) e "
                    f"{active} empréstimo(s) ativo(s)",
                    operation=operation,
                )

            await self.book_repo.delete(book)

        logger.info(f"Livro removido: id={book_id}")
        await cache_service.invalidate_availability(book_id)

    async def list_books(
        self,
        search: str | None = None,
        category: str | None = None,
        tag: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Book], int]:
        """Lista livros com filtros e paginação."""
        return await self.book_repo.search(
            search=search,
            category=category,
            tag=tag,
            page=page,
            page_size=page_size,
        )

    async def check_availability(self, book_id: UUID) -> BookAvailability:
        """
        Disponibilidade de um livro, servida do cache quando possível.

        Raises:
            NotFoundError: Livro não encontrado
        """
        cached = await cache_service.get_availability(book_id)
        if cached is not None:
            return BookAvailability(**cached)

        book = await self.get_book(book_id)
        availability = BookAvailability(
            book_id=book.id,
            title=book.title,
            total_copies=book.total_copies,
            available_copies=book.available_copies,
            is_available=book.available_copies > 0,
        )
        await cache_service.set_availability(book_id, availability.model_dump(mode="json"))
        return availability

    async def check_inventory(self, book_id: UUID) -> InventoryReport:
        """
        Confere o estoque de um livro contra reservas e empréstimos.

        Todo exemplar fora da prateleira precisa estar justificado por uma
        reserva pendente ou por um empréstimo ativo:

            available_copies == total_copies - pendentes - empréstimos ativos
        """
        book = await self.get_book(book_id)
        pending = await self.reservation_repo.count_pending_by_book(book_id)
        active = await self.loan_repo.count_active_by_book(book_id)
        expected = book.total_copies - pending - active

        report = InventoryReport(
            book_id=book.id,
            total_copies=book.total_copies,
            available_copies=book.available_copies,
            pending_reservations=pending,
            active_loans=active,
            expected_available=expected,
            consistent=expected == book.available_copies,
        )
        if not report.consistent:
            logger.warning(
                f"Estoque inconsistente: book={book_id} available={book.available_copies} "
                f"expected={expected}"
            )
        return report
