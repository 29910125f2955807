"""
Repository para operações de Book no banco de dados.

Toda alteração de available_copies passa por UPDATE condicional: a checagem
e a escrita acontecem no mesmo comando, então duas transações concorrentes
não conseguem levar o mesmo exemplar.
"""

from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.models.book import Book, TAG_SEPARATOR
from library_desk.repositories.base import BaseRepository


class BookRepository(BaseRepository[Book]):
    """Repository para operações CRUD de Book."""

    def __init__(self, db: AsyncSession):
        super().__init__(Book, db)

    async def isbn_exists(self, isbn: str, exclude_id: UUID | None = None) -> bool:
        """Verifica se o ISBN já está em uso (opcionalmente ignorando um livro)."""
        query = select(Book.id).where(Book.isbn == isbn)
        if exclude_id:
            query = query.where(Book.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def search(
        self,
        search: str | None = None,
        category: str | None = None,
        tag: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Book], int]:
        """
        Busca livros com filtros e paginação.

        Args:
            search: Trecho de título, autor ou ISBN
            category: Categoria exata
            tag: Uma das tags do livro
            page: Número da página
            page_size: Tamanho da página

        Returns:
            Tupla (lista de livros, total)
        """
        query = select(Book)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Book.title.ilike(pattern),
                    Book.author.ilike(pattern),
                    Book.isbn.ilike(pattern),
                )
            )

        if category:
            query = query.where(Book.category == category)

        if tag:
            # tags são gravadas como "a,b,c": compara com vírgulas nas pontas
            wrapped = TAG_SEPARATOR + Book.tags + TAG_SEPARATOR
            query = query.where(
                wrapped.contains(f"{TAG_SEPARATOR}{tag}{TAG_SEPARATOR}", autoescape=True)
            )

        return await self.paginate(query.order_by(Book.title), page, page_size)

    async def claim_copy(self, book_id: UUID) -> bool:
        """
        Retira um exemplar do estoque disponível.

        Returns:
            True se havia exemplar disponível e ele foi retirado
        """
        result = await self.db.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies > 0)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_copy(self, book_id: UUID) -> bool:
        """
        Devolve um exemplar ao estoque disponível.

        Returns:
            False se o livro já estava com todos os exemplares disponíveis
        """
        result = await self.db.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def resize(self, book_id: UUID, delta: int) -> bool:
        """
        Soma `delta` a total_copies e available_copies de uma vez.

        Exemplares reservados ou emprestados não podem ser removidos do
        acervo: o UPDATE só acontece se available_copies continuar >= 0.

        Returns:
            True se o acervo foi ajustado
        """
        result = await self.db.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies + delta >= 0)
            .values(
                total_copies=Book.total_copies + delta,
                available_copies=Book.available_copies + delta,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
