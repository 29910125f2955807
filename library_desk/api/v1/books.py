"""
Endpoints de Livros (catálogo).

Contratos:
    - POST /books: Cadastra livro (somente STAFF)
    - GET /books: Lista livros paginado com filtros
    - GET /books/{id}: Detalhes do livro
    - PUT /books/{id}: Atualiza livro (somente STAFF)
    - DELETE /books/{id}: Remove livro (somente STAFF)
    - GET /books/{id}/availability: Disponibilidade (cache Redis)
    - GET /books/{id}/inventory: Conferência de estoque (somente STAFF)

Status codes:
    - 200: Sucesso
    - 201: Criado com sucesso
    - 400: Regra de negócio (ex.: livro com reservas pendentes)
    - 401: Não autenticado
    - 403: Sem permissão (não é staff)
    - 404: Livro não encontrado
    - 422: Dados inválidos (ex.: ISBN duplicado)
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from library_desk.core.deps import CurrentMember, DbSession, StaffMember
from library_desk.schemas.base import MessageResponse, PaginatedResponse
from library_desk.schemas.book import (
    BookAvailability,
    BookCreate,
    BookRead,
    BookUpdate,
    InventoryReport,
)
from library_desk.services.book import BookService

router = APIRouter(prefix="/books", tags=["Books"])


@router.post(
    "",
    response_model=BookRead,
    status_code=status.HTTP_201_CREATED,
    name="book_create",
    summary="Cadastrar livro",
    description="Cadastra um livro no catálogo. **Requer role STAFF.**",
)
async def create_book(
    data: BookCreate,
    db: DbSession,
    staff: StaffMember,
) -> BookRead:
    """
    Cadastra novo livro.

    available_copies é opcional e, se omitido, igual a total_copies.

    Raises:
        422: ISBN já cadastrado ou dados inválidos
    """
    service = BookService(db)
    book = await service.create_book(data)
    return BookRead.model_validate(book)


@router.get(
    "",
    response_model=PaginatedResponse[BookRead],
    summary="Listar livros",
    description="Lista livros com paginação e filtros.",
)
async def list_books(
    db: DbSession,
    current_member: CurrentMember,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    search: str | None = Query(None, description="Trecho de título, autor ou ISBN"),
    category: str | None = Query(None, description="Filtrar por categoria"),
    tag: str | None = Query(None, description="Filtrar por tag"),
) -> PaginatedResponse[BookRead]:
    service = BookService(db)
    books, total = await service.list_books(
        search=search,
        category=category,
        tag=tag,
        page=page,
        page_size=page_size,
    )

    return PaginatedResponse.create(
        items=[BookRead.model_validate(b) for b in books],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{book_id}",
    response_model=BookRead,
    summary="Detalhes do livro",
)
async def get_book(
    book_id: UUID,
    db: DbSession,
    current_member: CurrentMember,
) -> BookRead:
    service = BookService(db)
    book = await service.get_book(book_id)
    return BookRead.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookRead,
    name="book_update",
    summary="Atualizar livro",
    description="Atualiza dados de um livro. **Requer role STAFF.**",
)
async def update_book(
    book_id: UUID,
    data: BookUpdate,
    db: DbSession,
    staff: StaffMember,
) -> BookRead:
    """
    Atualiza livro.

    Alterar total_copies desloca available_copies pela mesma diferença.

    Raises:
        404: Livro não encontrado
        422: ISBN em uso ou total_copies abaixo dos exemplares em uso
    """
    service = BookService(db)
    book = await service.update_book(book_id, data)
    return BookRead.model_validate(book)


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    summary="Remover livro",
    description="Remove livro. **Requer role STAFF.** Não permite se houver reservas pendentes ou empréstimos ativos.",
)
async def delete_book(
    book_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> MessageResponse:
    service = BookService(db)
    await service.delete_book(book_id)
    return MessageResponse(message="Livro removido com sucesso")


@router.get(
    "/{book_id}/availability",
    response_model=BookAvailability,
    summary="Verificar disponibilidade",
    description="Exemplares disponíveis para reserva. Resposta cacheada por alguns segundos.",
)
async def check_availability(
    book_id: UUID,
    db: DbSession,
    current_member: CurrentMember,
) -> BookAvailability:
    service = BookService(db)
    return await service.check_availability(book_id)


@router.get(
    "/{book_id}/inventory",
    response_model=InventoryReport,
    summary="Conferir estoque",
    description="Compara available_copies com reservas pendentes e empréstimos ativos. **Requer role STAFF.**",
)
async def check_inventory(
    book_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> InventoryReport:
    service = BookService(db)
    return await service.check_inventory(book_id)
