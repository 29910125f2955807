"""
Endpoints de Empréstimos (Loan).

Empréstimos são criados pela confirmação de retirada de uma reserva
(PATCH /reservations/{id}/confirm-pickup); não há POST /loans.

Contratos:
    - GET /loans: Lista empréstimos com filtros
    - GET /loans/my: Empréstimos ativos do membro autenticado
    - GET /loans/overdue: Empréstimos atrasados (somente STAFF)
    - GET /loans/{id}: Detalhes do empréstimo
    - PATCH /loans/{id}/return: Devolve livro (somente STAFF)

Autorização:
    - STUDENT: vê apenas seus próprios empréstimos
    - STAFF: vê todos e registra devoluções

Status codes:
    - 200: Sucesso
    - 400: Empréstimo já devolvido
    - 401: Não autenticado
    - 403: Sem permissão
    - 404: Empréstimo não encontrado
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from library_desk.core.deps import CurrentMember, DbSession, StaffMember
from library_desk.schemas.base import PaginatedResponse
from library_desk.schemas.loan import LoanDetail, LoanReturn
from library_desk.services.loan import LoanService

router = APIRouter(prefix="/loans", tags=["Loans"])


@router.get(
    "",
    response_model=PaginatedResponse[LoanDetail],
    summary="Listar empréstimos",
    description="Lista empréstimos com filtros. STUDENT vê apenas os próprios.",
)
async def list_loans(
    db: DbSession,
    current_member: CurrentMember,
    member_id: UUID | None = Query(None, description="Filtrar por membro (apenas STAFF)"),
    book_id: UUID | None = Query(None, description="Filtrar por livro"),
    status_filter: Literal["borrowed", "returned", "overdue"] | None = Query(
        None,
        alias="status",
        description="borrowed, returned ou overdue",
    ),
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
) -> PaginatedResponse[LoanDetail]:
    effective_member_id = member_id if current_member.is_staff else current_member.id

    service = LoanService(db)
    return await service.list_loans(
        member_id=effective_member_id,
        book_id=book_id,
        status=status_filter,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/my",
    response_model=list[LoanDetail],
    summary="Meus empréstimos ativos",
)
async def my_active_loans(
    db: DbSession,
    current_member: CurrentMember,
) -> list[LoanDetail]:
    service = LoanService(db)
    return await service.get_member_active_loans(current_member.id)


@router.get(
    "/overdue",
    response_model=list[LoanDetail],
    summary="Empréstimos atrasados",
    description="Empréstimos ativos com prazo vencido, do mais antigo ao mais recente. **Requer role STAFF.**",
)
async def overdue_loans(
    db: DbSession,
    staff: StaffMember,
) -> list[LoanDetail]:
    service = LoanService(db)
    return await service.get_overdue_loans()


@router.get(
    "/{loan_id}",
    response_model=LoanDetail,
    summary="Detalhes do empréstimo",
)
async def get_loan(
    loan_id: UUID,
    db: DbSession,
    current_member: CurrentMember,
) -> LoanDetail:
    """
    Raises:
        403: Empréstimo de outro membro
        404: Empréstimo não encontrado
    """
    service = LoanService(db)
    loan = await service.get_detail(loan_id)

    if not current_member.is_staff and loan.member_id != current_member.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você não tem permissão para ver este empréstimo",
        )
    return loan


@router.patch(
    "/{loan_id}/return",
    response_model=LoanReturn,
    name="return_loan",
    summary="Devolver livro",
    description="Registra a devolução, libera o exemplar e aplica multa por atraso. **Requer role STAFF.**",
)
async def return_loan(
    loan_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> LoanReturn:
    """
    BORROWED -> RETURNED.

    Multa = dias de atraso * FINE_PER_DAY, somada ao saldo devedor do membro.

    Raises:
        400: Empréstimo já devolvido
        404: Empréstimo não encontrado
    """
    service = LoanService(db)
    return await service.return_loan(loan_id)
