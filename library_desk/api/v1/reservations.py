"""
Endpoints de Reservas (Reservation).

Contratos:
    - POST /reservations: Reserva um exemplar
    - GET /reservations: Lista reservas (gestão)
    - GET /reservations/my: Reservas do membro autenticado
    - GET /reservations/{id}: Detalhes da reserva
    - PATCH /reservations/{id}/confirm-pickup: Confirma retirada e cria empréstimo
    - PATCH /reservations/{id}/cancel: Cancela reserva
    - PATCH /reservations/{id}/expire: Expira reserva

Autorização:
    - STUDENT: reserva para si, vê e cancela apenas as próprias reservas
    - STAFF: reserva para qualquer aluno, vê todas, confirma e expira

Rate Limiting aplicado:
    - POST /reservations: 30 req/min (rate_limit_reserve)

Status codes:
    - 200: Sucesso
    - 201: Criado com sucesso
    - 400: Regra de negócio (sem exemplares, reserva duplicada,
      status inválido, saldo devedor)
    - 401: Não autenticado
    - 403: Sem permissão
    - 404: Reserva, livro ou membro não encontrado
    - 429: Rate limit excedido
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from library_desk.core.deps import CurrentMember, DbSession, StaffMember
from library_desk.core.rate_limit import rate_limit_reserve
from library_desk.models.enums import ReservationStatus
from library_desk.models.member import Member
from library_desk.schemas.base import PaginatedResponse
from library_desk.schemas.reservation import (
    PickupResponse,
    ReservationCreate,
    ReservationDetail,
    ReservationResponse,
)
from library_desk.services.reservation import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _ensure_access(current_member: Member, reservation: ReservationDetail) -> None:
    """Aluno só acessa as próprias reservas."""
    if not current_member.is_staff and reservation.member_id != current_member.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você não tem permissão para acessar esta reserva",
        )


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    name="reserve",
    summary="Reservar livro",
    description="Reserva um exemplar disponível. Bibliotecários podem informar member_id.",
)
async def create_reservation(
    data: ReservationCreate,
    db: DbSession,
    current_member: CurrentMember,
    _: None = Depends(rate_limit_reserve),
) -> ReservationResponse:
    """
    Cria reserva pendente e retira um exemplar do estoque.

    Raises:
        400: Sem exemplares disponíveis ou reserva pendente duplicada
        403: Aluno tentando reservar para outro membro
        404: Livro ou membro não encontrado
    """
    member_id = current_member.id
    if data.member_id and data.member_id != current_member.id:
        if not current_member.is_staff:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Apenas bibliotecários reservam para outros membros",
            )
        member_id = data.member_id

    service = ReservationService(db)
    return await service.reserve(member_id, data.book_id)


@router.get(
    "",
    response_model=PaginatedResponse[ReservationDetail],
    summary="Listar reservas",
    description="Sem filtro de status traz pendentes e retiradas, mais recentes primeiro.",
)
async def list_reservations(
    db: DbSession,
    current_member: CurrentMember,
    member_id: UUID | None = Query(None, description="Filtrar por membro (apenas STAFF)"),
    book_id: UUID | None = Query(None, description="Filtrar por livro"),
    status_filter: list[ReservationStatus] | None = Query(
        None,
        alias="status",
        description="Um ou mais status: pending, confirmed_pickup, cancelled, expired",
    ),
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
) -> PaginatedResponse[ReservationDetail]:
    """
    Lista reservas com paginação e filtros.

    Autorização:
        - STUDENT: vê apenas as próprias (member_id ignorado)
        - STAFF: pode filtrar por qualquer membro
    """
    effective_member_id = member_id if current_member.is_staff else current_member.id

    service = ReservationService(db)
    return await service.list_reservations(
        member_id=effective_member_id,
        book_id=book_id,
        statuses=status_filter,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/my",
    response_model=PaginatedResponse[ReservationDetail],
    summary="Minhas reservas",
    description="Todas as reservas do membro autenticado, em qualquer status.",
)
async def my_reservations(
    db: DbSession,
    current_member: CurrentMember,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
) -> PaginatedResponse[ReservationDetail]:
    service = ReservationService(db)
    return await service.list_member_reservations(
        current_member.id,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetail,
    summary="Detalhes da reserva",
)
async def get_reservation(
    reservation_id: UUID,
    db: DbSession,
    current_member: CurrentMember,
) -> ReservationDetail:
    """
    Raises:
        403: Reserva de outro membro
        404: Reserva não encontrada
    """
    service = ReservationService(db)
    reservation = await service.get_detail(reservation_id)
    _ensure_access(current_member, reservation)
    return reservation


@router.patch(
    "/{reservation_id}/confirm-pickup",
    response_model=PickupResponse,
    name="confirm_pickup",
    summary="Confirmar retirada",
    description="Confirma a retirada e cria o empréstimo. **Requer role STAFF.**",
)
async def confirm_pickup(
    reservation_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> PickupResponse:
    """
    PENDING -> CONFIRMED_PICKUP, com criação do Loan na mesma transação.

    Raises:
        400: Reserva não está pendente ou membro com saldo devedor
        404: Reserva não encontrada
    """
    service = ReservationService(db)
    return await service.confirm_pickup(reservation_id)


@router.patch(
    "/{reservation_id}/cancel",
    response_model=ReservationResponse,
    name="cancel",
    summary="Cancelar reserva",
    description="Cancela uma reserva pendente e devolve o exemplar ao estoque.",
)
async def cancel_reservation(
    reservation_id: UUID,
    db: DbSession,
    current_member: CurrentMember,
) -> ReservationResponse:
    """
    Autorização:
        - STUDENT: apenas as próprias reservas
        - STAFF: qualquer reserva

    Raises:
        400: Reserva não está pendente
        403: Reserva de outro membro
        404: Reserva não encontrada
    """
    service = ReservationService(db)
    reservation = await service.get_detail(reservation_id)
    _ensure_access(current_member, reservation)
    return await service.cancel(reservation_id)


@router.patch(
    "/{reservation_id}/expire",
    response_model=ReservationResponse,
    name="expire",
    summary="Expirar reserva",
    description="Marca uma reserva pendente como expirada. **Requer role STAFF.**",
)
async def expire_reservation(
    reservation_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> ReservationResponse:
    service = ReservationService(db)
    return await service.expire(reservation_id)
