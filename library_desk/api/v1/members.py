"""
Endpoints de Membros (gestão de alunos pelo bibliotecário).

Contratos:
    - POST /members: Cadastra aluno e devolve a senha inicial
    - GET /members: Lista alunos (busca e filtro de saldo devedor)
    - GET /members/{id}: Detalhes do membro
    - PUT /members/{id}: Atualiza membro
    - DELETE /members/{id}: Remove aluno
    - POST /members/import: Importa alunos de um CSV

Todos exigem role STAFF.

Status codes:
    - 200: Sucesso
    - 201: Criado com sucesso
    - 400: Regra de negócio (ex.: aluno com reservas pendentes)
    - 401: Não autenticado
    - 403: Sem permissão
    - 404: Membro não encontrado
    - 422: Dados inválidos, email/matrícula duplicados ou arquivo inválido
"""

import csv
import io
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from library_desk.core.config import get_settings
from library_desk.core.deps import DbSession, StaffMember
from library_desk.core.exceptions import ValidationFailedError
from library_desk.core.rate_limit import rate_limit_default
from library_desk.schemas.base import MessageResponse, PaginatedResponse
from library_desk.schemas.member import (
    ImportReport,
    MemberCreate,
    MemberCreated,
    MemberRead,
    MemberUpdate,
)
from library_desk.services.member import MemberService

router = APIRouter(prefix="/members", tags=["Members"])
settings = get_settings()

IMPORT_EXTENSIONS = (".csv", ".txt")


async def _read_csv_rows(file: UploadFile) -> list[list[str]]:
    """
    Lê o upload e devolve as linhas do CSV.

    Raises:
        ValidationFailedError: Extensão, tamanho ou encoding inválidos
    """
    operation = "member_import"

    if not file.filename or not file.filename.lower().endswith(IMPORT_EXTENSIONS):
        raise ValidationFailedError.for_field(
            "file", "Envie um arquivo .csv ou .txt", operation=operation
        )

    content = await file.read(settings.IMPORT_MAX_BYTES + 1)
    if len(content) > settings.IMPORT_MAX_BYTES:
        raise ValidationFailedError.for_field(
            "file",
            f"Arquivo maior que {settings.IMPORT_MAX_BYTES // 1024} KB",
            operation=operation,
        )

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationFailedError.for_field(
            "file", "Arquivo precisa estar em UTF-8", operation=operation
        )

    try:
        return list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise ValidationFailedError.for_field(
            "file", f"CSV inválido: {e}", operation=operation
        ) from e


@router.post(
    "",
    response_model=MemberCreated,
    status_code=status.HTTP_201_CREATED,
    name="member_create",
    summary="Cadastrar aluno",
    description="Cadastra um aluno. A senha inicial (primeiro nome + matrícula) é devolvida uma única vez.",
)
async def create_member(
    data: MemberCreate,
    db: DbSession,
    staff: StaffMember,
) -> MemberCreated:
    service = MemberService(db)
    member, initial_password = await service.create_member(data)
    return MemberCreated(
        member=MemberRead.model_validate(member),
        initial_password=initial_password,
    )


@router.get(
    "",
    response_model=PaginatedResponse[MemberRead],
    summary="Listar alunos",
)
async def list_members(
    db: DbSession,
    staff: StaffMember,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Itens por página"),
    search: str | None = Query(None, description="Trecho de nome, matrícula ou email"),
    with_balance: bool = Query(False, description="Apenas alunos com saldo devedor"),
) -> PaginatedResponse[MemberRead]:
    service = MemberService(db)
    members, total = await service.list_members(
        search=search,
        with_balance=with_balance,
        page=page,
        page_size=page_size,
    )
    return PaginatedResponse.create(
        items=[MemberRead.model_validate(m) for m in members],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/import",
    response_model=ImportReport,
    name="member_import",
    summary="Importar alunos",
    description=(
        "Importa alunos de um CSV com as colunas full_name, email, reg_number "
        "e fee_balance. Linhas inválidas são reportadas sem interromper a importação."
    ),
)
async def import_members(
    db: DbSession,
    staff: StaffMember,
    file: UploadFile = File(..., description="Arquivo .csv ou .txt (UTF-8)"),
    _: None = Depends(rate_limit_default),
) -> ImportReport:
    """
    Importação em lote.

    Raises:
        422: Arquivo inválido ou coluna obrigatória ausente
    """
    rows = await _read_csv_rows(file)
    service = MemberService(db)
    return await service.import_members(rows)


@router.get(
    "/{member_id}",
    response_model=MemberRead,
    summary="Detalhes do membro",
)
async def get_member(
    member_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> MemberRead:
    service = MemberService(db)
    member = await service.get_member(member_id)
    return MemberRead.model_validate(member)


@router.put(
    "/{member_id}",
    response_model=MemberRead,
    name="member_update",
    summary="Atualizar membro",
)
async def update_member(
    member_id: UUID,
    data: MemberUpdate,
    db: DbSession,
    staff: StaffMember,
) -> MemberRead:
    """
    Atualiza dados do membro, inclusive o saldo devedor.

    Raises:
        404: Membro não encontrado
        422: Email ou matrícula em uso por outro membro
    """
    service = MemberService(db)
    member = await service.update_member(member_id, data)
    return MemberRead.model_validate(member)


@router.delete(
    "/{member_id}",
    response_model=MessageResponse,
    summary="Remover aluno",
    description="Remove um aluno sem reservas pendentes nem empréstimos ativos.",
)
async def delete_member(
    member_id: UUID,
    db: DbSession,
    staff: StaffMember,
) -> MessageResponse:
    service = MemberService(db)
    await service.delete_member(member_id)
    return MessageResponse(message="Membro removido com sucesso")
