"""
Erros de negócio da aplicação.

Cada erro é uma HTTPException com um código estável (`code`), de forma que
os services possam levantá-los diretamente e o FastAPI os converta em
resposta HTTP. O handler registrado em main.py serializa todos no formato
de `ErrorResponse`:

    {
        "error": "fee_balance_outstanding",
        "message": "Membro possui saldo devedor...",
        "operation": "confirm_pickup",
        "details": [{"field": "fee_balance", "message": "..."}]
    }

Taxonomia:
    - NotFoundError (404): entidade referenciada não existe
    - InvalidStateError (400): operação ilegal no estado atual do ciclo de vida
    - UnavailableError (400): não há cópias disponíveis
    - DuplicateReservationError (400): membro já tem reserva pendente do livro
    - FeeBalanceOutstandingError (400): saldo devedor bloqueia a retirada
    - ValidationFailedError (422): dados de entrada inválidos
    - StoreFailureError (500): falha do banco (constraint, conexão, ...)
"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from library_desk.schemas.base import ErrorDetail, ErrorResponse


class LibraryError(HTTPException):
    """Base dos erros de negócio. Não usar diretamente."""

    code: str = "library_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Operação não permitida"

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str | None = None,
        details: list[ErrorDetail] | None = None,
    ):
        self.message = message or self.default_message
        self.operation = operation
        self.details = details or []
        super().__init__(status_code=self.status_code, detail=self.message)

    def to_response(self) -> ErrorResponse:
        """Monta o corpo de resposta padrão."""
        return ErrorResponse(
            error=self.code,
            message=self.message,
            operation=self.operation,
            details=self.details or None,
        )


class NotFoundError(LibraryError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Registro não encontrado"


class InvalidStateError(LibraryError):
    code = "invalid_state"
    default_message = "Operação inválida para o estado atual"


class UnavailableError(LibraryError):
    code = "unavailable"
    default_message = "Nenhuma cópia disponível para reserva"


class DuplicateReservationError(LibraryError):
    code = "duplicate_reservation"
    default_message = "Membro já possui uma reserva pendente para este livro"


class FeeBalanceOutstandingError(LibraryError):
    code = "fee_balance_outstanding"
    default_message = "Membro possui saldo devedor. Quite o saldo antes da retirada."


class ValidationFailedError(LibraryError):
    code = "validation_failed"
    status_code = 422
    default_message = "Dados inválidos"

    @classmethod
    def for_field(
        cls,
        field: str,
        message: str,
        operation: str | None = None,
    ) -> "ValidationFailedError":
        """Atalho para erro de um único campo."""
        return cls(
            message,
            operation=operation,
            details=[ErrorDetail(field=field, message=message)],
        )

    @classmethod
    def from_pydantic(
        cls,
        errors: list[dict[str, Any]],
        operation: str | None = None,
    ) -> "ValidationFailedError":
        """Converte `ValidationError.errors()` em detalhes por campo."""
        details = [
            ErrorDetail(
                field=".".join(str(part) for part in error.get("loc", ())) or None,
                message=error.get("msg", "valor inválido"),
            )
            for error in errors
        ]
        return cls(operation=operation, details=details)


class StoreFailureError(LibraryError):
    code = "store_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Ocorreu um erro ao acessar o banco de dados. Tente novamente."


async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """Handler FastAPI que serializa LibraryError como ErrorResponse."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )
