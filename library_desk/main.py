"""
Ponto de entrada da aplicação FastAPI.

Este módulo configura a aplicação FastAPI, inclui rotas, registra os
handlers de erro e define o ciclo de vida (startup/shutdown).
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from library_desk.api.v1.router import api_router
from library_desk.core.config import get_settings
from library_desk.core.exceptions import (
    LibraryError,
    ValidationFailedError,
    library_error_handler,
)
from library_desk.core.logging import setup_logging, get_logger
from library_desk.db.session import check_database_connection, engine
from library_desk.db.redis import init_redis, close_redis, check_redis_connection
from library_desk.schemas.health import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

# Prefixos de `loc` que o FastAPI adiciona e não interessam ao cliente
REQUEST_LOCATIONS = ("body", "query", "path", "header")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    Startup:
        - Configura logging
        - Conecta ao Redis (opcional: cache e rate limit degradam sem ele)
        - Verifica conexão com o banco

    Shutdown:
        - Fecha conexão com Redis
        - Fecha pool de conexões do banco
    """
    setup_logging()
    logger.info(f"Iniciando {settings.APP_NAME} em ambiente {settings.ENVIRONMENT}")

    try:
        await init_redis()
        if await check_redis_connection():
            logger.info("Conexão com Redis estabelecida")
        else:
            logger.warning("Redis não disponível - cache e rate limit desabilitados")
    except Exception as e:
        logger.warning(f"Falha ao conectar ao Redis: {e}")

    success, error = await check_database_connection()
    if success:
        logger.info("Conexão com o banco estabelecida")
    else:
        logger.warning(f"Banco não disponível: {error}")

    yield

    logger.info(f"Encerrando {settings.APP_NAME}")
    await close_redis()
    await engine.dispose()


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Erros de validação do FastAPI no mesmo formato dos erros de negócio.

    A operação é o `name` da rota (ex.: "member_create", "book_update").
    """
    route = request.scope.get("route")
    errors = []
    for error in exc.errors():
        loc = tuple(error.get("loc", ()))
        if loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        errors.append({**error, "loc": loc})

    failure = ValidationFailedError.from_pydantic(
        errors,
        operation=getattr(route, "name", None),
    )
    return await library_error_handler(request, failure)


app = FastAPI(
    title=settings.APP_NAME,
    description="API REST para gestão de acervo, alunos, reservas e empréstimos de biblioteca",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_exception_handler(LibraryError, library_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Inclui rotas da API v1
app.include_router(api_router)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Verifica status da aplicação",
    description="Retorna o status da aplicação, do banco e do Redis.",
)
async def health_check() -> HealthResponse:
    """
    Endpoint de healthcheck para monitoramento.

    "healthy" depende apenas do banco; sem Redis a API continua
    funcionando (cache e rate limit ficam desligados).
    """
    db_ok, db_error = await check_database_connection()
    redis_ok = await check_redis_connection()

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        database="ok" if db_ok else (db_error or "error"),
        redis="ok" if redis_ok else "unavailable",
    )
