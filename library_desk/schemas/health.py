"""
Schemas Pydantic para o endpoint de healthcheck.
"""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """
    Resposta do endpoint de healthcheck.

    Attributes:
        status: "healthy" ou "unhealthy"
        app_name: Nome da aplicação
        environment: Ambiente atual (development, staging, production)
        database: "ok" ou mensagem de erro
        redis: "ok" ou "unavailable"
    """

    status: str
    app_name: str
    environment: str
    database: str
    redis: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "app_name": "Library Desk API",
                    "environment": "development",
                    "database": "ok",
                    "redis": "ok",
                }
            ]
        }
    }
