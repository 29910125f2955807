"""
Router principal da API v1.

Inclui todos os routers de endpoints.
"""

from fastapi import APIRouter

from library_desk.api.v1.auth import router as auth_router
from library_desk.api.v1.books import router as books_router
from library_desk.api.v1.loans import router as loans_router
from library_desk.api.v1.members import router as members_router
from library_desk.api.v1.reservations import router as reservations_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(members_router)
api_router.include_router(books_router)
api_router.include_router(reservations_router)
api_router.include_router(loans_router)
