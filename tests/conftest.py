"""
Fixtures compartilhadas para testes.

Cada teste recebe um banco SQLite próprio (arquivo em tmp_path, via
aiosqlite) com o schema criado a partir dos models. Arquivo em vez de
":memory:" para que sessões diferentes enxerguem o mesmo banco, o que os
testes de concorrência precisam.
"""

import itertools
import uuid
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import library_desk.models  # noqa: F401  registra todas as tabelas em Base.metadata
from library_desk.core.security import create_access_token, hash_password
from library_desk.db.session import Base, get_db
from library_desk.main import app
from library_desk.models.book import Book
from library_desk.models.enums import MemberRole
from library_desk.models.member import Member

PASSWORD = "Senha123!"
# bcrypt é lento de propósito: gera o hash uma vez só para todos os membros
PASSWORD_HASH = hash_password(PASSWORD)

_sequence = itertools.count(1)


# ==========================================
# Event loop configuration
# ==========================================

@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ==========================================
# Database fixtures
# ==========================================

@pytest.fixture
async def test_engine(tmp_path):
    """Engine SQLite com NullPool: cada sessão abre sua própria conexão."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'library_desk.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sessão usada pelos services nos testes."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def load(session_factory):
    """
    Lê um registro do banco numa sessão nova.

    Uso:
        book = await load(Book, book_id)
    """
    async def _load(model, id):
        async with session_factory() as session:
            return await session.get(model, id)

    return _load


# ==========================================
# Data factories
# ==========================================

@pytest.fixture
def make_member(session_factory):
    """
    Cria um membro e devolve o objeto (desanexado, com atributos carregados).

    Uso:
        student = await make_member(fee_balance=Decimal("5.00"))
    """
    async def _make(
        role: MemberRole = MemberRole.STUDENT,
        fee_balance: Decimal = Decimal("0.00"),
        **kwargs,
    ) -> Member:
        n = next(_sequence)
        values = {
            "name": f"Aluno {n}",
            "email": f"aluno{n}@escola.edu",
            "reg_number": f"2024{n:04d}" if role == MemberRole.STUDENT else None,
            "password_hash": PASSWORD_HASH,
            "role": role,
            "fee_balance": fee_balance,
        }
        values.update(kwargs)

        async with session_factory() as session:
            member = Member(**values)
            session.add(member)
            await session.commit()
            await session.refresh(member)
            return member

    return _make


@pytest.fixture
def make_book(session_factory):
    """
    Cria um livro com `total` exemplares (todos disponíveis por padrão).

    Uso:
        book = await make_book(total=3)
    """
    async def _make(total: int = 1, available: int | None = None, **kwargs) -> Book:
        n = next(_sequence)
        values = {
            "title": f"Livro {n}",
            "author": "Machado de Assis",
            "isbn": f"978-85-{n:06d}",
            "category": "Romance",
            "description": "Descrição do livro",
            "tags": "clássico,brasileiro",
            "published_year": 1899,
            "total_copies": total,
            "available_copies": total if available is None else available,
        }
        values.update(kwargs)

        async with session_factory() as session:
            book = Book(**values)
            session.add(book)
            await session.commit()
            await session.refresh(book)
            return book

    return _make


@pytest.fixture
async def staff(make_member) -> Member:
    return await make_member(role=MemberRole.STAFF, name="Bibliotecária")


@pytest.fixture
async def student(make_member) -> Member:
    return await make_member()


# ==========================================
# HTTP Client fixtures
# ==========================================

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP assíncrono para testes.

    Substitui a dependency get_db para usar o banco do teste.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==========================================
# Auth fixtures
# ==========================================

def auth_headers_for(member: Member) -> dict:
    token = create_access_token(
        subject=str(member.id),
        extra_data={"role": member.role.value},
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers(staff: Member) -> dict:
    """Headers de autenticação com token de bibliotecário."""
    return auth_headers_for(staff)


@pytest.fixture
def student_headers(student: Member) -> dict:
    """Headers de autenticação com token de aluno."""
    return auth_headers_for(student)


@pytest.fixture
def random_uuid() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def headers_for():
    """
    Headers de autenticação para qualquer membro.

    Uso:
        response = await client.get("/api/v1/auth/me", headers=headers_for(member))
    """
    return auth_headers_for


@pytest.fixture
def member_password() -> str:
    """Senha em texto plano de todos os membros criados por make_member."""
    return PASSWORD
