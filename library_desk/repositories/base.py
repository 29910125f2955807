"""
Repository base com operações CRUD genéricas.

Repositories nunca fazem commit: apenas flush. Quem delimita a unidade
atômica é o service, via `library_desk.db.transaction.transaction`.
"""

from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_desk.db.session import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository base com operações CRUD.

    Fornece métodos genéricos para:
    - get_by_id: Buscar por ID
    - create: Criar registro
    - update: Atualizar registro
    - delete: Remover registro
    - paginate: Executar query paginada
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Busca registro por ID (sempre relendo do banco)."""
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> ModelType:
        """Cria novo registro (flush, sem commit)."""
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def update(
        self,
        instance: ModelType,
        **kwargs: Any,
    ) -> ModelType:
        """Atualiza registro existente. Valores None são ignorados."""
        for key, value in kwargs.items():
            if value is not None:
                setattr(instance, key, value)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Remove registro."""
        await self.db.delete(instance)
        await self.db.flush()

    async def paginate(
        self,
        query: Select,
        page: int,
        page_size: int,
    ) -> tuple[list[ModelType], int]:
        """
        Executa `query` paginada.

        A ordenação deve vir na própria query.

        Returns:
            Tupla (itens da página, total sem paginação)
        """
        count_result = await self.db.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        )
        total = count_result.scalar_one()

        skip = (page - 1) * page_size
        result = await self.db.execute(query.offset(skip).limit(page_size))
        return list(result.scalars().all()), total
