"""Shared Supabase table access for the typed repositories"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from supabase import Client

T = TypeVar('T', bound=BaseModel)
CreateT = TypeVar('CreateT', bound=BaseModel)
UpdateT = TypeVar('UpdateT', bound=BaseModel)

RecordId = Union[int, str]


class BaseRepository(Generic[T, CreateT, UpdateT]):
    """
    One table, rows read back as `model_class`.
    Callers never see the Supabase query builder.
    """

    def __init__(self, client: Client, table_name: str, model_class: Type[T]):
        self._client = client
        self._table_name = table_name
        self._model_class = model_class

    def _table(self):
        return self._client.table(self._table_name)

    def _rows_to_models(self, rows: List[Dict[str, Any]]) -> List[T]:
        return [self._model_class(**row) for row in rows]

    def _first(self, rows: List[Dict[str, Any]]) -> Optional[T]:
        return self._model_class(**rows[0]) if rows else None

    async def find_by_id(self, id: RecordId) -> Optional[T]:
        return self._first(self._table().select("*").eq("id", id).execute().data)

    async def find_by_filters(self, filters: Dict[str, Any], limit: Optional[int] = None) -> List[T]:
        """Equality match on every column in `filters`"""
        query = self._table().select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if limit:
            query = query.limit(limit)
        return self._rows_to_models(query.execute().data)

    async def create(self, data: CreateT) -> T:
        # None columns are left to their database defaults
        row = data.model_dump(exclude_none=True, mode='json')
        created = self._first(self._table().insert(row).execute().data)
        if created is None:
            raise ValueError(f"Failed to create {self._table_name} record")
        return created

    async def update(self, id: RecordId, data: UpdateT) -> Optional[T]:
        """Apply the fields set on `data`; None when the row does not exist"""
        changes = data.model_dump(exclude_unset=True, mode='json')
        if not changes:
            return await self.find_by_id(id)
        return self._first(self._table().update(changes).eq("id", id).execute().data)
