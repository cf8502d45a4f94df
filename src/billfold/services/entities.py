"""Top-level collections: payment sources, bills, incomes."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from billfold.errors import NotFoundError, StorageError
from billfold.models import Entity, now, parse_model

if TYPE_CHECKING:
    from billfold.storage import JsonStore

logger = logging.getLogger("billfold.services")

E = TypeVar("E", bound=Entity)

_READONLY_FIELDS = frozenset({"id", "created_at", "updated_at"})


class EntityService(Generic[E]):
    """A list of *model* records kept in ``entities/<name>.json``."""

    def __init__(self, store: JsonStore, name: str, model: type[E], label: str) -> None:
        self.store = store
        self.name = name
        self.model = model
        self.label = label
        self._relpath = f"entities/{name}.json"
        self._lock = asyncio.Lock()

    async def list(self, *, active_only: bool = False) -> list[E]:
        raw = await self.store.read(self._relpath)
        if raw is None:
            return []
        if not isinstance(raw, list):
            msg = f"Expected a list in {self._relpath}"
            raise StorageError(msg, path=self._relpath)
        items = [self.model.model_validate(item) for item in raw]
        if active_only:
            items = [item for item in items if getattr(item, "is_active", True)]
        return items

    async def get(self, id: str) -> E:  # noqa: A002
        for item in await self.list():
            if item.id == id:
                return item
        raise NotFoundError(self.label, id)

    async def create(self, payload: dict[str, Any]) -> E:
        fields = {k: v for k, v in payload.items() if k not in _READONLY_FIELDS}
        item = parse_model(self.model, fields)
        async with self._lock:
            items = await self.list()
            items.append(item)
            await self._save(items)
        logger.info("Created %s %s", self.label, item.id)
        return item

    async def update(self, id: str, payload: dict[str, Any]) -> E:  # noqa: A002
        async with self._lock:
            items = await self.list()
            for index, item in enumerate(items):
                if item.id == id:
                    break
            else:
                raise NotFoundError(self.label, id)
            merged = item.model_dump()
            merged.update({k: v for k, v in payload.items() if k not in _READONLY_FIELDS})
            merged["updated_at"] = now()
            updated = parse_model(self.model, merged)
            items[index] = updated
            await self._save(items)
        logger.info("Updated %s %s", self.label, id)
        return updated

    async def delete(self, id: str) -> None:  # noqa: A002
        async with self._lock:
            items = await self.list()
            remaining = [item for item in items if item.id != id]
            if len(remaining) == len(items):
                raise NotFoundError(self.label, id)
            await self._save(remaining)
        logger.info("Deleted %s %s", self.label, id)

    async def _save(self, items: list[E]) -> None:
        await self.store.write(self._relpath, [item.model_dump(mode="json") for item in items])
