"""Payment sources, bills and incomes: ``/api/<collection>[/<id>]``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import body_of, segment_at
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import EntityService


class EntityHandlers:
    """CRUD handlers for one top-level collection."""

    def __init__(self, service: EntityService) -> None:
        self.service = service

    async def list(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.service.list())

    async def create(self, request: Request) -> JSONResponse:
        item = await self.service.create(await body_of(request))
        return JSONResponse(item, status_code=201)

    async def update(self, request: Request) -> JSONResponse:
        item_id = segment_at(request, 2, f"{self.service.label.lower()} id")
        return JSONResponse(await self.service.update(item_id, await body_of(request)))

    async def delete(self, request: Request) -> None:
        await self.service.delete(segment_at(request, 2, f"{self.service.label.lower()} id"))
