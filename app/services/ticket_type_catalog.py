"""
app/services/ticket_type_catalog.py

Per-store ticket type definitions behind a TTL cache.
"""

from __future__ import annotations

import time
from functools import lru_cache
from typing import Callable

from sqlalchemy.orm import Session

from app.config import get_cache_settings
from app.domain.import_export import TicketFieldDefinition, TicketTypeInfo
from app.repositories.ticket_type_repository import TicketTypeRepository
from app.services.ttl_cache import Clock, TTLCache
from db.session import SessionLocal


class TicketTypeCatalog:
    """
    Read-mostly view of each store's ticket types.

    Entries load through their own short-lived session so cached values never
    hold on to a request's session.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Clock = time.monotonic,
    ) -> None:
        self._session_factory = session_factory
        self._cache: TTLCache[int, tuple[TicketTypeInfo, ...]] = TTLCache(
            loader=self._load,
            ttl_seconds=ttl_seconds,
            clock=clock,
        )

    def _load(self, store_id: int) -> tuple[TicketTypeInfo, ...]:
        with self._session_factory() as session:
            return tuple(TicketTypeRepository(session).list_for_store(store_id))

    def ticket_types(self, store_id: int) -> tuple[TicketTypeInfo, ...]:
        return self._cache.get(store_id)

    def find(self, store_id: int, ticket_type_id: int | None) -> TicketTypeInfo | None:
        if ticket_type_id is None:
            return None
        return next((item for item in self.ticket_types(store_id) if item.id == ticket_type_id), None)

    def field_definitions(self, store_id: int, ticket_type_id: int | None) -> tuple[TicketFieldDefinition, ...]:
        ticket_type = self.find(store_id, ticket_type_id)
        return ticket_type.fields if ticket_type is not None else ()

    def invalidate(self, store_id: int | None = None) -> None:
        self._cache.invalidate(store_id)


@lru_cache(maxsize=1)
def get_ticket_type_catalog() -> TicketTypeCatalog:
    return TicketTypeCatalog(ttl_seconds=get_cache_settings().ticket_type_ttl_seconds)
