"""
In-Memory Store

Process-local PersistenceStore. Used by tests and by hosts that persist
elsewhere.
"""

from pydantic import BaseModel

from symlog.core.enums import Collection
from symlog.storage.base import Predicate, model_for


class InMemoryStore:
    """Dict-backed store. Entities are frozen models, so they are shared, not copied."""

    def __init__(self) -> None:
        self._collections: dict[Collection, dict[str, BaseModel]] = {c: {} for c in Collection}
        self._draft: str | None = None

    def get(self, collection: Collection, entity_id: str) -> BaseModel | None:
        return self._collections[Collection(collection)].get(entity_id)

    def put(self, collection: Collection, entity: BaseModel) -> None:
        expected = model_for(collection)
        if not isinstance(entity, expected):
            raise TypeError(f"{collection} holds {expected.__name__}, got {type(entity).__name__}")
        self._collections[Collection(collection)][entity.id] = entity

    def delete(self, collection: Collection, entity_id: str) -> bool:
        return self._collections[Collection(collection)].pop(entity_id, None) is not None

    def query_all(
        self, collection: Collection, predicate: Predicate | None = None
    ) -> list[BaseModel]:
        items = list(self._collections[Collection(collection)].values())
        if predicate is None:
            return items
        return [item for item in items if predicate(item)]

    def get_draft(self) -> str | None:
        return self._draft

    def put_draft(self, payload: str) -> None:
        self._draft = payload

    def clear_draft(self) -> None:
        self._draft = None
