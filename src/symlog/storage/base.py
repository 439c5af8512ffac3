"""
Persistence Store Protocol

Abstract key-value persistence for durable entities (records, issues, todos)
and the single-slot draft. Adapters store whole entities; every read returns
a fresh, validated model.
"""

from typing import Callable, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from symlog.core.enums import Collection
from symlog.core.schemas import Issue, SymptomEntry, TodoItem

EntityT = TypeVar("EntityT", bound=BaseModel)

Predicate = Callable[[BaseModel], bool]

COLLECTION_MODELS: dict[Collection, type[BaseModel]] = {
    Collection.RECORDS: SymptomEntry,
    Collection.ISSUES: Issue,
    Collection.TODOS: TodoItem,
}


def model_for(collection: Collection) -> type[BaseModel]:
    return COLLECTION_MODELS[Collection(collection)]


@runtime_checkable
class PersistenceStore(Protocol):
    """Storage collaborator used by the repository, todo queue and draft store."""

    def get(self, collection: Collection, entity_id: str) -> BaseModel | None:
        ...

    def put(self, collection: Collection, entity: BaseModel) -> None:
        """Insert or replace an entity, keyed by its ``id``."""
        ...

    def delete(self, collection: Collection, entity_id: str) -> bool:
        """Delete an entity. Returns False if it did not exist."""
        ...

    def query_all(
        self, collection: Collection, predicate: Predicate | None = None
    ) -> list[BaseModel]:
        """All entities in insertion order, optionally filtered."""
        ...

    def get_draft(self) -> str | None:
        ...

    def put_draft(self, payload: str) -> None:
        ...

    def clear_draft(self) -> None:
        ...
