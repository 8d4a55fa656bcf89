"""
Repository pattern over persisted collections.

Every mutating operation is a read-modify-write of the whole collection.
By default the last write wins; with optimistic concurrency enabled a write
computed from a stale read raises ConcurrencyError instead.
"""

import logging
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from collection_store import CollectionStore
from exceptions import ValidationError, raise_not_found

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# Fields that identify a record and never change after creation
IMMUTABLE_FIELDS = ("id", "created_at")


def to_validation_error(exc: PydanticValidationError, resource: str) -> ValidationError:
    """Convert a pydantic validation failure into a ValidationError."""
    field_errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        field_errors.setdefault(field, []).append(error["msg"])
    summary = "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in field_errors.items())
    return ValidationError(f"Invalid {resource}: {summary}", field_errors=field_errors)


def validate_model(model_class: Type[T], data: Union[BaseModel, Mapping[str, Any]], resource: str) -> T:
    """Build a model from a mapping (or another model), raising ValidationError."""
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model_class.model_validate(dict(data))
    except PydanticValidationError as e:
        raise to_validation_error(e, resource) from e


class CollectionRepository(Generic[T]):
    """
    Base repository class for CRUD operations over one collection.

    Subclasses set the collection name, the record model and a resource
    name used in error messages.
    """

    collection: str = ""
    model_class: Type[T]
    resource_name: str = "Record"

    def __init__(self, store: CollectionStore, optimistic_concurrency: bool = False):
        """
        Initialize repository.

        Args:
            store: Collection store holding the records
            optimistic_concurrency: Reject writes based on a stale read
        """
        self.store = store
        self.optimistic_concurrency = optimistic_concurrency
        self._codec = TypeAdapter(List[self.model_class])

    # -- codec -----------------------------------------------------------

    def _decode(self, raw: List[Dict[str, Any]]) -> List[T]:
        try:
            return self._codec.validate_python(raw)
        except PydanticValidationError as e:
            logger.error(
                f"Malformed {self.collection} collection ({e.error_count()} errors) - treating as empty"
            )
            return []

    def _encode(self, records: List[T]) -> List[Dict[str, Any]]:
        return [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records]

    def _load(self) -> Tuple[List[T], int]:
        raw, version = self.store.get_all_with_version(self.collection)
        return self._decode(raw), version

    def _save(self, records: List[T], version: int):
        expected = version if self.optimistic_concurrency else None
        self.store.save_all(self.collection, self._encode(records), expected_version=expected)

    # -- queries ---------------------------------------------------------

    def get_all(self) -> List[T]:
        """Return all records in stored order."""
        return self._load()[0]

    def get_by_id(self, record_id: str) -> Optional[T]:
        """Return the record with the given id, or None."""
        for record in self.get_all():
            if record.id == record_id:
                return record
        return None

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [r for r in self.get_all() if predicate(r)]

    # -- mutations -------------------------------------------------------

    def _index_of(self, records: List[T], record_id: str) -> int:
        for index, record in enumerate(records):
            if record.id == record_id:
                return index
        raise_not_found(self.resource_name, record_id)

    def _insert(self, record: T) -> T:
        records, version = self._load()
        records.append(record)
        self._save(records, version)
        logger.info(f"Created {self.resource_name} {record.id}")
        return record

    def _mutate(self, record_id: str, change: Callable[[T], T]) -> T:
        """Apply change to one record and persist the collection."""
        records, version = self._load()
        index = self._index_of(records, record_id)
        records[index] = change(records[index])
        self._save(records, version)
        return records[index]

    def _merge(self, record_id: str, changes: Union[BaseModel, Mapping[str, Any]]) -> T:
        """Overlay changes on an existing record and revalidate the result."""
        if isinstance(changes, BaseModel):
            changes = changes.model_dump(exclude_unset=True)
        aliases = {
            field.alias: name for name, field in self.model_class.model_fields.items() if field.alias
        }
        normalized = {aliases.get(key, key): value for key, value in changes.items()}
        for field in IMMUTABLE_FIELDS:
            normalized.pop(field, None)

        def apply(record: T) -> T:
            merged = {**record.model_dump(), **normalized}
            return validate_model(self.model_class, merged, self.resource_name)

        updated = self._mutate(record_id, apply)
        logger.info(f"Updated {self.resource_name} {record_id}: {sorted(normalized)}")
        return updated

    def _remove(self, record_id: str) -> T:
        records, version = self._load()
        index = self._index_of(records, record_id)
        removed = records.pop(index)
        self._save(records, version)
        logger.info(f"Deleted {self.resource_name} {record_id}")
        return removed
