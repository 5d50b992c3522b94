"""Entity registry and in-memory cache on top of the encrypted record store.

Lifecycle:
    register_entity() ...  ->  build()  ->  find/create/update/delete ... save
    reset_and_delete_all_data() returns everything to the empty state.

All CRUD works on the cache only. Nothing reaches disk until save_one() or
save_all() is called.
"""

import asyncio
import copy
import logging

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from vaultdb.storage.record_store import RecordStore
from vaultdb.utils.dataModels import (
    CREATED_AT,
    DEFAULT_IDENTIFIER_KEY,
    EXPORT_ALL_FILENAME,
    EXPORT_ENTITY_FILENAME,
    UPDATED_AT,
    EntityDescriptor,
    EntityOptions,
    Record,
    always_valid,
    unchanged,
)
from vaultdb.utils.errors import (
    AlreadyBuiltError,
    ConfigError,
    ImportConflictError,
    MissingArgsError,
    NoDataError,
    NoEntitiesError,
    NotFoundError,
    UnknownEntityError,
    ValidationError,
)
from vaultdb.utils.helper import arg_has_value, rel_time_iso, string_has_value
from vaultdb.utils.maintain import check_entity_import, check_store_import, load_import_file, write_export

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]


class VaultDB:
    """Registry of entities plus the cache every CRUD call works against."""

    def __init__(self, store: RecordStore | None = None):
        self._store = store or RecordStore()
        self._entities: Dict[str, EntityDescriptor] = {}
        self._cache: Dict[str, List[Record]] = {}
        self._entity_imports: Dict[str, List[Record]] = {}
        self._store_import: Dict[str, List[Record]] | None = None

    @property
    def store(self) -> RecordStore:
        return self._store

    # -- Registry --

    def get_entities(self) -> Dict[str, str]:
        return {name: d.name for name, d in self._entities.items()}

    def is_up(self) -> bool:
        return bool(self._entities) and bool(self._cache) and self._store.is_initialized()

    def register_entity(
        self,
        entity: str,
        identifier_key: str = DEFAULT_IDENTIFIER_KEY,
        validate_on_create: Optional[Callable[[Record], bool]] = None,
        pre_save_transform: Optional[Callable[[Record], Record]] = None,
    ) -> None:
        if self.is_up():
            raise AlreadyBuiltError("Can't add entities once the DB is built. Register them before building.")
        if not string_has_value(entity):
            raise UnknownEntityError("Invalid parameter [entity] provided for function [register_entity].")
        if entity in self._entities:
            return
        options = EntityOptions(
            identifier_key=identifier_key or DEFAULT_IDENTIFIER_KEY,
            validate_on_create=validate_on_create or always_valid,
            pre_save_transform=pre_save_transform or unchanged,
        )
        self._entities[entity] = EntityDescriptor(name=entity, options=options)
        logger.debug("Registered entity %s (identifier %r)", entity, options.identifier_key)

    def remove_entity_and_delete_entity_data(self, entity: str) -> None:
        self._descriptor(entity, "remove_entity_and_delete_entity_data")
        del self._entities[entity]
        self._cache.pop(entity, None)
        self._entity_imports.pop(entity, None)
        if self._store.is_initialized() and entity in self._store.get_entity_files_map():
            self._store.drop_sync(entity)
        logger.info("Removed entity %s", entity)

    def _descriptor(self, entity: str, method: str) -> EntityDescriptor:
        if not isinstance(entity, str) or entity not in self._entities:
            raise UnknownEntityError(f"Invalid parameter [entity] provided for function [{method}].")
        return self._entities[entity]

    # -- Build / reset --

    def build(
        self,
        crypto_secret: str,
        vector_secret: str,
        environment: str | None = None,
        test_mode: bool | None = None,
    ) -> None:
        if not string_has_value(crypto_secret) or not string_has_value(vector_secret):
            raise ConfigError("Build arguments [crypto_secret] and [vector_secret] must be provided.")
        if not self._entities:
            raise NoEntitiesError("No entities have been registered. Use [register_entity] before building.")
        try:
            if not self._store.is_initialized():
                self._store.initialize(
                    crypto_secret,
                    vector_secret,
                    list(self._entities),
                    environment=environment,
                    test_mode=test_mode,
                )
            for entity, records in self._pending_imports().items():
                self._store.save_sync(entity, records)
                logger.info("Seeded %s with %d imported records", entity, len(records))
            cache = {entity: self._store.read_sync(entity) for entity in self._entities}
        except Exception:
            logger.exception("Error while building DB")
            raise
        self._cache = cache
        self._clear_imports()
        logger.info("DB build success: %s", ", ".join(cache))

    def reset_and_delete_all_data(self) -> None:
        self._entities = {}
        self._cache = {}
        self._clear_imports()
        if self._store.is_initialized():
            self._store.reset_and_delete_all_data()
        logger.info("DB reset, all data deleted")

    # -- Read --

    def _collection(self, entity: str) -> List[Record]:
        if entity not in self._cache:
            self._cache[entity] = self._store.read_sync(entity)
        return self._cache[entity]

    @staticmethod
    def _filter(data: List[Record], predicate: Predicate | None) -> List[Record]:
        if predicate is None:
            return copy.deepcopy(data)
        return [copy.deepcopy(item) for item in data if predicate(item)]

    def find(self, entity: str, predicate: Predicate | None = None, force_fetch: bool = False) -> List[Record]:
        """Return the entity's records, optionally filtered.

        ``force_fetch`` reads straight from disk and leaves the cache alone,
        so unsaved edits are never overwritten by it.
        """
        self._descriptor(entity, "find")
        if force_fetch:
            return self._filter(self._store.read_sync(entity), predicate)
        return self._filter(self._collection(entity), predicate)

    async def find_async(self, entity: str, predicate: Predicate | None = None, force_fetch: bool = False) -> List[Record]:
        self._descriptor(entity, "find_async")
        if force_fetch:
            return self._filter(await self._store.read_async(entity), predicate)
        if entity not in self._cache:
            self._cache[entity] = await self._store.read_async(entity)
        return self._filter(self._cache[entity], predicate)

    def find_by_identifier(self, entity: str, id: Any) -> Record:
        descriptor = self._descriptor(entity, "find_by_identifier")
        data = self._collection(entity)
        if not data:
            raise NotFoundError(f"DB for entity [{entity}] has no data.")
        key = descriptor.identifier_key
        match = next((item for item in data if item.get(key) == id), None)
        if match is None:
            raise NotFoundError(f"No [{entity}] record with {key}={id!r}.")
        return copy.deepcopy(match)

    # -- Write --

    @staticmethod
    def _stamp_new(descriptor: EntityDescriptor, record: Record) -> Record:
        now = rel_time_iso()
        return {**descriptor.transform(dict(record)), CREATED_AT: now, UPDATED_AT: now}

    def create_one(self, entity: str, record: Record) -> List[Record]:
        descriptor = self._descriptor(entity, "create_one")
        if not descriptor.validate(record):
            raise ValidationError("Invalid or no data to create.")
        data = self._collection(entity)
        self._cache[entity] = [*data, self._stamp_new(descriptor, record)]
        return copy.deepcopy(self._cache[entity])

    def create_many(self, entity: str, records: List[Record]) -> List[Record]:
        descriptor = self._descriptor(entity, "create_many")
        if not records:
            raise NoDataError("No data to create.")
        created = []
        for record in records:
            if not descriptor.validate(record):
                logger.warning("Skipping %s record that failed validation", entity)
                continue
            created.append(self._stamp_new(descriptor, record))
        data = self._collection(entity)
        self._cache[entity] = [*data, *created]
        return copy.deepcopy(self._cache[entity])

    def update_one(self, entity: str, id: Any, patch: Record) -> List[Record]:
        descriptor = self._descriptor(entity, "update_one")
        if not arg_has_value(id) or not patch:
            raise MissingArgsError("Arguments [id] and [patch] must be provided in method [update_one].")
        data = self._collection(entity)
        if not data:
            raise NotFoundError(f"DB for entity [{entity}] has no data.")
        key = descriptor.identifier_key
        index = next((i for i, item in enumerate(data) if item.get(key) == id), None)
        if index is None:
            raise NotFoundError(f"No [{entity}] record with {key}={id!r}.")

        current = data[index]
        # neither the identifier nor the creation stamp changes through an update
        merged = {**current, **{k: v for k, v in patch.items() if k not in (key, CREATED_AT)}}
        if not descriptor.validate(merged):
            raise ValidationError("Updated values for data failed validation.")
        updated = dict(descriptor.transform(merged))
        updated[key] = current[key]
        if CREATED_AT in current:
            updated[CREATED_AT] = current[CREATED_AT]
        updated[UPDATED_AT] = rel_time_iso()

        self._cache[entity] = [*data[:index], updated, *data[index + 1:]]
        return copy.deepcopy(self._cache[entity])

    def delete_one(self, entity: str, id: Any) -> List[Record]:
        descriptor = self._descriptor(entity, "delete_one")
        if not arg_has_value(id):
            raise MissingArgsError("Argument [id] must be provided in method [delete_one].")
        data = self._collection(entity)
        if not data:
            raise NotFoundError(f"DB for entity [{entity}] has no data.")
        key = descriptor.identifier_key
        self._cache[entity] = [item for item in data if item.get(key) != id]
        return copy.deepcopy(self._cache[entity])

    # -- Save --

    def save_one(self, entity: str) -> List[Record]:
        self._descriptor(entity, "save_one")
        return copy.deepcopy(self._store.save_sync(entity, self._collection(entity)))

    def save_all(self) -> None:
        for entity, data in self._cache.items():
            self._store.save_sync(entity, data)

    async def save_one_async(self, entity: str) -> List[Record]:
        self._descriptor(entity, "save_one_async")
        if entity not in self._cache:
            self._cache[entity] = await self._store.read_async(entity)
        return copy.deepcopy(await self._store.save_async(entity, self._cache[entity]))

    async def save_all_async(self) -> None:
        await asyncio.gather(*(self._store.save_async(e, data) for e, data in self._cache.items()))

    # -- Import --

    def _pending_imports(self) -> Dict[str, List[Record]]:
        if self._store_import is not None:
            return self._store_import
        return self._entity_imports

    def _clear_imports(self) -> None:
        self._entity_imports = {}
        self._store_import = None

    def import_for_entity(self, entity: str, file_path: str | Path) -> None:
        """Queue a JSON array of records to seed ``entity`` at the next build."""
        self._descriptor(entity, "import_for_entity")
        if self.is_up():
            raise AlreadyBuiltError("Data can only be imported before the DB is built.")
        if self._store_import is not None:
            self._clear_imports()
            raise ImportConflictError("A whole-store import is already pending for this build.")
        self._entity_imports[entity] = check_entity_import(load_import_file(file_path), entity)
        logger.debug("Queued import of %d records for %s", len(self._entity_imports[entity]), entity)

    def import_for_whole_store(self, file_path: str | Path) -> None:
        """Queue a JSON object of entity -> records to seed the store at the next build."""
        if self.is_up():
            raise AlreadyBuiltError("Data can only be imported before the DB is built.")
        if self._entity_imports:
            self._clear_imports()
            raise ImportConflictError("An entity import is already pending for this build.")
        data = check_store_import(load_import_file(file_path))
        unknown = [e for e in data if e not in self._entities]
        if unknown:
            raise UnknownEntityError(f"Import contains unregistered entities: {', '.join(unknown)}")
        self._store_import = data
        logger.debug("Queued whole-store import for %s", ", ".join(data))

    # -- Export --

    def export_for_entity(self, entity: str, dir_path: str | Path, filename: str | None = None) -> Path:
        self._descriptor(entity, "export_for_entity")
        default = EXPORT_ENTITY_FILENAME.format(entity=entity)
        return write_export(dir_path, filename, default, self._cache.get(entity, []), self._store.fs)

    def export_whole_store(self, dir_path: str | Path, filename: str | None = None) -> Path:
        return write_export(dir_path, filename, EXPORT_ALL_FILENAME, dict(self._cache), self._store.fs)
