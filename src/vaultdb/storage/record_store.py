"""Encrypted whole-collection persistence keyed by entity name.

Each entity lives in its own file:

    <root>/data/<environment>/<entity>.json          (normal mode)
    <root>/tests/data/<environment>/<entity>.json    (test mode)

A file holds a small binary header (magic, version, nonce) followed by the
AES-256-GCM ciphertext of the collection serialized as a JSON array. Every
save replaces the whole file.
"""

import json
import logging

from cryptography.exceptions import InvalidTag
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List

from vaultdb.crypto.aead import Cryptor
from vaultdb.storage.fs import LocalFileSystem
from vaultdb.storage.vault import pack_store_file, unpack_store_file
from vaultdb.utils.dataModels import DEFAULT_ENVIRONMENT, StoreOptions
from vaultdb.utils.errors import ConfigError, CorruptDataError, NotInitializedError, UnknownEntityError
from vaultdb.utils.helper import entity_paths, list_has_value, string_has_value

logger = logging.getLogger(__name__)


def _dumps(collection: List[Any]) -> str:
    return json.dumps(collection, ensure_ascii=False, separators=(",", ":"))


class RecordStore:
    """Owns the cipher and the entity -> file mapping.

    The first successful ``initialize`` wins; later calls are ignored until
    ``reset_and_delete_all_data`` returns the store to its blank state.
    """

    def __init__(self, options: StoreOptions | None = None, fs: LocalFileSystem | None = None):
        self._options = options or StoreOptions()
        self._fs = fs or LocalFileSystem()
        self._cryptor: Cryptor | None = None
        self._entity_files: Dict[str, Path] | None = None

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def fs(self) -> LocalFileSystem:
        return self._fs

    def is_initialized(self) -> bool:
        return self._cryptor is not None and self._entity_files is not None

    def initialize(
        self,
        crypto_secret: str,
        vector_secret: str,
        entity_names: Iterable[str],
        environment: str | None = None,
        test_mode: bool | None = None,
    ) -> None:
        if self.is_initialized():
            logger.debug("Record store already initialized, ignoring initialize()")
            return
        if not string_has_value(crypto_secret) or not string_has_value(vector_secret) or not list_has_value(entity_names):
            raise ConfigError(
                "Initialization arguments [crypto_secret], [vector_secret], and [entity_names] must be provided."
            )
        names = list(entity_names)
        if not all(string_has_value(n) for n in names):
            raise ConfigError("Entity names must be non-empty strings.")

        options = replace(
            self._options,
            environment=environment if string_has_value(environment) else (self._options.environment or DEFAULT_ENVIRONMENT),
            test_mode=self._options.test_mode if test_mode is None else bool(test_mode),
        )
        cryptor = Cryptor(
            crypto_secret,
            vector_secret,
            t_cost=options.t_cost,
            m_cost_kib=options.m_cost_kib,
            parallelism=options.parallelism,
        )
        files = entity_paths(options.data_root(), dict.fromkeys(names))

        self._options = options
        self._cryptor = cryptor
        self._entity_files = {}
        for name, path in files.items():
            self._fs.mkdir(path.parent)
            self._entity_files[name] = path
            if not self._fs.exists(path):
                self._write(path, [])
                logger.debug("Created empty store file for %s at %s", name, path)
        logger.info("Record store initialized at %s with %d entities", options.data_root(), len(files))

    def get_entity_files_map(self) -> Dict[str, Path]:
        return dict(self._entity_files or {})

    # -- Guards --

    def _path_for(self, entity: str, op: str) -> Path:
        if not self.is_initialized():
            raise NotInitializedError(
                "Data store has not been initialized yet. "
                "Initialize it before performing data-related operations."
            )
        if not entity or entity not in self._entity_files:
            raise UnknownEntityError(f"Invalid entity value [{entity}] provided for file {op}.")
        return self._entity_files[entity]

    # -- Encode / decode --

    def _encode(self, collection: List[Any]) -> bytes:
        nonce, ct = self._cryptor.encrypt(_dumps(collection))
        return pack_store_file(nonce, ct)

    def _decode(self, entity: str, data: bytes) -> List[Any]:
        try:
            nonce, ct = unpack_store_file(data)
            collection = json.loads(self._cryptor.decrypt(nonce, ct))
        except (InvalidTag, ValueError) as e:
            raise CorruptDataError(f"Could not decrypt or parse data for entity [{entity}]") from e
        if not isinstance(collection, list):
            raise CorruptDataError(f"Data for entity [{entity}] is not a JSON array")
        return collection

    def _write(self, path: Path, collection: List[Any]) -> None:
        self._fs.write_file(path, self._encode(collection))

    # -- Read --

    def read_sync(self, entity: str) -> List[Any]:
        path = self._path_for(entity, "READ")
        logger.debug("Reading %s from %s", entity, path)
        return self._decode(entity, self._fs.read_file(path))

    async def read_async(self, entity: str) -> List[Any]:
        path = self._path_for(entity, "READ")
        logger.debug("Reading %s from %s", entity, path)
        return self._decode(entity, await self._fs.read_file_async(path))

    # -- Write --

    def save_sync(self, entity: str, collection: List[Any]) -> List[Any]:
        path = self._path_for(entity, "WRITE")
        self._write(path, collection)
        logger.debug("Saved %d records for %s", len(collection), entity)
        return collection

    async def save_async(self, entity: str, collection: List[Any]) -> List[Any]:
        path = self._path_for(entity, "WRITE")
        await self._fs.write_file_async(path, self._encode(collection))
        logger.debug("Saved %d records for %s", len(collection), entity)
        return collection

    # -- Drop --

    def drop_sync(self, entity: str) -> None:
        path = self._path_for(entity, "DROP")
        self._fs.unlink(path)
        del self._entity_files[entity]
        logger.info("Dropped entity %s", entity)

    def drop_all_sync(self) -> None:
        if not self._entity_files:
            return
        for entity in list(self._entity_files):
            self._fs.unlink(self._entity_files.pop(entity))
        logger.info("Dropped all entity files")

    def reset_and_delete_all_data(self) -> None:
        self.drop_all_sync()
        self._entity_files = None
        self._cryptor = None
        logger.info("Record store reset")
