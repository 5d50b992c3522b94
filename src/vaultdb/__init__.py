"""File-backed, encrypted JSON record store."""

from vaultdb.db import VaultDB
from vaultdb.storage.record_store import RecordStore
from vaultdb.utils.dataModels import EntityOptions, StoreOptions
from vaultdb.utils.errors import (
    AlreadyBuiltError,
    ConfigError,
    CorruptDataError,
    ImportConflictError,
    InvalidExtensionError,
    InvalidImportStructureError,
    MissingArgsError,
    NoDataError,
    NoEntitiesError,
    NotFoundError,
    NotInitializedError,
    UnknownEntityError,
    ValidationError,
    VaultDBError,
)

__version__ = "0.1.0"
