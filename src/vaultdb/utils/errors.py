"""Exception taxonomy for the record store.

Everything derives from ``VaultDBError`` which is itself a ``ValueError`` so
callers that only catch ``ValueError`` keep working.
"""


class VaultDBError(ValueError):
    pass


class ConfigError(VaultDBError):
    """Missing secret or empty entity list at initialize/build time."""


class NotInitializedError(VaultDBError):
    pass


class UnknownEntityError(VaultDBError):
    pass


class AlreadyBuiltError(VaultDBError):
    """Registration or import attempted after build."""


class NoEntitiesError(VaultDBError):
    pass


class ImportConflictError(VaultDBError):
    pass


class InvalidImportStructureError(VaultDBError):
    pass


class ValidationError(VaultDBError):
    pass


class NoDataError(VaultDBError):
    pass


class MissingArgsError(VaultDBError):
    pass


class NotFoundError(VaultDBError):
    pass


class InvalidExtensionError(VaultDBError):
    pass


class CorruptDataError(VaultDBError):
    """Decrypt or parse failure: damaged file or mismatched secrets."""
