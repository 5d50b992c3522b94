import struct

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict

# Argon2id cost for the store key. Lighter than a one-off vault unlock since
# every build derives the key again.
DEFAULT_T_COST = 3
DEFAULT_M_COST_KiB = 65536  # 64 MiB
DEFAULT_PARALLELISM = 2

DEFAULT_ENVIRONMENT = "dev"
DEFAULT_IDENTIFIER_KEY = "id"

DATA_DIR = Path("data")
TEST_DATA_DIR = Path("tests") / "data"

CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"

EXPORT_EXTENSION = ".json"
EXPORT_ALL_FILENAME = "db_export_all.json"
EXPORT_ENTITY_FILENAME = "db_export_{entity}.json"

NONCE_LEN = 12
STORE_MAGIC = b"VDB1"
STORE_VERSION = 1
STORE_HDR_FMT = ">4sB12s"  # magic, ver, nonce(12)
STORE_HDR_SIZE = struct.calcsize(STORE_HDR_FMT)

Record = Dict[str, Any]


def always_valid(record: Record) -> bool:
    return True


def unchanged(record: Record) -> Record:
    return record


@dataclass
class EntityOptions:
    identifier_key: str = DEFAULT_IDENTIFIER_KEY
    validate_on_create: Callable[[Record], bool] = always_valid
    pre_save_transform: Callable[[Record], Record] = unchanged


@dataclass
class EntityDescriptor:
    name: str
    options: EntityOptions = field(default_factory=EntityOptions)

    @property
    def identifier_key(self) -> str:
        return self.options.identifier_key or DEFAULT_IDENTIFIER_KEY

    def validate(self, record: Record | None) -> bool:
        if not isinstance(record, dict) or not record:
            return False
        return bool(self.options.validate_on_create(record))

    def transform(self, record: Record) -> Record:
        return self.options.pre_save_transform(record)


@dataclass
class StoreOptions:
    """Where the store lives and how hard the key derivation works."""

    environment: str = DEFAULT_ENVIRONMENT
    test_mode: bool = False
    root: Path | None = None
    t_cost: int = DEFAULT_T_COST
    m_cost_kib: int = DEFAULT_M_COST_KiB
    parallelism: int = DEFAULT_PARALLELISM

    def data_root(self) -> Path:
        base = Path(self.root) if self.root is not None else Path.cwd()
        sub = TEST_DATA_DIR if self.test_mode else DATA_DIR
        return base / sub / (self.environment or DEFAULT_ENVIRONMENT)
