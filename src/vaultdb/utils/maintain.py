import json
import logging

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from vaultdb.storage.fs import LocalFileSystem
from vaultdb.utils.dataModels import EXPORT_EXTENSION
from vaultdb.utils.errors import InvalidExtensionError, InvalidImportStructureError

logger = logging.getLogger(__name__)


def load_import_file(file_path: str | Path) -> Any:
    p = Path(file_path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidImportStructureError(f"Import file {p} is not valid JSON") from e


def is_record_array(data: Any) -> bool:
    return isinstance(data, list) and all(isinstance(item, dict) for item in data)


def check_entity_import(data: Any, label: str = "entity") -> List[Dict[str, Any]]:
    if not is_record_array(data):
        raise InvalidImportStructureError(f"Import data for [{label}] must be a JSON array of objects.")
    return data


def check_store_import(data: Any) -> Dict[str, List[Dict[str, Any]]]:
    if not isinstance(data, dict):
        raise InvalidImportStructureError("Whole-store import data must be a JSON object of entity arrays.")
    for entity, records in data.items():
        check_entity_import(records, entity)
    return data


def export_filename(filename: str | None, default: str) -> str:
    """Pick the export file name; a bare name gets ``.json`` appended."""
    if not filename:
        return default
    # Path(".json").suffix is empty, so test the name itself first
    if filename.endswith(EXPORT_EXTENSION):
        return filename
    if not Path(filename).suffix:
        return filename + EXPORT_EXTENSION
    raise InvalidExtensionError(f"Export file [{filename}] must have a {EXPORT_EXTENSION} extension.")


def _first_missing_ancestor(path: Path) -> Path | None:
    missing = None
    for p in [path, *path.parents]:
        if p.exists():
            break
        missing = p
    return missing


@contextmanager
def export_dir(dir_path: str | Path, fs: LocalFileSystem) -> Iterator[Path]:
    """Create ``dir_path`` for an export; remove what was created if the export fails."""
    d = Path(dir_path)
    created = _first_missing_ancestor(d)
    fs.mkdir(d)
    try:
        yield d
    except Exception:
        if created is not None:
            fs.rmdir(created)
            logger.debug("Rolled back export directory %s", created)
        raise


def write_export(dir_path: str | Path, filename: str | None, default: str, payload: Any, fs: LocalFileSystem) -> Path:
    with export_dir(dir_path, fs) as d:
        out = d / export_filename(filename, default)
        fs.write_file(out, json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8"))
    logger.info("Exported data to %s", out)
    return out
