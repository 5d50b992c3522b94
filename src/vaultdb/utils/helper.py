from pathlib import Path
from typing import Any, Dict, Iterable


def string_has_value(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def list_has_value(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def arg_has_value(value: Any) -> bool:
    """Identifiers may be any JSON scalar; only None and "" count as absent."""
    return value is not None and value != ""


def entity_paths(data_root: Path, entities: Iterable[str]) -> Dict[str, Path]:
    return {name: data_root / f"{name}.json" for name in entities}


def rel_time_iso() -> str:
    import datetime as _dt
    now = _dt.datetime.now(_dt.timezone.utc)
    return now.replace(microsecond=0, tzinfo=None).isoformat() + "Z"
