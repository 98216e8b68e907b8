"""
Tool configuration store.

The engine only reads tool records; it never writes them. Records live as
one JSON or YAML file per tool (<slug>.json, <slug>.yaml, <slug>.yml) and
are read on every lookup so edits take effect without a restart.
"""

import json
import re
import yaml
import jsonschema
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol
from pathlib import Path
import logging

from .errors import ConfigInvalidError, ConfigNotFoundError

logger = logging.getLogger(__name__)


SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
CONFIG_SUFFIXES = (".json", ".yaml", ".yml")

# Shape check for raw records. Field-level coercion is the normalizer's job,
# so this only rejects records that cannot be interpreted at all.
RAW_TOOL_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "slug": {"type": "string"},
        "title": {"type": "string"},
        "systemPrompt": {"type": "string"},
        "features": {"type": "array"},
        "capabilities": {"type": "array"},
        "presets": {"type": "array"},
    },
}


class ToolConfigStore(Protocol):
    """Configuration-by-identifier lookup."""

    def get_raw(self, slug: str) -> Dict[str, Any]:
        """Return the raw record for slug or raise ConfigNotFoundError."""

    def list_raw(self) -> List[Dict[str, Any]]:
        """Return every readable raw record."""


def validate_raw_config(data: Any, source: str) -> Dict[str, Any]:
    """Validate the raw record shape; raises ConfigInvalidError."""
    try:
        jsonschema.validate(data, RAW_TOOL_CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigInvalidError(f"Invalid tool config in {source}", details=e.message)
    return dict(data)


class FileToolConfigStore:
    """Reads tool records from a directory of JSON/YAML files."""

    def __init__(self, config_dir: str):
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            logger.warning(f"Tool config directory {self.config_dir} does not exist")

    def _path_for(self, slug: str) -> Optional[Path]:
        for suffix in CONFIG_SUFFIXES:
            path = self.config_dir / f"{slug}{suffix}"
            if path.is_file():
                return path
        return None

    def read_path(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                if path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigInvalidError(f"Unreadable tool config {path.name}", details=str(e))
        return validate_raw_config(data, path.name)

    def get_raw(self, slug: str) -> Dict[str, Any]:
        if not isinstance(slug, str) or not SLUG_PATTERN.match(slug):
            raise ConfigNotFoundError(f"Tool config not found for slug: {slug}")
        path = self._path_for(slug)
        if path is None:
            raise ConfigNotFoundError(f"Tool config not found for slug: {slug}")
        data = self.read_path(path)
        data.setdefault("slug", slug)
        return data

    def iter_paths(self) -> Iterator[Path]:
        if not self.config_dir.exists():
            return
        for path in sorted(self.config_dir.iterdir()):
            if path.is_file() and path.suffix in CONFIG_SUFFIXES:
                yield path

    def list_raw(self) -> List[Dict[str, Any]]:
        records = []
        for path in self.iter_paths():
            try:
                data = self.read_path(path)
            except (ConfigInvalidError, OSError) as e:
                logger.warning(f"Skipping tool config {path.name}: {e}")
                continue
            data.setdefault("slug", path.stem)
            records.append(data)
        return records


class InMemoryToolConfigStore:
    """Holds raw records in memory, keyed by slug."""

    def __init__(self, records: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._records: Dict[str, Dict[str, Any]] = {}
        for slug, record in (records or {}).items():
            self.add(record, slug=slug)

    def add(self, record: Mapping[str, Any], slug: Optional[str] = None) -> str:
        data = validate_raw_config(record, slug or "(memory)")
        key = slug or str(data.get("slug") or "")
        if not key:
            raise ConfigInvalidError("In-memory tool config needs a slug")
        data.setdefault("slug", key)
        self._records[key] = data
        return key

    def get_raw(self, slug: str) -> Dict[str, Any]:
        if slug not in self._records:
            raise ConfigNotFoundError(f"Tool config not found for slug: {slug}")
        return dict(self._records[slug])

    def list_raw(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._records.values()]
