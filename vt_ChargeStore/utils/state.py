# vt_ChargeStore/utils/state.py
from __future__ import annotations
from pathlib import Path
import logging
import yaml

_LOG = logging.getLogger(__name__)

LAST_EXPORT_DIR_KEY = "last_export_dir"


class PersistentState:
    """Tiny key/value store in a YAML file; every put() rewrites the file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: dict = {}
        if self.path.is_file():
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
                if isinstance(loaded, dict):
                    self._data = loaded
            except (OSError, yaml.YAMLError) as e:
                _LOG.warning("ignoring unreadable state file %s: %s", self.path, e)

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def put(self, key: str, value) -> None:
        self._data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self._data, f, sort_keys=True)


def resolve_export_path(dest: str | Path, state: PersistentState) -> Path:
    """
    Bare file names land in the last export directory (home on first use);
    the directory actually used is remembered for next time.
    """
    p = Path(dest).expanduser()
    if not p.is_absolute() and p.parent == Path("."):
        p = Path(state.get(LAST_EXPORT_DIR_KEY, str(Path.home()))) / p
    p = p.resolve()
    state.put(LAST_EXPORT_DIR_KEY, str(p.parent))
    return p
