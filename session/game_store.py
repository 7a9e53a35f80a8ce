import json
from pathlib import Path

from base.Codec import decodeBoard, encodeBoard
from base.Core import Core
from base.logging_utils import get_logger

SAVE_KEY = "savedGameState"
DEFAULT_SAVE_DIR = Path(__file__).with_name("saves")

logger = get_logger(__name__)


class KeyValueStore:
    """Narrow read/write/clear access to named records."""

    def read(self, key: str):
        raise NotImplementedError

    def write(self, key: str, record: dict):
        raise NotImplementedError

    def clear(self, key: str):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self):
        self.records = {}

    def read(self, key: str):
        return self.records.get(key)

    def write(self, key: str, record: dict):
        self.records[key] = json.loads(json.dumps(record))

    def clear(self, key: str):
        self.records.pop(key, None)


class JsonFileStore(KeyValueStore):
    """One JSON file per key inside ``root``."""

    def __init__(self, root: Path = DEFAULT_SAVE_DIR):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def read(self, key: str):
        path = self._path(key)
        if not path.exists() or not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def write(self, key: str, record: dict):
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(record, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def clear(self, key: str):
        self._path(key).unlink(missing_ok=True)


def default_store() -> KeyValueStore:
    return JsonFileStore(DEFAULT_SAVE_DIR)


def has_saved_game(store: KeyValueStore) -> bool:
    try:
        return store.read(SAVE_KEY) is not None
    except Exception:
        return False


def save_game(core: Core, store: KeyValueStore) -> bool:
    try:
        with core.lock:
            record = encodeBoard(core)
        store.write(SAVE_KEY, record)
        return True
    except Exception as exc:
        logger.warning("could not save game: %s", exc)
        return False


def load_game(store: KeyValueStore) -> Core | None:
    """None means there is no resumable game; unreadable records count as absent."""
    try:
        record = store.read(SAVE_KEY)
    except Exception as exc:
        logger.warning("could not read saved game: %s", exc)
        return None
    if record is None:
        return None
    return decodeBoard(record)


def clear_game(store: KeyValueStore) -> bool:
    try:
        store.clear(SAVE_KEY)
        return True
    except Exception as exc:
        logger.warning("could not clear saved game: %s", exc)
        return False
