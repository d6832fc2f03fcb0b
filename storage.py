import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "game2048:bestScore"
GAME_STATE_KEY = "game2048:gameState"
DEFAULT_SAVE_PATH = Path.home() / ".game2048.json"


class KeyValueStore:
    """String key/value storage. Subclasses raise OSError or ValueError on failure."""

    def get_item(self, key):
        raise NotImplementedError

    def set_item(self, key, value):
        raise NotImplementedError

    def remove_item(self, key):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, items=None):
        self.items = dict(items or {})

    def get_item(self, key):
        return self.items.get(key)

    def set_item(self, key, value):
        self.items[key] = value

    def remove_item(self, key):
        self.items.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All keys live in one JSON object on disk."""

    def __init__(self, path=DEFAULT_SAVE_PATH):
        self.path = Path(path)

    def _read(self):
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key):
        return self._read().get(key)

    def set_item(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class StorageManager:
    """
    Best score and saved game on top of a KeyValueStore.

    Reads fall back to defaults and writes report False instead of raising,
    so a broken save file never stops a game.
    """

    def __init__(self, store, best_score_key=BEST_SCORE_KEY, game_state_key=GAME_STATE_KEY):
        self.store = store
        self.best_score_key = best_score_key
        self.game_state_key = game_state_key

    def get_best_score(self):
        try:
            value = self.store.get_item(self.best_score_key)
            return int(value) if value else 0
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error getting best score: %s", e)
            return 0

    def set_best_score(self, score):
        try:
            self.store.set_item(self.best_score_key, str(int(score)))
            return True
        except (OSError, ValueError) as e:
            logger.error("Error setting best score: %s", e)
            return False

    def get_game_state(self):
        try:
            value = self.store.get_item(self.game_state_key)
            return json.loads(value) if value else None
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error getting game state: %s", e)
            return None

    def set_game_state(self, game_state):
        try:
            self.store.set_item(self.game_state_key, json.dumps(game_state))
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error setting game state: %s", e)
            return False

    def clear_game_state(self):
        try:
            self.store.remove_item(self.game_state_key)
            return True
        except (OSError, ValueError) as e:
            logger.error("Error clearing game state: %s", e)
            return False
