import os
import re

from .base import KeyValueStore

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStore(KeyValueStore):
    """
    Keeps each key in its own ``<key>.json`` file under ``data_dir``.

    Values are written to a temporary file first and moved into place, so a
    crash mid-write leaves the previous value intact. I/O errors propagate;
    callers decide whether they are fatal.
    """

    def __init__(self, data_dir: str = "."):
        self.data_dir = data_dir

    def path_for(self, key: str) -> str:
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key)
        return os.path.join(self.data_dir, f"{safe_key}.json")

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        with open(path, encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        if self.data_dir not in {"", ".", "./"}:
            os.makedirs(self.data_dir, exist_ok=True)
        path = self.path_for(key)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        if os.path.exists(path):
            os.remove(path)
