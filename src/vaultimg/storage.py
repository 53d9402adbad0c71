import json
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

SETTINGS_FILE = ".vaultimg/data.json"


class HostStorage(Protocol):
    def exists(self, path: str) -> bool: ...

    def create_folder(self, path: str) -> None: ...

    def write_binary(self, path: str, data: bytes) -> None: ...

    def load_settings(self) -> Optional[dict]: ...

    def save_settings(self, record: dict) -> None: ...


class VaultStorage:
    """Stores files and plugin settings inside a vault directory.

    All paths are relative to the vault root and use forward slashes, the
    same form that ends up in markdown links.
    """

    def __init__(self, vault_dir: str | Path):
        self.root = Path(vault_dir)

    def _resolve(self, path: str) -> Path:
        return self.root / Path(path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def create_folder(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)
        logger.info(f"Created folder {path} in vault {self.root}")

    def write_binary(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        target.write_bytes(data)
        logger.info(f"Wrote {len(data)} bytes to {target}")

    def load_settings(self) -> Optional[dict]:
        settings_path = self._resolve(SETTINGS_FILE)
        if not settings_path.exists():
            return None
        try:
            data = json.loads(settings_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable settings file {settings_path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {settings_path}: not a JSON object")
            return None
        return data

    def save_settings(self, record: dict) -> None:
        settings_path = self._resolve(SETTINGS_FILE)
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings_path.write_text(json.dumps(record, indent=2), encoding="utf-8")
