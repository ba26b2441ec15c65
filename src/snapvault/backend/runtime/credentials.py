"""Directory-backed store for session credential material"""
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CREDS_FILE = "creds.json"


class CredentialStore:
    """
    Persists the credential material handed out by the platform client.

    The runtime never interprets the contents. It saves every update, hands
    the latest copy back on connect and wipes the directory on logout.
    """

    def __init__(self, auth_dir: Path):
        self.auth_dir = auth_dir

    @property
    def creds_path(self) -> Path:
        return self.auth_dir / CREDS_FILE

    def load(self) -> Optional[Dict[str, Any]]:
        """Latest saved credentials, or None if no session was paired yet"""
        if not self.creds_path.exists():
            return None
        return json.loads(self.creds_path.read_text(encoding="utf-8"))

    def save(self, creds: Dict[str, Any]) -> None:
        """Merge a credential update into the stored copy"""
        self.auth_dir.mkdir(parents=True, exist_ok=True)
        current = self.load() or {}
        current.update(creds)

        tmp_path = self.creds_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(current), encoding="utf-8")
        tmp_path.replace(self.creds_path)
        logger.debug(f"Credentials saved: {self.creds_path}")

    def clear(self) -> None:
        """Remove all persisted credential material"""
        if self.auth_dir.exists():
            shutil.rmtree(self.auth_dir)
        logger.info(f"Credentials cleared: {self.auth_dir}")
