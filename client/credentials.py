import json
import os
from typing import Any, Dict, Optional

from utils.logger import logger

class Credentials:
    """Bearer token and user profile for one client session.

    Passed explicitly to the transport instead of living in a module global.
    When ``path`` is set the credentials are mirrored to a JSON file so a
    command line session survives restarts.
    """

    def __init__(self, token: Optional[str] = None, user: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        self.token = token
        self.user = user
        self.path = path

    @classmethod
    def load(cls, path: str) -> "Credentials":
        if not os.path.exists(path):
            return cls(path=path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable credentials file {path}: {e}")
            return cls(path=path)
        return cls(token=data.get("token"), user=data.get("user"), path=path)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.token = token
        self.user = user
        self._save()

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.path and os.path.exists(self.path):
            os.remove(self.path)

    def _save(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": self.token, "user": self.user}, f)
