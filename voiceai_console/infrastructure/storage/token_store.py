"""
Token Store
Persists the session tokens and user profile under two storage keys.

The stored copy is a cache of the session, not its source of truth: any value
that fails to deserialize clears both keys.
"""
import json
import logging
import time
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ValidationError

from voiceai_console.domain.models.auth import AuthTokens, AuthUser
from voiceai_console.infrastructure.storage.encryption import SessionCipher, TokenEncryptionError

logger = logging.getLogger(__name__)

TOKENS_KEY = "voice_ai_tokens"
USER_KEY = "voice_ai_user"


class MemoryStorage:
    """Key/value storage held in process memory"""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    Key/value storage backed by a single JSON file.

    Args:
        path: JSON file path (created on first write)
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return items if isinstance(items, dict) else {}

    def _save(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(items, f)

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._save(items)


class TokenStore:
    """
    Typed access to the persisted session.

    Args:
        storage: MemoryStorage or FileStorage
        cipher: Optional SessionCipher; values are stored encrypted when set
    """

    def __init__(self, storage=None, cipher: Optional[SessionCipher] = None):
        self.storage = storage if storage is not None else MemoryStorage()
        self.cipher = cipher

    def _write(self, key: str, model: BaseModel) -> None:
        payload = model.model_dump_json()
        if self.cipher:
            payload = self.cipher.encrypt(payload)
        self.storage.set_item(key, payload)

    def _read(self, key: str, model_cls):
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            payload = self.cipher.decrypt(raw) if self.cipher else raw
            return model_cls.model_validate_json(payload)
        except (ValidationError, ValueError, TokenEncryptionError) as e:
            logger.warning(f"Stored {key} is corrupt, clearing session: {e}")
            self.clear()
            return None

    def set_tokens(self, tokens: AuthTokens) -> None:
        self._write(TOKENS_KEY, tokens)

    def get_tokens(self) -> Optional[AuthTokens]:
        return self._read(TOKENS_KEY, AuthTokens)

    def set_user(self, user: AuthUser) -> None:
        self._write(USER_KEY, user)

    def get_user(self) -> Optional[AuthUser]:
        return self._read(USER_KEY, AuthUser)

    def save_session(self, tokens: AuthTokens, user: AuthUser) -> None:
        self.set_tokens(tokens)
        self.set_user(user)

    def clear(self) -> None:
        """Remove both keys."""
        self.storage.remove_item(TOKENS_KEY)
        self.storage.remove_item(USER_KEY)

    def has_session(self) -> bool:
        return self.get_tokens() is not None

    def is_token_expired(self, now: Optional[float] = None) -> bool:
        """True when no tokens are stored or the access token has expired."""
        tokens = self.get_tokens()
        if tokens is None:
            return True
        return tokens.is_expired(time.time() if now is None else now)

    def is_expiring_soon(self, threshold_seconds: float = 300, now: Optional[float] = None) -> bool:
        tokens = self.get_tokens()
        if tokens is None:
            return False
        return tokens.is_expiring_soon(time.time() if now is None else now, threshold_seconds)
