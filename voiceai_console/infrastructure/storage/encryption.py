"""
Session Payload Encryption
Fernet encryption for the persisted session (tokens + user profile).

MultiFernet key chain: the first key encrypts, any key decrypts, so a key
can be rotated without logging every user out.
"""
import logging
from typing import List, Optional

from cryptography.fernet import Fernet, MultiFernet, InvalidToken

from voiceai_console.core.errors import ConsoleError

logger = logging.getLogger(__name__)


class TokenEncryptionError(ConsoleError):
    """Raised when the persisted session cannot be encrypted or decrypted"""
    pass


class SessionCipher:
    """
    Encrypt/decrypt stored session values.

    Args:
        key: Current Fernet key (VOICEAI_ENCRYPTION_KEY)
        old_keys: Previous keys still accepted for decryption
    """

    def __init__(self, key: str, old_keys: Optional[List[str]] = None):
        if not key:
            raise TokenEncryptionError("Encryption key is required")

        try:
            fernets = [Fernet(key.encode())]
            fernets.extend(Fernet(k.encode()) for k in (old_keys or []) if k)
        except (ValueError, TypeError) as e:
            raise TokenEncryptionError(f"Invalid encryption key: {e}") from e

        self._fernet = MultiFernet(fernets)
        logger.info(f"Session encryption enabled with {len(fernets)} key(s)")

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a stored value.

        Raises:
            TokenEncryptionError: Tampered value or unknown key
        """
        if not ciphertext:
            return ""
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as e:
            logger.error("Stored session could not be decrypted (invalid token or wrong key)")
            raise TokenEncryptionError("Failed to decrypt stored session") from e

    def rotate(self, ciphertext: str) -> str:
        """Re-encrypt a value with the current key."""
        try:
            return self._fernet.rotate(ciphertext.encode()).decode()
        except InvalidToken as e:
            raise TokenEncryptionError("Failed to rotate stored session") from e

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()
