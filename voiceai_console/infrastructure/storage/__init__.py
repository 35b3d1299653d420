"""
Session Storage Package
"""
from voiceai_console.infrastructure.storage.encryption import SessionCipher, TokenEncryptionError
from voiceai_console.infrastructure.storage.token_store import FileStorage, MemoryStorage, TokenStore

__all__ = ["SessionCipher", "TokenEncryptionError", "FileStorage", "MemoryStorage", "TokenStore"]
