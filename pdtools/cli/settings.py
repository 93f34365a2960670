"""
Persistent settings for pdcreator.

Settings live in ``~/.pdcreator/config.json`` (or ``$PDCREATOR_HOME``) as a
nested JSON object addressed with dotted keys, e.g. ``pipedream.api_key``.
Secrets are stored AES-GCM encrypted with a per-user key kept next to the
config file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import click
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = (
    'claude.api_key',
    'github.token',
    'pipedream.api_key',
    'pipedream.password',
)
MASK = '********'
KEY_SIZES = (16, 24, 32)


class SettingsError(click.ClickException):
    """The settings store cannot be used as it is on disk."""


def is_sensitive(key: str) -> bool:
    return any(pattern in key for pattern in SENSITIVE_KEYS)


class SettingsStore:
    """Dotted-key JSON settings with encrypted secrets."""

    def __init__(self, home: Optional[str] = None):
        self.home = Path(home or os.getenv('PDCREATOR_HOME') or Path.home() / '.pdcreator')
        self.config_path = self.home / 'config.json'
        self.key_path = self.home / '.key'
        self._key: Optional[bytes] = None

    def initialize(self) -> "SettingsStore":
        self.home.mkdir(parents=True, exist_ok=True)
        if not self.config_path.exists():
            self._save({})
        return self

    def _encryption_key(self) -> bytes:
        if self._key is None:
            self._key = self._read_key() if self.key_path.exists() else self._create_key()
        return self._key

    def _read_key(self) -> bytes:
        try:
            key = bytes.fromhex(self.key_path.read_text().strip())
        except (OSError, ValueError) as e:
            raise SettingsError(f"Encryption key {self.key_path} is unreadable: {e}") from e
        if len(key) not in KEY_SIZES:
            raise SettingsError(f"Encryption key {self.key_path} is unreadable: unexpected length {len(key)}")
        return key

    def _create_key(self) -> bytes:
        self.home.mkdir(parents=True, exist_ok=True)
        key = AESGCM.generate_key(bit_length=256)
        fd = os.open(self.key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write(key.hex())
        return key

    def _encrypt(self, text: str) -> str:
        nonce = os.urandom(12)
        encrypted = AESGCM(self._encryption_key()).encrypt(nonce, text.encode(), None)
        return (nonce + encrypted).hex()

    def _decrypt(self, encrypted_hex: str) -> Optional[str]:
        try:
            data = bytes.fromhex(encrypted_hex)
            nonce, ciphertext = data[:12], data[12:]
            return AESGCM(self._encryption_key()).decrypt(nonce, ciphertext, None).decode()
        except (ValueError, InvalidTag) as e:
            logger.warning(f"Error decrypting stored value: {e}")
            return None

    def _load(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Error loading config: {e}")
            return {}
        return config if isinstance(config, dict) else {}

    def _save(self, config: Dict[str, Any]):
        self.home.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2)
        os.chmod(self.config_path, 0o600)

    def set(self, key: str, value: str):
        config = self._load()
        parts = key.split('.')
        current = config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = self._encrypt(value) if is_sensitive(key) else value
        self._save(config)

    def get(self, key: str) -> Any:
        current: Any = self._load()
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        if isinstance(current, str) and is_sensitive(key):
            return self._decrypt(current)
        return current

    def delete(self, key: str) -> bool:
        config = self._load()
        parts = key.split('.')
        current = config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                return False
            current = current[part]
        if parts[-1] not in current:
            return False
        del current[parts[-1]]
        self._save(config)
        return True

    def list(self) -> Dict[str, Any]:
        """All settings with secrets masked."""
        return self._hide_secrets(self._load())

    def _hide_secrets(self, obj: Dict[str, Any], parent_key: str = '') -> Dict[str, Any]:
        result = {}
        for key, value in obj.items():
            full_key = f"{parent_key}.{key}" if parent_key else key
            if isinstance(value, dict):
                result[key] = self._hide_secrets(value, full_key)
            elif is_sensitive(full_key):
                result[key] = MASK
            else:
                result[key] = value
        return result
