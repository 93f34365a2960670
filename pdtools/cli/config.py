"""
Configuration management for the pdtools CLIs.

Credentials and defaults are looked up in this order:
1. Command-line options
2. Environment variables (optionally loaded from a .env file)
3. config.ini in the current directory
"""

import configparser
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from ..configurations.pipedream import DEFAULT_BASE_URL, PipedreamConfiguration

logger = logging.getLogger(__name__)

CONFIG_INI = 'config.ini'


class CLIConfig:
    """Configuration manager for pdmanager and pdcreator."""

    def __init__(self,
                 env_file: Optional[str] = None,
                 api_key: Optional[str] = None,
                 org_id: Optional[str] = None,
                 workdir: Optional[str] = None):
        """
        Initialize CLI configuration.

        Args:
            env_file: Path to .env file (defaults to .env in the working directory)
            api_key: API key given on the command line
            org_id: Organization ID given on the command line
            workdir: Directory holding config.ini (defaults to the current directory)
        """
        self.workdir = workdir or os.getcwd()
        self.env_file = env_file or os.path.join(self.workdir, '.env')
        self._api_key = api_key
        self._org_id = org_id
        self._ini = configparser.ConfigParser()
        self._load_env()
        self._load_config_ini()

    def _load_env(self):
        """Load environment variables from .env file."""
        if os.path.exists(self.env_file):
            load_dotenv(self.env_file, override=False)
            logger.debug(f"Loaded environment from {self.env_file}")
        else:
            logger.debug(f"No .env file found at {self.env_file}, using system environment")

    def _load_config_ini(self):
        """Load config.ini from the working directory if present."""
        path = os.path.join(self.workdir, CONFIG_INI)
        if not os.path.exists(path):
            return
        try:
            self._ini.read(path, encoding='utf-8')
            logger.debug(f"Loaded {path}")
        except configparser.Error as e:
            logger.warning(f"Failed to parse {path}: {e}")

    def _ini_value(self, section: str, key: str) -> Optional[str]:
        value = self._ini.get(section, key, fallback=None)
        return value.strip() if value and value.strip() else None

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or os.getenv('PIPEDREAM_API_KEY') or self._ini_value('api', 'key')

    @property
    def org_id(self) -> Optional[str]:
        return (self._org_id or os.getenv('PIPEDREAM_ORG_ID')
                or self._ini_value('project', 'org_id'))

    @property
    def project_id(self) -> Optional[str]:
        """Default project ID from config.ini ``[project] id``."""
        return self._ini_value('project', 'id')

    @property
    def base_url(self) -> str:
        return os.getenv('PIPEDREAM_API_URL') or DEFAULT_BASE_URL

    @property
    def timeout(self) -> Optional[float]:
        try:
            value = os.getenv('PIPEDREAM_TIMEOUT')
            return float(value) if value else None
        except (TypeError, ValueError):
            return None

    @property
    def max_retries(self) -> Optional[int]:
        try:
            value = os.getenv('PIPEDREAM_MAX_RETRIES')
            return int(value) if value else None
        except (TypeError, ValueError):
            return None

    def is_configured(self) -> bool:
        """Check if all required configuration is present."""
        return bool(self.api_key)

    def get_missing_config(self) -> list[str]:
        """Get list of missing configuration items."""
        return [] if self.api_key else ['PIPEDREAM_API_KEY']

    def to_configuration(self) -> PipedreamConfiguration:
        values: Dict[str, Any] = {
            'api_key': self.api_key,
            'org_id': self.org_id,
            'base_url': self.base_url,
        }
        if self.timeout is not None:
            values['timeout'] = self.timeout
        if self.max_retries is not None:
            values['max_retries'] = self.max_retries
        return PipedreamConfiguration(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'api_key': '***' if self.api_key else None,  # Masked for security
            'org_id': self.org_id,
            'project_id': self.project_id,
            'base_url': self.base_url,
        }


def get_config(env_file: Optional[str] = None, **kwargs) -> CLIConfig:
    """
    Get CLI configuration instance.

    Args:
        env_file: Optional path to .env file

    Returns:
        CLIConfig instance
    """
    return CLIConfig(env_file=env_file, **kwargs)
