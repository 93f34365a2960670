from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_BASE_URL = "https://api.pipedream.com"
DEFAULT_TIMEOUT = 30.0


class PipedreamConfiguration(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "metadata": {
                "label": "Pipedream",
                "section": "credentials",
                "type": "pipedream",
                "categories": ["automation"],
            }
        }
    )

    api_key: SecretStr = Field(description="Pipedream API key")
    org_id: Optional[str] = Field(description="Organization/workspace ID used to scope requests", default=None)
    base_url: str = Field(description="Base API URL", default=DEFAULT_BASE_URL)
    timeout: float = Field(description="Per-request timeout in seconds", default=DEFAULT_TIMEOUT)
    max_retries: int = Field(description="Retries for connection-level failures", default=2)
    backoff_factor: float = Field(description="Base delay in seconds between retries", default=0.5)

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("API key cannot be empty")
        return value

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://")
        return value.rstrip("/")

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeout must be positive")
        return value

    @field_validator('max_retries')
    @classmethod
    def validate_max_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_retries cannot be negative")
        return value
