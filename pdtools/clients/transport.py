import logging
import time
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from ..configurations.pipedream import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, PipedreamConfiguration
from .exceptions import GraphQLError, HTTPStatusError, ResponseParseError, TransportError
from .paths import RAW, resolve_path

logger = logging.getLogger(__name__)

METHODS = ("GET", "POST", "PUT", "DELETE")


class HttpTransport(BaseModel):
    """
    Issues single HTTPS requests against the Pipedream API.

    - Bearer authorization configured once on the session.
    - Per-call timeout independent of the requests defaults.
    - Transport-level failures (DNS, connect, timeout, reset) are retried with
      exponential backoff; HTTP status failures never are.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    api_key: SecretStr
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = 2
    backoff_factor: float = 0.5
    session: requests.Session = Field(default_factory=requests.Session, exclude=True)

    def model_post_init(self, __context):
        self.session.headers.update({
            'Authorization': f'Bearer {self.api_key.get_secret_value()}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    @classmethod
    def from_configuration(cls, configuration: PipedreamConfiguration, **kwargs) -> "HttpTransport":
        return cls(
            api_key=configuration.api_key,
            base_url=configuration.base_url,
            timeout=configuration.timeout,
            max_retries=configuration.max_retries,
            backoff_factor=configuration.backoff_factor,
            **kwargs,
        )

    def send(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        """
        Send one request and return the parsed JSON body.

        Args:
            method: GET, POST, PUT or DELETE
            path: Fully qualified request path, including any query string
            body: JSON-serializable request body

        Raises:
            TransportError: no response was obtained
            HTTPStatusError: status outside [200, 300)
            ResponseParseError: 2xx response that is not valid JSON
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = f"{self.base_url.rstrip('/')}{path}"
        logger.debug(f"API Request: {method} {path}")
        response = self._request(method, url, body)

        if not 200 <= response.status_code < 300:
            logger.debug(f"API request failed: {response.status_code} {response.text[:200]}")
            raise HTTPStatusError(response.status_code, response.text, url)

        try:
            data = response.json()
        except ValueError as e:
            logger.debug(f"Response was not valid JSON. Body:\n{response.text[:500]}")
            raise ResponseParseError(response.status_code, response.text, str(e))

        logger.debug(f"API request successful: {response.status_code}")
        return data

    def _request(self, method: str, url: str, body: Optional[Any]) -> requests.Response:
        attempts = self.max_retries + 1
        last_error = None
        for attempt in range(attempts):
            try:
                return self.session.request(method, url, json=body, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = e
                logger.warning(f"{method} {url} failed (attempt {attempt + 1}/{attempts}): {e}")
                if attempt < attempts - 1:
                    time.sleep(self.backoff_factor * (2 ** attempt))
            except requests.RequestException as e:
                raise TransportError(f"{method} {url} could not be sent: {e}") from e

        raise TransportError(f"{method} {url} failed after {attempts} attempt(s): {last_error}") from last_error

    def graphql(self, operation_name: str, variables: Dict[str, Any], sha256_hash: str) -> Dict[str, Any]:
        """Run a persisted GraphQL query and return its envelope."""
        payload = {
            "operationName": operation_name,
            "variables": variables or {},
            "extensions": {
                "persistedQuery": {"version": 1, "sha256Hash": sha256_hash},
            },
        }
        envelope = self.send('POST', resolve_path('/graphql', RAW), payload)
        if isinstance(envelope, dict) and envelope.get("errors"):
            raise GraphQLError(envelope["errors"])
        return envelope
