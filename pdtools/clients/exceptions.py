from typing import List, Optional


class PipedreamAPIError(Exception):
    """Base exception for Pipedream client errors."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(PipedreamAPIError):
    """No HTTP response was obtained (DNS, connect, timeout, connection reset)."""

    kind = "transport"


class HTTPStatusError(PipedreamAPIError):
    """A response arrived with a status outside [200, 300)."""

    kind = "http"

    def __init__(self, status_code: int, body: str, url: Optional[str] = None):
        target = f" from {url}" if url else ""
        super().__init__(f"Request failed with status code {status_code}{target}: {body[:500]}")
        self.status_code = status_code
        self.body = body
        self.url = url

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class ResponseParseError(PipedreamAPIError):
    """A 2xx response whose body is not valid JSON."""

    kind = "parse"

    def __init__(self, status_code: int, body: str, reason: str):
        super().__init__(f"Unparseable success response ({status_code}): {reason}")
        self.status_code = status_code
        self.body = body


class EnvelopeError(PipedreamAPIError):
    """Valid JSON that does not carry the expected ``data`` key."""

    kind = "envelope"


class GraphQLError(EnvelopeError):
    """GraphQL envelope with a non-empty ``errors`` list."""

    kind = "graphql"

    def __init__(self, errors: list):
        messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")
        self.errors = errors


class Attempt:
    """One failed candidate of a fallback chain."""

    def __init__(self, endpoint: str, error: PipedreamAPIError):
        self.endpoint = endpoint
        self.error = error

    def __repr__(self):
        return f"Attempt({self.endpoint!r}, {self.error.kind})"

    def describe(self) -> str:
        return f"{self.endpoint} -> [{self.error.kind}] {self.error.message}"


class FallbackExhaustedError(PipedreamAPIError):
    """Every candidate of a fallback chain failed."""

    kind = "exhausted"

    def __init__(self, operation: str, attempts: List[Attempt]):
        self.operation = operation
        self.attempts = list(attempts)
        lines = [f"{operation} failed after {len(self.attempts)} attempt(s):"]
        for index, attempt in enumerate(self.attempts, 1):
            lines.append(f"  {index}. {attempt.describe()}")
        super().__init__("\n".join(lines))

    @property
    def endpoints(self) -> List[str]:
        return [attempt.endpoint for attempt in self.attempts]

    @property
    def all_not_found(self) -> bool:
        """True when every attempt ended in a 404 or a missing envelope."""
        return bool(self.attempts) and all(
            (isinstance(a.error, HTTPStatusError) and a.error.not_found)
            or a.error.kind == "envelope"
            for a in self.attempts
        )
