"""
Endpoint fallback chains.

The Pipedream API exposes the same resource under several, inconsistently
versioned paths. Each client operation is described as an ordered list of
entries which ``FallbackChain`` tries one at a time:

- ``Candidate``: a single (method, path template, version) request.
- ``PerOrganization``: candidates repeated for every organization of the
  current user, interleaved per organization.
- ``Derived``: compute the answer from a richer resource instead of asking
  for it directly.

The first entry that succeeds wins. Failures are collected and, once the list
is exhausted, reported together in a ``FallbackExhaustedError``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import quote

from .exceptions import Attempt, EnvelopeError, FallbackExhaustedError, PipedreamAPIError
from .paths import DEFAULT_VERSION, resolve_path

logger = logging.getLogger(__name__)

ORG_PLACEHOLDER = "<org>"


def unwrap_envelope(payload: Any) -> Any:
    """Return the ``data`` member of an API envelope."""
    if not isinstance(payload, dict) or "data" not in payload:
        raise EnvelopeError("Response envelope has no 'data' key")
    return payload["data"]


@dataclass(frozen=True)
class Candidate:
    method: str
    path: str
    version: Optional[str] = DEFAULT_VERSION

    @property
    def needs_org(self) -> bool:
        return "{org_id}" in self.path

    def endpoint(self, **params) -> str:
        path = self.path.format(**{k: quote(str(v), safe="") for k, v in params.items()})
        return f"{self.method} {resolve_path(path, self.version)}"

    def placeholder(self, **params) -> str:
        """Endpoint label used when the organization could not be resolved."""
        label = self.endpoint(org_id="__org__", **params)
        return label.replace("__org__", ORG_PLACEHOLDER)


class PerOrganization:
    def __init__(self, *candidates: Candidate):
        self.candidates = candidates


@dataclass(frozen=True)
class Derived:
    label: str
    derive: Callable[..., Any]

    def endpoint(self, **params) -> str:
        return self.label.format(**params)


def _raise(error: PipedreamAPIError) -> Callable[[], Any]:
    def call():
        raise error
    return call


class FallbackChain:
    """
    Runs one operation's fallback entries against a client.

    The client must provide ``request(method, path)`` returning the unwrapped
    ``data`` payload and ``organization_ids()`` returning the organizations of
    the current user. Organizations are only looked up once an entry needs them.
    """

    def __init__(self, operation: str, client):
        self.operation = operation
        self.client = client

    def run(self, entries, context: Optional[Dict[str, Any]] = None, **params) -> Any:
        """
        Try ``entries`` in order with ``params`` filled into their paths.

        ``context`` holds values only derivations see, such as a resource the
        caller already fetched.
        """
        attempts: List[Attempt] = []
        for endpoint, call in self._steps(entries, params, context or {}):
            try:
                result = call()
            except PipedreamAPIError as e:
                logger.debug(f"{self.operation}: {endpoint} failed [{e.kind}]: {e.message}")
                attempts.append(Attempt(endpoint, e))
                continue
            if attempts:
                logger.info(f"{self.operation}: resolved via {endpoint} after {len(attempts)} failed attempt(s)")
            return result

        error = FallbackExhaustedError(self.operation, attempts)
        logger.debug(error.message)
        raise error

    def _steps(self, entries, params: Dict[str, Any], context: Dict[str, Any]) -> Iterator[Tuple[str, Callable[[], Any]]]:
        for entry in entries:
            if isinstance(entry, Derived):
                yield entry.endpoint(**params), self._derivation(entry, dict(params, **context))
            elif isinstance(entry, PerOrganization):
                yield from self._per_organization(entry.candidates, params, first_only=False)
            elif entry.needs_org and "org_id" not in params:
                yield from self._per_organization((entry,), params, first_only=True)
            else:
                yield entry.endpoint(**params), self._request(entry, params)

    def _per_organization(self, candidates, params, first_only: bool):
        try:
            org_ids = self.client.organization_ids()
            if not org_ids:
                raise EnvelopeError("Current user does not belong to any organization")
        except PipedreamAPIError as e:
            for candidate in candidates:
                yield candidate.placeholder(**params), _raise(e)
            return

        # TODO: users in several organizations get the first one; pick by workflow ownership instead
        if first_only:
            org_ids = org_ids[:1]
        for org_id in org_ids:
            for candidate in candidates:
                scoped = dict(params, org_id=org_id)
                yield candidate.endpoint(**scoped), self._request(candidate, scoped)

    def _request(self, candidate: Candidate, params: Dict[str, Any]) -> Callable[[], Any]:
        def call():
            path = candidate.endpoint(**params).split(" ", 1)[1]
            return self.client.request(candidate.method, path)
        return call

    def _derivation(self, entry: Derived, params: Dict[str, Any]) -> Callable[[], Any]:
        def call():
            return entry.derive(self.client, **params)
        return call
