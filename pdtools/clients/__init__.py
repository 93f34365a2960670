"""
Pipedream API clients.
"""

from .client import OPERATIONS, PipedreamClient
from .components import is_trigger, split_components
from .exceptions import (
    EnvelopeError,
    FallbackExhaustedError,
    GraphQLError,
    HTTPStatusError,
    PipedreamAPIError,
    ResponseParseError,
    TransportError,
)
from .paths import resolve_path, with_query
from .transport import HttpTransport

__all__ = [
    'OPERATIONS',
    'PipedreamClient',
    'HttpTransport',
    'is_trigger',
    'split_components',
    'resolve_path',
    'with_query',
    'PipedreamAPIError',
    'TransportError',
    'HTTPStatusError',
    'ResponseParseError',
    'EnvelopeError',
    'GraphQLError',
    'FallbackExhaustedError',
]
