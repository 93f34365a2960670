import pytest

from pdtools.clients.client import PipedreamClient
from pdtools.clients.exceptions import HTTPStatusError
from pdtools.configurations.pipedream import PipedreamConfiguration


class FakeTransport:
    """
    In-memory stand-in for HttpTransport.

    ``routes`` maps "METHOD /path" to either a JSON payload or an exception
    instance to raise. Unknown routes answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.bodies = []

    def send(self, method, path, body=None):
        key = f"{method} {path}"
        self.calls.append(key)
        self.bodies.append(body)
        if key not in self.routes:
            raise HTTPStatusError(404, '{"error":"record not found"}', path)
        result = self.routes[key]
        if isinstance(result, Exception):
            raise result
        return result

    def count(self, key):
        return self.calls.count(key)


@pytest.fixture
def make_client():
    def factory(routes=None, **config):
        transport = FakeTransport(routes)
        configuration = PipedreamConfiguration(api_key=config.pop('api_key', 'pd_test_key'), **config)
        return PipedreamClient(configuration, transport=transport), transport
    return factory
