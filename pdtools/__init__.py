"""
pdtools - command-line tooling for Pipedream projects and workflows.

This package contains four modules:
- clients: REST/GraphQL client with endpoint fallback chains
- configurations: Credential and connection settings
- cli: The ``pdmanager`` and ``pdcreator`` command-line tools
- utils: Local workspace helpers (workflow directories, ids, code files)
"""

__version__ = "0.2.0"

__all__ = ["clients", "configurations", "cli", "utils"]

import importlib

def __getattr__(name):
    if name in __all__:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
