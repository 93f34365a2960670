"""
pdtools CLI - command-line interfaces for Pipedream.

- pdmanager: inspect and download projects and workflows
- pdcreator: manage credentials, validate and deploy local workflows
"""

from .creator import cli as creator_cli
from .manager import cli as manager_cli

__all__ = ['manager_cli', 'creator_cli']
