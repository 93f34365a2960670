"""
Helpers shared by the pdmanager and pdcreator command groups.
"""

import logging
from typing import Any, Dict, List

import click

from ..clients.client import PipedreamClient

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(debug: bool = False, verbose: bool = False):
    """Set the pdtools log level from the --debug / --verbose flags."""
    if debug:
        logging.getLogger('pdtools').setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")
    elif verbose:
        logging.getLogger('pdtools').setLevel(logging.INFO)
        logger.info("Verbose logging enabled")


def abort(ctx: click.Context, message: str):
    """Print a formatted error and stop with exit status 1."""
    formatter = ctx.obj['formatter']
    click.echo(formatter.format_error(message), err=True)
    ctx.exit(1)


def get_client(ctx: click.Context) -> PipedreamClient:
    """
    Get the PipedreamClient for this invocation.

    One client is built per command invocation and reused by every call the
    command makes. Raises click.ClickException if no API key is configured.
    """
    if ctx.obj.get('client') is not None:
        return ctx.obj['client']

    config = ctx.obj['config']
    if not config.is_configured():
        raise click.ClickException(
            f"Missing required configuration: {', '.join(config.get_missing_config())}\n\n"
            "Provide the API key with --api-key, set PIPEDREAM_API_KEY in your .env file,\n"
            "or add it to config.ini:\n"
            "  [api]\n"
            "  key = your_api_key_here"
        )

    try:
        client = PipedreamClient(config.to_configuration())
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    ctx.obj['client'] = client
    logger.debug("PipedreamClient initialized")
    return client


def as_list(value: Any) -> List[Dict[str, Any]]:
    """Normalize list-like API payloads to their object entries."""
    if isinstance(value, dict):
        value = next((value[key] for key in ('workflows', 'projects', 'items', 'data')
                      if isinstance(value.get(key), list)), [])
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
