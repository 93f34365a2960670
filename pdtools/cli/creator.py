"""
pdcreator - manage credentials, validate and deploy local Pipedream workflows.

Settings are kept in ~/.pdcreator/config.json (see ``SettingsStore``); the
Pipedream API key stored there takes precedence over PIPEDREAM_API_KEY.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click

from .. import __version__
from ..clients.exceptions import PipedreamAPIError
from ..utils.workspace import (
    CODE_JS,
    WORKFLOW_JSON,
    read_workflow_json,
    validate_workflow_directory,
)
from .common import abort, configure_logging, get_client
from .config import get_config
from .formatting import get_formatter
from .settings import MASK, SettingsStore, is_sensitive

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _required(message: str):
    def check(value: str) -> str:
        if not value:
            raise click.BadParameter(message)
        return value
    return check


def _pipedream_key(value: str) -> str:
    if not value.startswith('pd_'):
        raise click.BadParameter('Pipedream API keys typically start with "pd_"')
    return value


def _email(value: str) -> str:
    if '@' not in value or '.' not in value.split('@')[-1]:
        raise click.BadParameter('Please enter a valid email address')
    return value


CREDENTIALS = [
    ('claude.api_key', 'Claude API Key', _required('API key is required')),
    ('github.token', 'GitHub API Token', _required('GitHub token is required')),
    ('pipedream.api_key', 'Pipedream API Key', _pipedream_key),
    ('pipedream.username', 'Pipedream Username', _email),
    ('pipedream.password', 'Pipedream Password', _required('Password is required')),
]


@click.group()
@click.version_option(__version__, prog_name='pdcreator')
@click.option('--env-file', default=None, help='Path to .env file (default: ./.env)')
@click.option('--home', envvar='PDCREATOR_HOME', default=None,
              help='Settings directory (default: ~/.pdcreator)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose/info logging')
@click.option('--output', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def cli(ctx, env_file: Optional[str], home: Optional[str], debug: bool, verbose: bool, output: str):
    """Pipedream Component Creator - validate and deploy Pipedream workflows."""
    ctx.ensure_object(dict)
    configure_logging(debug, verbose)

    settings = SettingsStore(home)
    ctx.obj['settings'] = settings
    ctx.obj['config'] = get_config(env_file=env_file, api_key=settings.get('pipedream.api_key'))
    ctx.obj['formatter'] = get_formatter(output)
    ctx.obj['output'] = output


@cli.group()
def config():
    """Manage pdcreator credentials and settings."""
    pass


@config.command('setup')
@click.pass_context
def config_setup(ctx):
    """Interactive setup of all credentials."""
    settings = ctx.obj['settings'].initialize()
    click.echo("Setting up pdcreator configuration...\n")

    for key, label, check in CREDENTIALS:
        current = settings.get(key)
        secret = is_sensitive(key)
        value = click.prompt(
            label,
            default=current or None,
            hide_input=secret,
            show_default=not secret,
            value_proc=check,
        )
        if value:
            settings.set(key, value)

    click.echo(f"\nCredentials stored securely in {settings.config_path}")
    click.echo("Configuration complete! pdcreator is ready to use")


@config.command('list')
@click.pass_context
def config_list(ctx):
    """List all configuration values (secrets masked)."""
    values = ctx.obj['settings'].list()
    if ctx.obj['output'] == 'text':
        click.echo("Current pdcreator configuration:")
    click.echo(json.dumps(values, indent=2))


@config.command('get')
@click.argument('key')
@click.pass_context
def config_get(ctx, key: str):
    """Show one configuration value."""
    value = ctx.obj['settings'].get(key)
    if value is None:
        abort(ctx, f"Configuration key '{key}' not found")
    if is_sensitive(key):
        value = MASK
    if isinstance(value, dict):
        click.echo(f"{key}: {json.dumps(value, indent=2)}")
    else:
        click.echo(f"{key}: {value}")


@config.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Set a configuration value."""
    ctx.obj['settings'].set(key, value)
    click.echo(f"Configuration key '{key}' has been set")


@config.command('delete')
@click.argument('key')
@click.pass_context
def config_delete(ctx, key: str):
    """Delete a configuration value."""
    if not ctx.obj['settings'].delete(key):
        abort(ctx, f"Configuration key '{key}' not found")
    click.echo(f"Configuration key '{key}' has been deleted")


@cli.command()
@click.option('--path', '-p', 'workflow_path', required=True, type=click.Path(),
              help='Path to workflow directory')
@click.pass_context
def validate(ctx, workflow_path: str):
    """Validate a local workflow directory (workflow.json + code.js)."""
    errors = validate_workflow_directory(workflow_path)
    if errors:
        abort(ctx, "Validation failed:\n" + "\n".join(f"  - {error}" for error in errors))
    click.echo(ctx.obj['formatter'].format_result("Workflow directory is valid", path=workflow_path))


@cli.command()
@click.option('--path', '-p', 'workflow_path', required=True, type=click.Path(),
              help='Path to workflow directory')
@click.option('--env', '-e', 'environment', type=click.Choice(['dev', 'prod']), default='dev',
              help='Environment (dev, prod)')
@click.option('--project', default=None, help='Project ID (default: workflow.json or config.ini)')
@click.option('--force', is_flag=True, help='Deploy even if workflow.json already has an ID')
@click.pass_context
def deploy(ctx, workflow_path: str, environment: str, project: Optional[str], force: bool):
    """Deploy a local workflow directory to Pipedream as a new workflow."""
    if not os.path.exists(workflow_path):
        abort(ctx, f"Path does not exist: {workflow_path}")
    errors = validate_workflow_directory(workflow_path, require_id=False)
    if errors:
        abort(ctx, "Validation failed:\n" + "\n".join(f"  - {error}" for error in errors))

    directory = Path(workflow_path)
    metadata = read_workflow_json(directory)
    if metadata.get('id') and not force:
        abort(ctx, f"Workflow already deployed as {metadata['id']}; use --force to create a new copy")

    project = project or metadata.get('project_id') or ctx.obj['config'].project_id
    payload = {
        'name': metadata['name'],
        'steps': [{
            'type': 'CodeCell',
            'savedComponent': {'code': (directory / CODE_JS).read_text(encoding='utf-8')},
        }],
    }
    if project:
        payload['project_id'] = project
    if metadata.get('org_id'):
        payload['org_id'] = metadata['org_id']

    logger.info(f"Deploying {directory} to {environment} environment")
    client = get_client(ctx)
    try:
        created = client.create_workflow(payload)
    except PipedreamAPIError as e:
        abort(ctx, f"Error deploying component: {e.message}")

    workflow_id = created.get('id') if isinstance(created, dict) else None
    if not workflow_id:
        abort(ctx, f"Deployment response did not include a workflow ID: {created!r}")
    metadata.update({
        'id': workflow_id,
        'environment': environment,
        'deployed_at': datetime.now(timezone.utc).isoformat(),
    })
    with open(directory / WORKFLOW_JSON, 'w', encoding='utf-8') as f:
        json.dump(metadata, f, indent=2)

    click.echo(ctx.obj['formatter'].format_result(
        "Component deployed successfully!",
        id=workflow_id,
        environment=environment,
    ))


def main():
    """Entry point for pdcreator."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"\nError: {str(e)}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
