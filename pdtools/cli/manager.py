"""
pdmanager - inspect and download Pipedream projects and workflows.

Credentials are loaded from the command line, the environment (optionally a
.env file) or config.ini:

    PIPEDREAM_API_KEY=pd_xxx
    PIPEDREAM_ORG_ID=o_xxx        (optional)

    # config.ini
    [project]
    id = proj_xxx
"""

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import click

from .. import __version__
from ..clients.components import workflow_name
from ..clients.exceptions import FallbackExhaustedError, PipedreamAPIError
from ..utils.workspace import (
    UnsupportedReferenceError,
    code_from_payload,
    extract_code,
    extract_workflow_id,
    find_local_workflow_id,
    placeholder_code,
    write_workflow,
)
from .common import abort, as_list, configure_logging, get_client
from .config import get_config
from .formatting import get_formatter

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name='pdmanager')
@click.option('--env-file', default=None, help='Path to .env file (default: ./.env)')
@click.option('--api-key', '-k', default=None, help='Pipedream API key (default: PIPEDREAM_API_KEY)')
@click.option('--org-id', default=None, help='Organization ID used to scope requests')
@click.option('--debug', is_flag=True, help='Enable debug logging (shows every API request)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose/info logging')
@click.option('--output', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def cli(ctx, env_file: Optional[str], api_key: Optional[str], org_id: Optional[str],
        debug: bool, verbose: bool, output: str):
    """CLI tool for managing Pipedream workflows."""
    ctx.ensure_object(dict)
    configure_logging(debug, verbose)

    ctx.obj['config'] = get_config(env_file=env_file, api_key=api_key, org_id=org_id)
    ctx.obj['formatter'] = get_formatter(output)
    ctx.obj['output'] = output


def _resolve_workflow_id(workflow: Optional[str]) -> Optional[str]:
    if workflow:
        return workflow
    workflow_id = find_local_workflow_id(os.getcwd())
    if workflow_id:
        logger.info(f"Using workflow ID from current directory: {workflow_id}")
    return workflow_id


def _suggest_workflows(ctx, project: Optional[str], purpose: str):
    """Without a workflow ID, list the project's workflows so the user can pick one."""
    project = project or ctx.obj['config'].project_id
    if not project:
        abort(ctx, "Workflow ID is required. Please provide --workflow <id> "
                   "or run this command from a workflow directory.")

    client = get_client(ctx)
    try:
        workflows = as_list(client.get_project_workflows(project))
    except PipedreamAPIError as e:
        abort(ctx, f"Error fetching workflows: {e.message}")

    click.echo(ctx.obj['formatter'].format_workflows(workflows))
    if ctx.obj['output'] == 'text' and workflows:
        click.echo(f"\nPlease use --workflow <id> to specify which workflow to retrieve {purpose} for.")


@cli.command()
@click.pass_context
def whoami(ctx):
    """Show the authenticated user and their organizations."""
    client = get_client(ctx)
    try:
        user = client.get_current_user()
    except PipedreamAPIError as e:
        abort(ctx, f"Failed to get user details: {e.message}")
    click.echo(ctx.obj['formatter'].format_user(user or {}))


@cli.command()
@click.option('--org', 'org_id', default=None, help='Organization/workspace ID')
@click.pass_context
def projects(ctx, org_id: Optional[str]):
    """List projects of the current user or of an organization."""
    client = get_client(ctx)
    try:
        result = as_list(client.get_projects(org_id))
    except PipedreamAPIError as e:
        abort(ctx, e.message)
    click.echo(ctx.obj['formatter'].format_projects(result))


@cli.command('list-workflows')
@click.option('--project', '-p', default=None, help='Project ID (optional if config.ini has [project] id)')
@click.pass_context
def list_workflows(ctx, project: Optional[str]):
    """List all workflows in a project."""
    project = project or ctx.obj['config'].project_id
    if not project:
        abort(ctx, "Project ID is required. Provide via --project option "
                   "or ensure config.ini contains [project] id")

    client = get_client(ctx)
    logger.info(f"Fetching workflows for project: {project}")
    try:
        workflows = as_list(client.get_project_workflows(project))
    except PipedreamAPIError as e:
        abort(ctx, f"Error listing workflows: {e.message}")
    click.echo(ctx.obj['formatter'].format_workflows(workflows))


@cli.command('list-triggers')
@click.option('--workflow', '-w', default=None, help='Workflow ID')
@click.option('--project', '-p', default=None, help='Project ID (to list all workflows)')
@click.pass_context
def list_triggers(ctx, workflow: Optional[str], project: Optional[str]):
    """List all triggers for a workflow."""
    workflow_id = _resolve_workflow_id(workflow)
    if not workflow_id:
        _suggest_workflows(ctx, project, 'triggers')
        return

    client = get_client(ctx)
    try:
        triggers = client.get_workflow_triggers(workflow_id)
    except FallbackExhaustedError as e:
        # the id may name an event source rather than a workflow
        logger.debug(f"Trigger lookup exhausted, trying source {workflow_id}")
        try:
            source = client.get_source(workflow_id)
        except PipedreamAPIError:
            abort(ctx, e.message)
        source = source if isinstance(source, dict) else {}
        triggers = [{
            'name': source.get('name'),
            'app': source.get('type'),
            'type': 'source',
            'source': source,
        }]
    click.echo(ctx.obj['formatter'].format_triggers(workflow_id, as_list(triggers)))


@cli.command('list-steps')
@click.option('--workflow', '-w', default=None, help='Workflow ID')
@click.option('--project', '-p', default=None, help='Project ID (to list all workflows)')
@click.option('--detailed', '-d', is_flag=True, help='Show detailed component information')
@click.pass_context
def list_steps(ctx, workflow: Optional[str], project: Optional[str], detailed: bool):
    """List all steps in a workflow."""
    workflow_id = _resolve_workflow_id(workflow)
    if not workflow_id:
        _suggest_workflows(ctx, project, 'steps')
        return

    client = get_client(ctx)
    try:
        details = client.get_workflow(workflow_id)
        details = details if isinstance(details, dict) else None
        steps = client.get_workflow_steps(workflow_id, workflow=details)
    except PipedreamAPIError as e:
        abort(ctx, f"Error fetching workflow: {e.message}")
    click.echo(ctx.obj['formatter'].format_steps(workflow_id, as_list(steps), details, detailed))


@cli.command()
@click.argument('id_or_url')
@click.option('--output-dir', '-o', default=None, help='Output directory (default: current directory)')
@click.pass_context
def download(ctx, id_or_url: str, output_dir: Optional[str]):
    """
    Download a Pipedream workflow.

    ID_OR_URL: Workflow ID (p_XXXXX) or a pipedream.com workflow URL
    """
    try:
        workflow_id = extract_workflow_id(id_or_url)
    except UnsupportedReferenceError as e:
        abort(ctx, str(e))
    if not workflow_id:
        abort(ctx, "Could not determine workflow ID. Please provide a valid workflow ID (p_XXXXX) or URL.")

    client = get_client(ctx)
    try:
        workflow = client.get_workflow(workflow_id)
    except PipedreamAPIError as e:
        abort(ctx, f"Error downloading workflow: {e.message}")
    workflow = workflow if isinstance(workflow, dict) else {}

    code = extract_code(workflow)
    if not code:
        try:
            code = code_from_payload(client.get_workflow_code(workflow_id))
        except PipedreamAPIError as e:
            logger.info(f"No code endpoint answered for {workflow_id}: {e.kind}")
    code = code or placeholder_code()

    try:
        org_ids = client.organization_ids()
    except PipedreamAPIError:
        org_ids = []

    name = workflow.get('name') or (workflow.get('settings') or {}).get('name') or f"Workflow_{workflow_id}"
    metadata = {
        'id': workflow_id,
        'name': name,
        'created_at': datetime.now(timezone.utc).isoformat(),
        'org_id': org_ids[0] if org_ids else None,
    }
    triggers = workflow.get('triggers') or []
    if triggers and isinstance(triggers[0], dict) and triggers[0].get('endpoint_url'):
        metadata['trigger'] = {'type': 'http'}
        metadata['webhook_url'] = triggers[0]['endpoint_url']

    path = write_workflow(output_dir or os.getcwd(), workflow_id, metadata, code)
    click.echo(ctx.obj['formatter'].format_result(
        f"Successfully downloaded workflow: {name} ({workflow_id})",
        path=str(path),
    ))


@cli.command('create-workflow')
@click.option('--name', '-n', required=True, help='Workflow name')
@click.option('--project', '-p', default=None, help='Project ID (optional if config.ini has [project] id)')
@click.option('--description', '-d', default=None, help='Workflow description')
@click.pass_context
def create_workflow(ctx, name: str, project: Optional[str], description: Optional[str]):
    """Create a new workflow in a Pipedream project."""
    project = project or ctx.obj['config'].project_id
    payload = {'name': name}
    if project:
        payload['project_id'] = project
    if description:
        payload['description'] = description

    client = get_client(ctx)
    try:
        created = client.create_workflow(payload)
    except PipedreamAPIError as e:
        abort(ctx, f"Failed to create workflow: {e.message}")
    workflow_id = created.get('id') if isinstance(created, dict) else None
    click.echo(ctx.obj['formatter'].format_result(
        f"Workflow created with ID: {workflow_id}",
        id=workflow_id,
        name=workflow_name(created) if isinstance(created, dict) else name,
        project_id=project,
    ))


def main():
    """Entry point for pdmanager."""
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
