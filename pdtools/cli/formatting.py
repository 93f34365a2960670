"""
Output formatting utilities for the pdtools CLIs.

Provides text and JSON formatters for users, projects, workflows, triggers
and steps.
"""

import json
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from ..clients.components import (
    component_display_name,
    component_type_label,
    trigger_details,
    workflow_name,
)

SEPARATOR = "-" * 70


class OutputFormatter:
    """Base class for output formatters."""

    def format_error(self, error: str) -> str:
        raise NotImplementedError

    def format_user(self, user: Dict[str, Any]) -> str:
        raise NotImplementedError

    def format_projects(self, projects: List[Dict[str, Any]]) -> str:
        raise NotImplementedError

    def format_workflows(self, workflows: List[Dict[str, Any]]) -> str:
        raise NotImplementedError

    def format_triggers(self, workflow_id: str, triggers: List[Dict[str, Any]]) -> str:
        raise NotImplementedError

    def format_steps(self, workflow_id: str, steps: List[Dict[str, Any]],
                     workflow: Optional[Dict[str, Any]] = None, detailed: bool = False) -> str:
        raise NotImplementedError

    def format_result(self, message: str, **fields) -> str:
        raise NotImplementedError


class TextFormatter(OutputFormatter):
    """Human-readable text formatter."""

    def _render(self, *renderables) -> str:
        console = Console(width=120, force_terminal=False, color_system=None)
        with console.capture() as capture:
            for renderable in renderables:
                console.print(renderable)
        return capture.get()

    def format_error(self, error: str) -> str:
        return f"\n✗ Error: {error}\n"

    def format_user(self, user: Dict[str, Any]) -> str:
        lines = [
            "\nCurrent user:\n",
            f"  ID: {user.get('id', 'unknown')}",
            f"  Username: {user.get('username') or user.get('email') or 'unknown'}",
        ]
        orgs = user.get('orgs') or []
        if orgs:
            lines.append("\nOrganizations:")
            for org in orgs:
                lines.append(f"  - {org.get('name') or org.get('orgname') or 'Unnamed'} ({org.get('id')})")
        return "\n".join(lines)

    def format_projects(self, projects: List[Dict[str, Any]]) -> str:
        if not projects:
            return "\nNo projects found."
        table = Table(show_header=True, header_style="bold cyan", box=box.SIMPLE)
        table.add_column("ID", no_wrap=True)
        table.add_column("Name")
        for project in projects:
            table.add_row(str(project.get('id', '')), project.get('name') or 'Unnamed Project')
        return self._render(table, f"Total projects: {len(projects)}")

    def format_workflows(self, workflows: List[Dict[str, Any]]) -> str:
        if not workflows:
            return "\nNo workflows found for this project."
        table = Table(title="Workflows", show_header=True, header_style="bold cyan", box=box.SIMPLE)
        table.add_column("ID", no_wrap=True)
        table.add_column("Name")
        table.add_column("Status", no_wrap=True)
        for workflow in workflows:
            settings = workflow.get('settings') or {}
            status = 'Active' if settings.get('active') or workflow.get('active') else 'Inactive'
            table.add_row(str(workflow.get('id', '')), workflow_name(workflow), status)
        return self._render(table, f"Total workflows: {len(workflows)}")

    def format_triggers(self, workflow_id: str, triggers: List[Dict[str, Any]]) -> str:
        if not triggers:
            return "\nNo triggers found for this workflow."
        lines = [f"\nTriggers for workflow: {workflow_id}", SEPARATOR]
        for index, trigger in enumerate(triggers, 1):
            details = trigger_details(trigger, workflow_id)
            lines.append(f"Trigger #{index}: {details['app']} ({details['type']})")
            if details['webhook_url']:
                lines.append(f"Webhook URL: {details['webhook_url']}")
            if details['schedule']:
                lines.append(f"Schedule: {details['schedule']}")
            configuration = trigger.get('source') or trigger.get('options') or trigger
            lines.append("Configuration:")
            lines.append(json.dumps(configuration, indent=2, default=str))
            lines.append(SEPARATOR)
        return "\n".join(lines)

    def format_steps(self, workflow_id: str, steps: List[Dict[str, Any]],
                     workflow: Optional[Dict[str, Any]] = None, detailed: bool = False) -> str:
        lines = []
        if workflow:
            lines.append(f"\nWorkflow: {workflow_name(workflow)} ({workflow_id})")
            lines.append(f"URL: https://pipedream.com/workflows/{workflow_id}")
        if not steps:
            lines.append("\nNo steps found for this workflow.")
            return "\n".join(lines)

        lines.extend([f"\nSteps ({len(steps)} total):", SEPARATOR])
        for index, step in enumerate(steps, 1):
            lines.append(f"{index}. {component_display_name(step)} [{component_type_label(step)}]")
            if step.get('app'):
                lines.append(f"   App: {step['app']}")
            if detailed:
                if step.get('source'):
                    lines.append(f"   Source: {json.dumps(step['source'], indent=2, default=str)}")
                if step.get('options'):
                    lines.append(f"   Options: {json.dumps(step['options'], indent=2, default=str)}")
            lines.append(SEPARATOR)
        return "\n".join(lines)

    def format_result(self, message: str, **fields) -> str:
        lines = [f"\n✓ {message}"]
        for key, value in fields.items():
            if value is not None:
                lines.append(f"  {key}: {value}")
        return "\n".join(lines)


class JSONFormatter(OutputFormatter):
    """JSON formatter for scripting and automation."""

    def __init__(self, pretty: bool = True):
        """
        Initialize JSON formatter.

        Args:
            pretty: If True, format JSON with indentation
        """
        self.pretty = pretty

    def _dump(self, data: Any) -> str:
        """Dump data as JSON."""
        if self.pretty:
            return json.dumps(data, indent=2, default=str)
        return json.dumps(data, default=str)

    def format_error(self, error: str) -> str:
        return self._dump({'success': False, 'error': error})

    def format_user(self, user: Dict[str, Any]) -> str:
        return self._dump(user)

    def format_projects(self, projects: List[Dict[str, Any]]) -> str:
        return self._dump({'projects': projects, 'total': len(projects)})

    def format_workflows(self, workflows: List[Dict[str, Any]]) -> str:
        return self._dump({'workflows': workflows, 'total': len(workflows)})

    def format_triggers(self, workflow_id: str, triggers: List[Dict[str, Any]]) -> str:
        return self._dump({
            'workflow_id': workflow_id,
            'triggers': [dict(trigger, details=trigger_details(trigger, workflow_id)) for trigger in triggers],
            'total': len(triggers),
        })

    def format_steps(self, workflow_id: str, steps: List[Dict[str, Any]],
                     workflow: Optional[Dict[str, Any]] = None, detailed: bool = False) -> str:
        return self._dump({
            'workflow_id': workflow_id,
            'name': workflow_name(workflow) if workflow else None,
            'steps': steps,
            'total': len(steps),
        })

    def format_result(self, message: str, **fields) -> str:
        return self._dump(dict({'success': True, 'message': message}, **fields))


def get_formatter(output_format: str = 'text', pretty: bool = True) -> OutputFormatter:
    """
    Get output formatter by name.

    Args:
        output_format: Format type ('text' or 'json')
        pretty: For JSON formatter, whether to pretty-print

    Returns:
        OutputFormatter instance
    """
    if output_format == 'json':
        return JSONFormatter(pretty=pretty)
    return TextFormatter()
