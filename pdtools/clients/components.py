"""
Workflow component helpers.

A workflow's ``components`` list mixes its trigger (event source) with its
action/code steps. ``is_trigger`` is the single rule that tells them apart;
``split_components`` applies it once so triggers and steps always partition
the list.
"""

from typing import Any, Dict, List, Optional, Tuple

WEBHOOK_URL = "https://webhook.pipedream.com/v1/sources/{workflow_id}/events"
TRIGGER_TYPES = ("source", "trigger")


def is_trigger(component: Dict[str, Any]) -> bool:
    if component.get("type") in TRIGGER_TYPES:
        return True
    if component.get("key") == "trigger":
        return True
    source = component.get("source")
    return isinstance(source, dict) and bool(source)


def split_components(components: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Partition components into (triggers, steps), preserving order."""
    triggers, steps = [], []
    for component in components or []:
        (triggers if is_trigger(component) else steps).append(component)
    return triggers, steps


def workflow_components(workflow: Any) -> List[Dict[str, Any]]:
    if not isinstance(workflow, dict):
        return []
    components = workflow.get("components")
    if not isinstance(components, list):
        return []
    return [component for component in components if isinstance(component, dict)]


def workflow_name(workflow: Dict[str, Any]) -> str:
    settings = workflow.get("settings") or {}
    return workflow.get("name") or settings.get("name") or "Unnamed Workflow"


def component_display_name(component: Dict[str, Any]) -> str:
    app = component.get("app") or ""
    if component.get("name"):
        return component["name"]
    source = component.get("source")
    if isinstance(source, dict) and source.get("name"):
        return source["name"]
    if component.get("key"):
        return f"{app} {component['key']}".strip()
    if component.get("type") in TRIGGER_TYPES:
        return f"{app} Trigger".strip()
    if component.get("type") == "action":
        return f"{app} Action".strip()
    return "Unnamed Component"


def component_type_label(component: Dict[str, Any]) -> str:
    if component.get("type") in TRIGGER_TYPES or component.get("key") == "trigger":
        return "Trigger"
    source = component.get("source")
    if isinstance(source, dict) and source:
        return f"Trigger ({source.get('type') or 'unknown'})"
    if component.get("type") == "action":
        return "Action"
    if component.get("type") == "code":
        return "Code"
    return component.get("type") or "Unknown"


def trigger_details(trigger: Dict[str, Any], workflow_id: str) -> Dict[str, Optional[str]]:
    """Summarize a trigger: app, type, and its webhook URL or schedule."""
    source = trigger.get("source") if isinstance(trigger.get("source"), dict) else {}
    options = trigger.get("options") if isinstance(trigger.get("options"), dict) else {}
    trigger_type = source.get("type") or trigger.get("type")
    app = trigger.get("app") or "unknown"

    details = {"app": app, "type": trigger_type, "webhook_url": None, "schedule": None}
    if app == "http" or trigger_type == "webhook":
        details["webhook_url"] = WEBHOOK_URL.format(workflow_id=workflow_id)
    elif app == "schedule" or trigger_type == "cron":
        details["schedule"] = source.get("cron") or options.get("cron") or "unknown"
    return details
