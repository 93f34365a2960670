"""
Local workspace helpers.

A downloaded (or locally authored) workflow lives in its own directory:

    workflows/<workflow_id>/
        workflow.json   metadata (id, name, org_id, trigger ...)
        code.js         the workflow's code step
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

WORKFLOW_JSON = "workflow.json"
CODE_JS = "code.js"
WORKFLOW_ID_PATTERN = re.compile(r"^p_[A-Za-z0-9]{6,}$")
PROJECT_ID_PATTERN = re.compile(r"^proj_[A-Za-z0-9]{6,}$")

PathLike = Union[str, Path]


class UnsupportedReferenceError(ValueError):
    """Raised for references that name something other than a workflow."""


def is_valid_workflow_id(value: str) -> bool:
    return bool(value and WORKFLOW_ID_PATTERN.match(value))


def is_valid_project_id(value: str) -> bool:
    return bool(value and PROJECT_ID_PATTERN.match(value))


def extract_workflow_id(reference: str) -> Optional[str]:
    """
    Get a workflow id from a bare id or a pipedream.com URL.

    Returns None when a URL carries no ``p_`` segment.

    Raises:
        UnsupportedReferenceError: the URL points at a project
    """
    reference = (reference or "").strip()
    if not reference.startswith("http"):
        return reference or None

    for part in reference.split("?")[0].split("/"):
        if part.startswith("p_"):
            return part
        if part.startswith("proj_"):
            raise UnsupportedReferenceError(
                f"Project URLs are not supported ({part}). Please use a workflow ID."
            )
    logger.debug(f"No workflow ID found in URL: {reference}")
    return None


def read_workflow_json(directory: PathLike) -> Optional[Dict[str, Any]]:
    path = Path(directory) / WORKFLOW_JSON
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def find_local_workflow_id(directory: PathLike) -> Optional[str]:
    """Workflow id from ./workflow.json, else from a ``p_...`` directory name."""
    directory = Path(directory)
    metadata = read_workflow_json(directory)
    if metadata and metadata.get("id"):
        return metadata["id"]
    if directory.name.startswith("p_"):
        return directory.name
    return None


def extract_code(workflow: Any) -> Optional[str]:
    """Code of the first CodeCell step of a workflow, if any."""
    if not isinstance(workflow, dict):
        return None
    for step in workflow.get("steps") or []:
        if not isinstance(step, dict) or step.get("type") != "CodeCell":
            continue
        saved = step.get("savedComponent") or {}
        if saved.get("code"):
            return saved["code"]
    return None


def code_from_payload(payload: Any) -> Optional[str]:
    """Code from a workflow code endpoint, which answers with a string or an object."""
    if isinstance(payload, str):
        return payload or None
    if isinstance(payload, dict):
        return payload.get("code") or extract_code(payload)
    return None


def placeholder_code() -> str:
    created = datetime.now(timezone.utc).isoformat()
    return f"// No code found for this workflow\n// Created: {created}\n"


def write_workflow(output_dir: PathLike, workflow_id: str, metadata: Dict[str, Any], code: str) -> Path:
    workflow_dir = Path(output_dir) / "workflows" / workflow_id
    workflow_dir.mkdir(parents=True, exist_ok=True)
    with open(workflow_dir / WORKFLOW_JSON, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2)
    with open(workflow_dir / CODE_JS, "w", encoding="utf-8") as f:
        f.write(code)
    logger.info(f"Saved workflow {workflow_id} to {workflow_dir}")
    return workflow_dir


def is_workflow_directory(directory: PathLike) -> bool:
    directory = Path(directory)
    return (directory / WORKFLOW_JSON).is_file() and (directory / CODE_JS).is_file()


def validate_workflow_json(metadata: Dict[str, Any], require_id: bool = True) -> List[str]:
    errors = []
    required = ("id", "name") if require_id else ("name",)
    for field in required:
        if not metadata.get(field):
            errors.append(f"Missing required field: {field}")
    workflow_id = metadata.get("id")
    if workflow_id and not is_valid_workflow_id(workflow_id):
        errors.append(f"Invalid workflow ID format: {workflow_id}")
    return errors


def validate_code(code: Optional[str]) -> List[str]:
    if not code or not isinstance(code, str):
        return ["code.js content is empty or invalid"]
    if "export default" not in code:
        return ["Missing export default statement"]
    return []


def validate_workflow_directory(directory: PathLike, require_id: bool = True) -> List[str]:
    """Check a workflow directory and return the list of problems found."""
    directory = Path(directory)
    if not directory.is_dir():
        return [f"Path does not exist or is not a directory: {directory}"]
    if not is_workflow_directory(directory):
        return [f"Not a workflow directory (expected {WORKFLOW_JSON} and {CODE_JS}): {directory}"]

    metadata = read_workflow_json(directory)
    if metadata is None:
        return [f"{WORKFLOW_JSON} is not a valid JSON object"]

    errors = validate_workflow_json(metadata, require_id=require_id)
    errors.extend(validate_code((directory / CODE_JS).read_text(encoding="utf-8")))
    return errors
