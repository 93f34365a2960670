import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..configurations.pipedream import PipedreamConfiguration
from .components import split_components, workflow_components
from .fallback import Candidate, Derived, FallbackChain, PerOrganization, unwrap_envelope
from .paths import resolve_path, with_query
from .transport import HttpTransport

logger = logging.getLogger(__name__)


def _split_workflow(client: "PipedreamClient", workflow_id: str, workflow: Optional[Dict[str, Any]] = None):
    if workflow is None:
        workflow = client.get_workflow(workflow_id)
    return split_components(workflow_components(workflow))


def _derive_triggers(client: "PipedreamClient", workflow_id: str, **context) -> List[Dict[str, Any]]:
    triggers, _ = _split_workflow(client, workflow_id, **context)
    return triggers


def _derive_steps(client: "PipedreamClient", workflow_id: str, **context) -> List[Dict[str, Any]]:
    _, steps = _split_workflow(client, workflow_id, **context)
    return steps


def _known(workflow: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return {'workflow': workflow} if isinstance(workflow, dict) else None


def _workflow_resource(suffix: str = "") -> tuple:
    return (
        Candidate('GET', '/workflows/{workflow_id}' + suffix, 'v2'),
        Candidate('GET', '/workflows/{workflow_id}' + suffix, 'v1'),
        Candidate('GET', '/users/me/workflows/{workflow_id}' + suffix),
    )


OPERATIONS = {
    'get_workflow': _workflow_resource() + (
        Candidate('GET', '/organizations/{org_id}/workflows/{workflow_id}'),
    ),
    'get_workflow_code': _workflow_resource('/code') + (
        Candidate('GET', '/organizations/{org_id}/workflows/{workflow_id}/code'),
    ),
    'get_workflow_triggers': _workflow_resource('/triggers') + (
        Derived('derive triggers from get_workflow({workflow_id})', _derive_triggers),
    ),
    'get_workflow_steps': _workflow_resource('/steps') + (
        Derived('derive steps from get_workflow({workflow_id})', _derive_steps),
    ),
    'get_project_workflows': (
        Candidate('GET', '/projects/{project_id}/workflows'),
        PerOrganization(
            Candidate('GET', '/organizations/{org_id}/projects/{project_id}/workflows'),
            Candidate('GET', '/workspaces/{org_id}/projects/{project_id}/workflows'),
        ),
        Candidate('GET', '/components/workflows?project_id={project_id}'),
    ),
    'get_organization_projects': (
        Candidate('GET', '/organizations/{org_id}/projects'),
        Candidate('GET', '/workspaces/{org_id}/projects'),
    ),
    'get_projects': (
        Candidate('GET', '/users/me/projects'),
    ),
}


class PipedreamClient:
    """
    Resource-oriented client for the Pipedream API.

    Every lookup walks a fallback chain (see ``OPERATIONS``) and returns the
    unwrapped ``data`` payload of the first endpoint that answers. When all of
    them fail a ``FallbackExhaustedError`` lists each endpoint and why it failed.

    The current user's organizations are fetched at most once per instance.
    """

    def __init__(self,
                 configuration: PipedreamConfiguration,
                 transport: Optional[HttpTransport] = None):
        self.configuration = configuration
        self.transport = transport or HttpTransport.from_configuration(configuration)
        self._org_ids: Optional[List[str]] = None

    def request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        return unwrap_envelope(self.transport.send(method, path, body))

    def _run(self, operation: str, context: Optional[Dict[str, Any]] = None, **params) -> Any:
        for name, value in params.items():
            if not value:
                raise ValueError(f"{name} is required")
        return FallbackChain(operation, self).run(OPERATIONS[operation], context=context, **params)

    def get_current_user(self) -> Dict[str, Any]:
        return self.request('GET', resolve_path('/users/me'))

    def organization_ids(self) -> List[str]:
        """Organization ids of the current user; a configured org_id wins."""
        if self.configuration.org_id:
            return [self.configuration.org_id]
        if self._org_ids is None:
            user = self.get_current_user()
            orgs = user.get('orgs') if isinstance(user, dict) else None
            self._org_ids = [org['id'] for org in orgs or [] if isinstance(org, dict) and org.get('id')]
            if self._org_ids:
                logger.info(f"Using organization ID: {self._org_ids[0]}")
        return list(self._org_ids)

    def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self._run('get_workflow', workflow_id=workflow_id)

    def get_workflow_code(self, workflow_id: str) -> Any:
        return self._run('get_workflow_code', workflow_id=workflow_id)

    def get_workflow_triggers(self, workflow_id: str,
                              workflow: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """``workflow``, when the caller already holds it, is split instead of fetched again."""
        return self._run('get_workflow_triggers', context=_known(workflow), workflow_id=workflow_id)

    def get_workflow_steps(self, workflow_id: str,
                           workflow: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._run('get_workflow_steps', context=_known(workflow), workflow_id=workflow_id)

    def get_project_workflows(self, project_id: str) -> List[Dict[str, Any]]:
        return self._run('get_project_workflows', project_id=project_id)

    def get_projects(self, org_id: Optional[str] = None) -> List[Dict[str, Any]]:
        if org_id:
            return self._run('get_organization_projects', org_id=org_id)
        return self._run('get_projects')

    def get_source(self, source_id: str) -> Dict[str, Any]:
        return self.request('GET', resolve_path(f"/sources/{quote(source_id, safe='')}"))

    def create_workflow(self, payload: Dict[str, Any], org_id: Optional[str] = None) -> Dict[str, Any]:
        org_id = org_id or payload.get('org_id') or self.configuration.org_id
        path = with_query(resolve_path('/workflows'), org_id=org_id)
        workflow = self.request('POST', path, payload)
        logger.info(f"Workflow created: {workflow.get('id') if isinstance(workflow, dict) else workflow}")
        return workflow

    def persisted_query(self, operation_name: str, variables: Dict[str, Any], sha256_hash: str) -> Any:
        return unwrap_envelope(self.transport.graphql(operation_name, variables, sha256_hash))
