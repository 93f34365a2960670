import json
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from pdtools.cli.creator import cli
from pdtools.cli.settings import SettingsStore
from pdtools.clients.client import PipedreamClient
from pdtools.clients.exceptions import HTTPStatusError

CODE = "export default defineComponent({\n  async run({ steps, $ }) {\n    return 1\n  },\n})\n"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Keep .env and config.ini lookups away from the real working directory."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def home(tmp_path):
    return str(tmp_path / 'pdcreator')


@pytest.fixture
def client():
    mock = MagicMock(spec=PipedreamClient)
    mock.create_workflow.return_value = {'id': 'p_DEPLOY1', 'name': 'Draft'}
    return mock


def make_workflow_dir(path, metadata, code=CODE):
    path.mkdir(parents=True, exist_ok=True)
    (path / 'workflow.json').write_text(json.dumps(metadata))
    (path / 'code.js').write_text(code)
    return path


class TestConfigCommands:

    def test_set_get_secret(self, runner, home):
        result = runner.invoke(cli, ['--home', home, 'config', 'set', 'pipedream.api_key', 'pd_abc'])
        assert result.exit_code == 0
        assert "Configuration key 'pipedream.api_key' has been set" in result.output

        result = runner.invoke(cli, ['--home', home, 'config', 'get', 'pipedream.api_key'])
        assert result.exit_code == 0
        assert 'pipedream.api_key: ********' in result.output
        assert SettingsStore(home).get('pipedream.api_key') == 'pd_abc'

    def test_get_plain_value(self, runner, home):
        runner.invoke(cli, ['--home', home, 'config', 'set', 'pipedream.username', 'dev@example.com'])
        result = runner.invoke(cli, ['--home', home, 'config', 'get', 'pipedream.username'])
        assert 'pipedream.username: dev@example.com' in result.output

    def test_get_missing(self, runner, home):
        result = runner.invoke(cli, ['--home', home, 'config', 'get', 'nope'])
        assert result.exit_code == 1
        assert "Configuration key 'nope' not found" in result.output

    def test_list_masks_secrets(self, runner, home):
        store = SettingsStore(home).initialize()
        store.set('github.token', 'ghp_secret')
        store.set('pipedream.username', 'dev@example.com')

        result = runner.invoke(cli, ['--home', home, 'config', 'list'])

        assert result.exit_code == 0
        assert 'Current pdcreator configuration:' in result.output
        assert 'ghp_secret' not in result.output
        assert 'dev@example.com' in result.output

    def test_corrupt_key_file(self, runner, home):
        store = SettingsStore(home).initialize()
        store.key_path.write_text('not hex')

        result = runner.invoke(cli, ['--home', home, 'config', 'set', 'github.token', 'ghp_x'])

        assert result.exit_code == 1
        assert 'is unreadable' in result.output

    def test_delete(self, runner, home):
        SettingsStore(home).initialize().set('project.name', 'demo')

        result = runner.invoke(cli, ['--home', home, 'config', 'delete', 'project.name'])
        assert result.exit_code == 0
        assert "Configuration key 'project.name' has been deleted" in result.output

        result = runner.invoke(cli, ['--home', home, 'config', 'delete', 'project.name'])
        assert result.exit_code == 1

    def test_setup_prompts_for_every_credential(self, runner, home):
        answers = '\n'.join([
            'sk-claude',
            'ghp_token',
            'not-a-pd-key',
            'pd_valid',
            'dev@example.com',
            'hunter2',
        ]) + '\n'

        result = runner.invoke(cli, ['--home', home, 'config', 'setup'], input=answers)

        assert result.exit_code == 0
        assert 'typically start with "pd_"' in result.output
        assert 'Configuration complete!' in result.output
        store = SettingsStore(home)
        assert store.get('claude.api_key') == 'sk-claude'
        assert store.get('pipedream.api_key') == 'pd_valid'
        assert store.get('pipedream.username') == 'dev@example.com'
        assert store.get('pipedream.password') == 'hunter2'


class TestValidate:

    def test_valid_directory(self, runner, home, tmp_path):
        directory = make_workflow_dir(tmp_path / 'wf', {'id': 'p_ABC123', 'name': 'Demo'})

        result = runner.invoke(cli, ['--home', home, 'validate', '-p', str(directory)])

        assert result.exit_code == 0
        assert 'Workflow directory is valid' in result.output

    def test_invalid_directory(self, runner, home, tmp_path):
        directory = make_workflow_dir(tmp_path / 'wf', {'name': 'Demo'}, code='console.log(1)')

        result = runner.invoke(cli, ['--home', home, 'validate', '-p', str(directory)])

        assert result.exit_code == 1
        assert 'Validation failed' in result.output
        assert '- Missing required field: id' in result.output
        assert '- Missing export default statement' in result.output


class TestDeploy:

    def test_deploy_creates_workflow_and_records_id(self, runner, home, tmp_path, client):
        directory = make_workflow_dir(tmp_path / 'wf', {'name': 'Draft', 'project_id': 'proj_ABC123'})

        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory), '-e', 'prod'],
                               obj={'client': client})

        assert result.exit_code == 0
        assert 'Component deployed successfully!' in result.output
        client.create_workflow.assert_called_once_with({
            'name': 'Draft',
            'steps': [{'type': 'CodeCell', 'savedComponent': {'code': CODE}}],
            'project_id': 'proj_ABC123',
        })
        metadata = json.loads((directory / 'workflow.json').read_text())
        assert metadata['id'] == 'p_DEPLOY1'
        assert metadata['environment'] == 'prod'
        assert 'deployed_at' in metadata

    def test_deploy_refuses_redeploy_without_force(self, runner, home, tmp_path, client):
        directory = make_workflow_dir(tmp_path / 'wf', {'id': 'p_ABC123', 'name': 'Live'})

        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory)], obj={'client': client})

        assert result.exit_code == 1
        assert 'already deployed as p_ABC123' in result.output
        client.create_workflow.assert_not_called()

        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory), '--force'],
                               obj={'client': client})
        assert result.exit_code == 0
        client.create_workflow.assert_called_once()

    def test_deploy_api_error(self, runner, home, tmp_path, client):
        client.create_workflow.side_effect = HTTPStatusError(422, '{"error":"invalid"}')
        directory = make_workflow_dir(tmp_path / 'wf', {'name': 'Draft'})

        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory)], obj={'client': client})

        assert result.exit_code == 1
        assert 'Error deploying component' in result.output
        assert 'id' not in json.loads((directory / 'workflow.json').read_text())

    def test_deploy_without_returned_id(self, runner, home, tmp_path, client):
        client.create_workflow.return_value = {'name': 'Draft'}
        directory = make_workflow_dir(tmp_path / 'wf', {'name': 'Draft'})

        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory)], obj={'client': client})

        assert result.exit_code == 1
        assert 'did not include a workflow ID' in result.output
        assert 'Component deployed successfully!' not in result.output
        assert json.loads((directory / 'workflow.json').read_text()) == {'name': 'Draft'}

    def test_deploy_missing_path(self, runner, home, tmp_path, client):
        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(tmp_path / 'missing')],
                               obj={'client': client})
        assert result.exit_code == 1
        assert 'Path does not exist' in result.output

    def test_deploy_uses_stored_api_key(self, runner, home, tmp_path, monkeypatch):
        SettingsStore(home).initialize().set('pipedream.api_key', 'pd_stored')
        directory = make_workflow_dir(tmp_path / 'wf', {'name': 'Draft'})
        created = {}

        def fake_create(self, payload, org_id=None):
            created['key'] = self.configuration.api_key.get_secret_value()
            return {'id': 'p_STORED1'}

        monkeypatch.setattr(PipedreamClient, 'create_workflow', fake_create)
        result = runner.invoke(cli, ['--home', home, 'deploy', '-p', str(directory)])

        assert result.exit_code == 0
        assert created['key'] == 'pd_stored'
        assert (directory / 'workflow.json').read_text().count('p_STORED1') == 1
