import json

import pytest

from pdtools.utils.workspace import (
    UnsupportedReferenceError,
    code_from_payload,
    extract_code,
    extract_workflow_id,
    find_local_workflow_id,
    is_valid_project_id,
    is_valid_workflow_id,
    is_workflow_directory,
    placeholder_code,
    read_workflow_json,
    validate_code,
    validate_workflow_directory,
    validate_workflow_json,
    write_workflow,
)

CODE = "export default defineComponent({\n  async run({ steps, $ }) {}\n})\n"


def make_workflow_dir(path, metadata, code=CODE):
    path.mkdir(parents=True, exist_ok=True)
    (path / "workflow.json").write_text(json.dumps(metadata))
    (path / "code.js").write_text(code)
    return path


class TestExtractWorkflowId:

    def test_bare_id(self):
        assert extract_workflow_id("p_ABC123") == "p_ABC123"

    def test_workflow_url(self):
        url = "https://pipedream.com/@someone/p_ABC123/build?tab=code"
        assert extract_workflow_id(url) == "p_ABC123"

    def test_project_url_rejected(self):
        with pytest.raises(UnsupportedReferenceError, match="Project URLs are not supported"):
            extract_workflow_id("https://pipedream.com/@someone/projects/proj_XYZ789/tree")

    def test_url_without_id(self):
        assert extract_workflow_id("https://pipedream.com/@someone/settings") is None

    def test_blank(self):
        assert extract_workflow_id("  ") is None


def test_id_formats():
    assert is_valid_workflow_id("p_ABC123")
    assert not is_valid_workflow_id("p_AB")
    assert not is_valid_workflow_id("proj_ABC123")
    assert is_valid_project_id("proj_ABC123")
    assert not is_valid_project_id("p_ABC123")


def test_extract_code_from_first_code_cell():
    workflow = {"steps": [
        {"type": "Trigger"},
        {"type": "CodeCell", "savedComponent": {"code": "first"}},
        {"type": "CodeCell", "savedComponent": {"code": "second"}},
    ]}
    assert extract_code(workflow) == "first"
    assert extract_code({"steps": [{"type": "CodeCell", "savedComponent": {}}]}) is None
    assert extract_code(None) is None


def test_code_from_payload():
    assert code_from_payload("export default {}") == "export default {}"
    assert code_from_payload({"code": "x"}) == "x"
    assert code_from_payload({"steps": [{"type": "CodeCell", "savedComponent": {"code": "y"}}]}) == "y"
    assert code_from_payload([]) is None


def test_placeholder_code():
    assert placeholder_code().startswith("// No code found for this workflow")


def test_write_workflow(tmp_path):
    directory = write_workflow(tmp_path, "p_ABC123", {"id": "p_ABC123", "name": "Demo"}, CODE)

    assert directory == tmp_path / "workflows" / "p_ABC123"
    assert json.loads((directory / "workflow.json").read_text()) == {"id": "p_ABC123", "name": "Demo"}
    assert (directory / "code.js").read_text() == CODE
    assert is_workflow_directory(directory)


def test_read_workflow_json_handles_bad_files(tmp_path):
    assert read_workflow_json(tmp_path) is None
    (tmp_path / "workflow.json").write_text("{not json")
    assert read_workflow_json(tmp_path) is None
    (tmp_path / "workflow.json").write_text("[1, 2]")
    assert read_workflow_json(tmp_path) is None


def test_find_local_workflow_id(tmp_path):
    assert find_local_workflow_id(tmp_path) is None

    named = tmp_path / "p_DIRNAME1"
    named.mkdir()
    assert find_local_workflow_id(named) == "p_DIRNAME1"

    make_workflow_dir(tmp_path / "local", {"id": "p_FROMJSON", "name": "x"})
    assert find_local_workflow_id(tmp_path / "local") == "p_FROMJSON"


class TestValidation:

    def test_valid_metadata(self):
        assert validate_workflow_json({"id": "p_ABC123", "name": "Demo"}) == []

    def test_missing_fields(self):
        assert validate_workflow_json({}) == [
            "Missing required field: id",
            "Missing required field: name",
        ]

    def test_id_optional_before_deploy(self):
        assert validate_workflow_json({"name": "Draft"}, require_id=False) == []

    def test_invalid_id_format(self):
        assert validate_workflow_json({"id": "wf_1", "name": "x"}) == ["Invalid workflow ID format: wf_1"]

    def test_code_checks(self):
        assert validate_code(CODE) == []
        assert validate_code("") == ["code.js content is empty or invalid"]
        assert validate_code("module.exports = {}") == ["Missing export default statement"]

    def test_valid_directory(self, tmp_path):
        directory = make_workflow_dir(tmp_path / "wf", {"id": "p_ABC123", "name": "Demo"})
        assert validate_workflow_directory(directory) == []

    def test_missing_directory(self, tmp_path):
        errors = validate_workflow_directory(tmp_path / "missing")
        assert errors[0].startswith("Path does not exist")

    def test_directory_without_files(self, tmp_path):
        errors = validate_workflow_directory(tmp_path)
        assert errors[0].startswith("Not a workflow directory")

    def test_collects_all_problems(self, tmp_path):
        directory = make_workflow_dir(tmp_path / "wf", {"name": "Demo"}, code="console.log(1)")
        assert validate_workflow_directory(directory) == [
            "Missing required field: id",
            "Missing export default statement",
        ]
