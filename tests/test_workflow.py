"""Tests for workflow parsing and diagnostics."""

from wfpatch.workflow import Diagnostic, parse_workflow

VALID = """name: CI
on:
  pull_request:
permissions:
  contents: read
env:
  TITLE: ${{ github.event.pull_request.title }}
  OWNER: octo-org
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - run: echo "$TITLE"
  test:
    runs-on: ubuntu-latest
    steps:
      - run: echo ok
"""


class TestParseWorkflow:
    """Test parsing valid workflows."""

    def test_valid_workflow_has_no_diagnostics(self):
        workflow, diagnostics = parse_workflow(VALID)
        assert diagnostics == []
        assert workflow is not None

    def test_env_values_kept_as_text(self):
        workflow, _ = parse_workflow(VALID)
        assert workflow.env == {
            "TITLE": "${{ github.event.pull_request.title }}",
            "OWNER": "octo-org",
        }

    def test_jobs_in_order(self):
        workflow, _ = parse_workflow(VALID)
        assert workflow.jobs == ["build", "test"]

    def test_on_key_not_boolean(self):
        workflow, diagnostics = parse_workflow("on: push\njobs:\n  a:\n    runs-on: x\n")
        assert diagnostics == []

    def test_no_env(self):
        workflow, _ = parse_workflow("on: push\njobs:\n  a:\n    runs-on: x\n")
        assert workflow.env == {}

    def test_empty_env(self):
        workflow, diagnostics = parse_workflow("on: push\nenv:\njobs:\n  a:\n    runs-on: x\n")
        assert diagnostics == []
        assert workflow.env == {}

    def test_flow_env(self):
        workflow, diagnostics = parse_workflow("on: push\nenv: {A: a, B: b}\njobs:\n  a:\n    runs-on: x\n")
        assert diagnostics == []
        assert workflow.env == {"A": "a", "B": "b"}


class TestDiagnostics:
    """Test the problems reported for broken workflows."""

    def test_invalid_yaml(self):
        workflow, diagnostics = parse_workflow("on: push\njobs: [a\n")
        assert workflow is None
        assert len(diagnostics) == 1
        assert diagnostics[0].kind == "syntax-check"
        assert diagnostics[0].message.startswith("could not parse as YAML")

    def test_empty_workflow(self):
        workflow, diagnostics = parse_workflow("")
        assert workflow is None
        assert diagnostics[0].message == "workflow is empty"

    def test_comments_only(self):
        workflow, diagnostics = parse_workflow("# nothing here\n")
        assert workflow is None
        assert len(diagnostics) == 1

    def test_root_not_mapping(self):
        workflow, diagnostics = parse_workflow("- on: push\n")
        assert workflow is None
        assert "mapping node is expected" in diagnostics[0].message

    def test_missing_sections(self):
        _, diagnostics = parse_workflow("name: nothing\n")
        messages = [d.message for d in diagnostics]
        assert '"on" section is missing in workflow' in messages
        assert '"jobs" section is missing in workflow' in messages

    def test_unexpected_key(self):
        _, diagnostics = parse_workflow("on: push\nenvironment: x\njobs:\n  a:\n    runs-on: x\n")
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 2
        assert diagnostics[0].column == 1
        assert diagnostics[0].message.startswith('unexpected key "environment"')

    def test_duplicate_key(self):
        text = "on: push\nenv:\n  A: a\n  A: b\njobs:\n  a:\n    runs-on: x\n"
        _, diagnostics = parse_workflow(text)
        assert diagnostics == [
            Diagnostic(4, 3, "syntax-check",
                       'key "A" is duplicated in "env" section. previously defined at line:3,col:3'),
        ]

    def test_duplicate_top_level_section(self):
        text = "on: push\nenv:\n  A: a\nenv:\n  B: b\njobs:\n  a:\n    runs-on: x\n"
        _, diagnostics = parse_workflow(text)
        assert len(diagnostics) == 1
        assert diagnostics[0].message.startswith('key "env" is duplicated in "workflow" section')

    def test_env_not_mapping(self):
        _, diagnostics = parse_workflow("on: push\nenv: [a, b]\njobs:\n  a:\n    runs-on: x\n")
        assert '"env" section must be mapping node but got sequence node' in [d.message for d in diagnostics]

    def test_invalid_env_name(self):
        _, diagnostics = parse_workflow("on: push\nenv:\n  'A B': x\njobs:\n  a:\n    runs-on: x\n")
        assert [d.kind for d in diagnostics] == ["env-var"]

    def test_jobs_not_mapping(self):
        _, diagnostics = parse_workflow("on: push\njobs: build\n")
        assert diagnostics[0].message == '"jobs" section must be mapping node but got scalar node'

    def test_sorted_by_position(self):
        text = "on: push\nfoo: 1\nenv:\n  A: a\n  A: b\nbar: 2\njobs:\n  a:\n    runs-on: x\n"
        _, diagnostics = parse_workflow(text)
        assert [d.line for d in diagnostics] == [2, 5, 6]

    def test_str(self):
        d = Diagnostic(3, 5, "syntax-check", "oops")
        assert str(d) == "3:5: oops [syntax-check]"
