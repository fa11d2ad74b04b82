"""
Tests for the stackbridge command line.
"""

import json

import pytest

from stackbridge.bridge.boundary import Operation
from stackbridge.cli import main as cli
from stackbridge.core.errors import ExitCode

STACK = """
project: webapp
stack: dev
config:
  azure-native:location: westeurope
resources:
  - type: azure-native:resources:ResourceGroup
    name: rg
    properties:
      location: westeurope
  - type: azure-native:storage:StorageAccount
    name: sa
    properties:
      resourceGroupName: ${rg.name}
"""


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_format: None)


@pytest.fixture
def stack_file(tmp_path):
    path = tmp_path / "stack.yaml"
    path.write_text(STACK)
    return path


class TestOperationCommands:
    """Test commands that reach the runtime."""

    def test_deploy_json(self, stack_file, engine, boundary, output, capsys):
        boundary.succeed(output("rg", "name", "my-rg"))

        exit_code = cli.main(["deploy", str(stack_file), "--json"], engine=engine)

        assert exit_code == ExitCode.SUCCESS
        report = json.loads(capsys.readouterr().out)
        assert report["operation"] == "deploy"
        assert report["outputs"] == {"rg.name": "my-rg"}
        assert [r.name for r in boundary.requests[0].resources] == ["rg", "sa"]

    @pytest.mark.parametrize(
        "command, operation",
        [
            ("preview", Operation.PREVIEW),
            ("refresh", Operation.REFRESH),
            ("destroy", Operation.DESTROY),
            ("outputs", Operation.GET_OUTPUTS),
        ],
    )
    def test_commands_map_to_operations(self, stack_file, engine, boundary, command, operation):
        exit_code = cli.main([command, str(stack_file), "--quiet"], engine=engine)
        assert exit_code == ExitCode.SUCCESS
        assert boundary.operations == [operation]

    def test_import(self, stack_file, engine, boundary):
        exit_code = cli.main(
            [
                "import",
                str(stack_file),
                "--type",
                "azure-native:resources:ResourceGroup",
                "--name",
                "legacy",
                "--id",
                "/subscriptions/1/resourceGroups/legacy",
                "--quiet",
            ],
            engine=engine,
        )
        assert exit_code == ExitCode.SUCCESS
        assert boundary.requests[0].import_target.resource_name == "legacy"

    def test_progress_handler_attached_unless_quiet(self, stack_file, engine, boundary):
        cli.main(["preview", str(stack_file)], engine=engine)
        cli.main(["preview", str(stack_file), "--quiet"], engine=engine)
        assert boundary.registrations == 1

    def test_progress_printed_before_result(self, stack_file, engine, boundary, capsys):
        boundary.events = [
            json.dumps({"type": "preludeEvent", "message": "Updating (dev)"}),
            json.dumps({"type": "summaryEvent", "message": "2 created", "duration_seconds": 3.0}),
        ]

        exit_code = cli.main(["deploy", str(stack_file)], engine=engine)

        assert exit_code == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert out.index("2 created") < out.index("webapp/dev")

    def test_operation_failure_exit_code(self, stack_file, engine, boundary, capsys):
        boundary.fail("quota exceeded")

        exit_code = cli.main(["deploy", str(stack_file), "--quiet"], engine=engine)

        assert exit_code == ExitCode.OPERATION_FAILED
        assert "quota exceeded" in capsys.readouterr().err

    def test_missing_stack_file(self, tmp_path, engine):
        exit_code = cli.main(["deploy", str(tmp_path / "absent.yaml")], engine=engine)
        assert exit_code == ExitCode.CONFIG_ERROR

    def test_missing_library(self, stack_file, monkeypatch):
        monkeypatch.delenv("STACKBRIDGE_LIBRARY_PATH", raising=False)
        exit_code = cli.main(["--library", "/nonexistent/libbridge.so", "preview", str(stack_file)])
        assert exit_code == ExitCode.BRIDGE_ERROR


class TestRefsCommand:
    """Test reference reporting."""

    def test_all_references_resolvable(self, stack_file, capsys):
        exit_code = cli.main(["refs", str(stack_file), "--json"])

        assert exit_code == ExitCode.SUCCESS
        report = json.loads(capsys.readouterr().out)
        assert report == {"references": ["${rg.name}"], "missing": []}

    def test_dangling_reference(self, tmp_path, capsys):
        path = tmp_path / "stack.yaml"
        path.write_text(STACK.replace("${rg.name}", "${ghost.name}"))

        exit_code = cli.main(["refs", str(path), "--json"])

        assert exit_code == ExitCode.OPERATION_FAILED
        assert json.loads(capsys.readouterr().out)["missing"] == ["${ghost.name}"]

    def test_text_report(self, stack_file):
        assert cli.main(["refs", str(stack_file)]) == ExitCode.SUCCESS
