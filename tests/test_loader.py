"""
Tests for stack file loading.
"""

from pathlib import Path

import pytest

from stackbridge.config.loader import StackDefinition, load_stack_file
from stackbridge.config.runtime import AzureBlobBackend
from stackbridge.core.errors import ConfigError

EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "webapp.yaml"


class TestLoadStackFile:
    """Test reading stack YAML."""

    def test_example_stack(self):
        definition = load_stack_file(EXAMPLE)

        assert definition.project == "webapp"
        assert definition.stack == "dev"
        assert definition.backend == "azblob"
        assert definition.config["webapp:replicas"] == 2
        assert definition.resource_names == ["rg", "sa", "site"]
        assert definition.runtime.backend == AzureBlobBackend(
            storage_account="stackbridgestate", container="pulumi-state"
        )
        site = definition.resources[2]
        assert site.options.depends_on == ["sa"]
        assert site.properties["accountName"] == "${sa.name}"

    def test_minimal_stack(self, tmp_path):
        path = tmp_path / "stack.yaml"
        path.write_text("stack: dev\n")

        definition = load_stack_file(path)

        assert definition == StackDefinition(stack="dev")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_stack_file(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("stack: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_stack_file(path)

    @pytest.mark.parametrize(
        "content",
        [
            "- just\n- a list\n",
            "project: webapp\n",
            "stack: dev\nconfig: [a, b]\n",
            "stack: dev\nresources: {rg: {}}\n",
            "stack: dev\nresources: [plain]\n",
            "stack: dev\nresources:\n  - name: rg\n",
            "stack: dev\nruntime: passphrase\n",
        ],
    )
    def test_malformed_stack_files(self, tmp_path, content):
        path = tmp_path / "stack.yaml"
        path.write_text(content)
        with pytest.raises(ConfigError):
            load_stack_file(path)
