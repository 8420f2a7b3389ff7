import pytest

from kusto_ormgen.shared.config_loader import load_yaml_mapping
from kusto_ormgen.shared.errors import ConfigurationError


class TestLoadYamlMapping:
    def test_load_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("namespace: My.App\nenable_nullable: true\n")

        data = load_yaml_mapping(path)
        assert data == {"namespace": "My.App", "enable_nullable": True}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Failed to read file"):
            load_yaml_mapping(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("key: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml_mapping(path)

    @pytest.mark.parametrize("content", ["- a\n- b\n", "just a string\n", ""])
    def test_root_not_mapping(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        with pytest.raises(ConfigurationError, match="Root must be a mapping") as exc_info:
            load_yaml_mapping(path)
        assert exc_info.value.field == str(path)
