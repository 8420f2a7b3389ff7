import argparse
from unittest.mock import MagicMock, patch

import pytest

from kusto_ormgen.orm_codegen.config import GeneratorConfig
from kusto_ormgen.orm_codegen.main import apply_overrides, build_source, main
from kusto_ormgen.orm_codegen.schema_source import (
    KustoRestSchemaSource,
    SnapshotSchemaSource,
)
from kusto_ormgen.shared.errors import ConfigurationError

CONFIG = (
    "namespace: My.App\n"
    "models_folder: Models\n"
    "context_folder: Data\n"
    "context_name: SamplesContext\n"
    "databases:\n"
    "  - Samples\n"
)

SNAPSHOT = (
    "databases:\n"
    "  Samples:\n"
    "    tables:\n"
    "      StormEvents:\n"
    "        State: System.String\n"
    "        StartTime: System.DateTime\n"
    "    functions:\n"
    "      - name: TopStates\n"
    "        parameters: '(count:int)'\n"
    "        columns:\n"
    "          State: System.String\n"
)


def namespace(**overrides):
    values = dict(
        snapshot=None,
        cluster=None,
        token=None,
        timeout=60.0,
        clean=False,
        no_context=False,
        nullable=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


class TestBuildSource:
    def test_snapshot(self, tmp_path):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)

        assert isinstance(build_source(namespace(snapshot=snapshot)), SnapshotSchemaSource)

    def test_cluster(self):
        source = build_source(namespace(cluster="https://c.kusto.windows.net", token="t"))
        assert isinstance(source, KustoRestSchemaSource)

    def test_cluster_without_token(self):
        with pytest.raises(ConfigurationError, match="token"):
            build_source(namespace(cluster="https://c.kusto.windows.net"))

    def test_no_source(self):
        with pytest.raises(ConfigurationError, match="--cluster or --snapshot"):
            build_source(namespace())

    def test_both_sources(self, tmp_path):
        with pytest.raises(ConfigurationError, match="cannot be combined"):
            build_source(namespace(snapshot=tmp_path / "s.yaml", cluster="https://c"))


class TestApplyOverrides:
    def test_no_overrides(self):
        config = GeneratorConfig()
        assert apply_overrides(config, namespace()) is config

    def test_overrides(self):
        config = apply_overrides(
            GeneratorConfig(), namespace(clean=True, no_context=True, nullable=True)
        )
        assert config.clean_before_generate is True
        assert config.create_context is False
        assert config.enable_nullable is True


class TestMain:
    def test_generate_from_snapshot(self, tmp_path, capsys):
        config = tmp_path / "ormgen.yaml"
        config.write_text(CONFIG)
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)

        main([str(config), "--snapshot", str(snapshot)])

        models = tmp_path.resolve() / "Models"
        assert (models / "StormEvents.cs").is_file()
        assert (models / "TopStates.cs").is_file()
        context = (tmp_path.resolve() / "Data" / "SamplesContext.cs").read_text(encoding="utf-8")
        assert "public virtual IQueryable<TopStates> TopStates(int? count)" in context

        output = capsys.readouterr().out
        assert "StormEvents Start" in output
        assert "Generated 2 model(s) from 1 database(s)" in output

    def test_no_context_flag(self, tmp_path, capsys):
        config = tmp_path / "ormgen.yaml"
        config.write_text(CONFIG)
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)

        main([str(config), "--snapshot", str(snapshot), "--no-context"])

        assert not (tmp_path / "Data" / "SamplesContext.cs").exists()
        assert "Context:" not in capsys.readouterr().out

    def test_error_exits(self, tmp_path):
        config = tmp_path / "ormgen.yaml"
        config.write_text(CONFIG)

        with pytest.raises(SystemExit, match="Error: .*--cluster or --snapshot"):
            main([str(config)])

    @patch("kusto_ormgen.orm_codegen.main.generate")
    def test_cluster_arguments(self, mock_generate, tmp_path, monkeypatch):
        monkeypatch.setenv("KUSTO_ACCESS_TOKEN", "env-token")
        config = tmp_path / "ormgen.yaml"
        config.write_text(CONFIG)
        mock_generate.return_value = MagicMock(model_paths=[], context_path=None)

        main([str(config), "--cluster", "https://c.kusto.windows.net", "--timeout", "5"])

        generator_config, source = mock_generate.call_args[0]
        assert isinstance(source, KustoRestSchemaSource)
        assert source.timeout == 5.0
        assert generator_config.namespace == "My.App"


class TestMalformedSnapshot:
    def test_reports_error(self, tmp_path):
        config = tmp_path / "ormgen.yaml"
        config.write_text(CONFIG)
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(
            "databases:\n"
            "  Samples:\n"
            "    tables:\n"
            "      StormEvents: [State, StartTime]\n"
        )

        with pytest.raises(SystemExit, match="Error: .*must be a mapping"):
            main([str(config), "--snapshot", str(snapshot)])
