from pathlib import Path

import pytest

from kusto_ormgen.orm_codegen.config import (
    DEFAULT_CONTEXT_NAME,
    DEFAULT_CONTEXT_USINGS,
    DatabaseConfig,
    FilterSet,
    GeneratorConfig,
    load_config,
)
from kusto_ormgen.orm_codegen.filters import FilterRule, GlobMatcher
from kusto_ormgen.shared.errors import ConfigurationError


def rule(pattern, exclude=False):
    return FilterRule(GlobMatcher(pattern), exclude=exclude)


class TestFilterSet:
    def test_none(self):
        assert FilterSet.from_mapping(None) == FilterSet()

    def test_from_mapping(self):
        filters = FilterSet.from_mapping(
            {"global": ["A*"], "tables": [{"pattern": "B*", "exclude": True}]}
        )
        assert filters.global_rules == (rule("A*"),)
        assert filters.table_rules == (rule("B*", exclude=True),)
        assert filters.function_rules == ()

    def test_not_a_list(self):
        with pytest.raises(ConfigurationError, match="filters.tables"):
            FilterSet.from_mapping({"tables": "B*"})


class TestDatabaseConfig:
    def test_bare_name(self):
        assert DatabaseConfig.from_mapping("Samples") == DatabaseConfig(name="Samples")

    def test_mapping(self):
        database = DatabaseConfig.from_mapping(
            {"name": "Logs", "model_subfolder": "LogModels", "filters": {"global": ["x"]}}
        )
        assert database.name == "Logs"
        assert database.model_subfolder == "LogModels"
        assert database.filters.global_rules == (rule("x"),)

    def test_missing_name(self):
        with pytest.raises(ConfigurationError, match=r"databases\[3\]"):
            DatabaseConfig.from_mapping({"model_subfolder": "x"}, 3)


class TestGeneratorConfigFromMapping:
    def test_paths_resolved_against_base_dir(self, tmp_path):
        config = GeneratorConfig.from_mapping(
            {"models_folder": "Models", "context_folder": "/abs/ctx"}, base_dir=tmp_path
        )
        assert config.models_folder == tmp_path / "Models"
        assert config.context_folder == Path("/abs/ctx")

    def test_defaults(self):
        config = GeneratorConfig.from_mapping({})
        assert config.enable_nullable is False
        assert config.file_scoped_namespaces is True
        assert config.clean_before_generate is False
        assert config.create_context is True
        assert config.context_usings == DEFAULT_CONTEXT_USINGS
        assert config.databases == ()

    def test_flag_must_be_bool(self):
        with pytest.raises(ConfigurationError, match="enable_nullable"):
            GeneratorConfig.from_mapping({"enable_nullable": "yes"})

    def test_usings_must_be_strings(self):
        with pytest.raises(ConfigurationError, match="context_usings"):
            GeneratorConfig.from_mapping({"context_usings": [1, 2]})

    def test_databases_must_be_list(self):
        with pytest.raises(ConfigurationError, match="databases"):
            GeneratorConfig.from_mapping({"databases": "Samples"})


class TestResolve:
    def test_defaults_filled_from_namespace(self, tmp_path):
        config = GeneratorConfig(
            models_folder=tmp_path / "Models",
            context_folder=tmp_path / "Context",
            namespace="My.App",
        ).resolve()

        assert config.models_namespace == "My.App"
        assert config.context_namespace == "My.App"
        assert config.context_name == DEFAULT_CONTEXT_NAME
        assert config.context_file == tmp_path / "Context" / f"{DEFAULT_CONTEXT_NAME}.cs"
        assert config.context_folder == tmp_path / "Context"

    def test_explicit_values_win(self, tmp_path):
        config = GeneratorConfig(
            models_folder=tmp_path,
            context_file=tmp_path / "ctx" / "Db.cs",
            namespace="My.App",
            models_namespace="My.App.Models",
            context_namespace="My.App.Data",
            context_name="Db",
        ).resolve()

        assert config.models_namespace == "My.App.Models"
        assert config.context_namespace == "My.App.Data"
        assert config.context_folder == tmp_path / "ctx"

    def test_does_not_mutate_original(self, tmp_path):
        original = GeneratorConfig(
            models_folder=tmp_path, context_folder=tmp_path, namespace="N"
        )
        original.resolve()
        assert original.context_name is None

    def test_models_folder_required(self):
        with pytest.raises(ConfigurationError, match="models_folder"):
            GeneratorConfig(namespace="N").resolve()

    def test_models_namespace_required(self, tmp_path):
        with pytest.raises(ConfigurationError, match="models_namespace"):
            GeneratorConfig(models_folder=tmp_path).resolve()

    def test_context_namespace_required(self, tmp_path):
        with pytest.raises(ConfigurationError, match="context_namespace"):
            GeneratorConfig(
                models_folder=tmp_path, context_folder=tmp_path, models_namespace="M"
            ).resolve()

    def test_context_file_required(self, tmp_path):
        with pytest.raises(ConfigurationError, match="context_file"):
            GeneratorConfig(models_folder=tmp_path, namespace="N").resolve()

    def test_context_settings_optional_without_context(self, tmp_path):
        config = GeneratorConfig(
            models_folder=tmp_path, models_namespace="M", create_context=False
        ).resolve()
        assert config.context_file is None
        assert config.context_namespace is None


class TestRules:
    def test_concatenation_order(self):
        config = GeneratorConfig(
            filters=FilterSet(
                global_rules=(rule("g"),),
                table_rules=(rule("t"),),
                function_rules=(rule("f"),),
            )
        )
        database = DatabaseConfig(
            name="Db",
            filters=FilterSet(
                global_rules=(rule("dg"),),
                table_rules=(rule("dt"),),
                function_rules=(rule("df"),),
            ),
        )

        assert config.table_rules(database) == [rule("t"), rule("g"), rule("dg"), rule("dt")]
        assert config.function_rules(database) == [
            rule("f"),
            rule("g"),
            rule("dg"),
            rule("df"),
        ]

    def test_models_folder_for(self, tmp_path):
        config = GeneratorConfig(models_folder=tmp_path)
        assert config.models_folder_for(DatabaseConfig("Db")) == tmp_path
        assert (
            config.models_folder_for(DatabaseConfig("Db", model_subfolder="Sub"))
            == tmp_path / "Sub"
        )


class TestLoadConfig:
    def test_load(self, tmp_path):
        path = tmp_path / "ormgen.yaml"
        path.write_text(
            "namespace: My.App\n"
            "models_folder: Models\n"
            "context_folder: Data\n"
            "databases:\n"
            "  - Samples\n"
            "  - name: Logs\n"
            "    model_subfolder: Logs\n"
        )

        config = load_config(path)
        assert config.namespace == "My.App"
        assert config.models_folder == tmp_path.resolve() / "Models"
        assert [db.name for db in config.databases] == ["Samples", "Logs"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config(tmp_path / "missing.yaml")
