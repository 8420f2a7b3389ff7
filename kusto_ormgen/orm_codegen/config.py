"""Generator configuration.

The configuration is immutable for a run. ``GeneratorConfig.resolve`` fills
in derivable defaults once and returns a new instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final

from ..shared import ConfigurationError, load_yaml_mapping
from .filters import FilterRule

DEFAULT_CONTEXT_NAME: Final[str] = "MyORMKustoDbContext"
DEFAULT_BASE_CONTEXT: Final[str] = "ORMKustoDbContext"
DEFAULT_EXECUTOR_TYPE: Final[str] = "IKustoDbContextExecutor"
DEFAULT_CONTEXT_USINGS: Final[tuple[str, ...]] = (
    "CSharp.OpenSource.LinqToKql.ORMGen",
    "CSharp.OpenSource.LinqToKql.Provider",
    "CSharp.OpenSource.LinqToKql.Extensions",
)
DEFAULT_MODEL_USINGS: Final[tuple[str, ...]] = ("System",)


def _rules(raw: Any, field_name: str) -> tuple[FilterRule, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("must be a list of filter rules", field_name)
    return tuple(FilterRule.from_mapping(item) for item in raw)


def _path(raw: Any, field_name: str, base_dir: Path | None) -> Path | None:
    if raw is None:
        return None
    if not isinstance(raw, str) or not raw:
        raise ConfigurationError("must be a non-empty path string", field_name)
    path = Path(raw)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path


def _optional_str(raw: Any, field_name: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigurationError("must be a string", field_name)
    return raw or None


@dataclass(frozen=True, slots=True)
class FilterSet:
    """Rules split by the entity kind they apply to."""

    global_rules: tuple[FilterRule, ...] = ()
    table_rules: tuple[FilterRule, ...] = ()
    function_rules: tuple[FilterRule, ...] = ()

    @classmethod
    def from_mapping(cls, raw: Any, scope: str = "filters") -> FilterSet:
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ConfigurationError("must be a mapping", scope)
        return cls(
            global_rules=_rules(raw.get("global"), f"{scope}.global"),
            table_rules=_rules(raw.get("tables"), f"{scope}.tables"),
            function_rules=_rules(raw.get("functions"), f"{scope}.functions"),
        )


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """One database to generate models for."""

    name: str
    model_subfolder: str | None = None
    filters: FilterSet = field(default_factory=FilterSet)

    @classmethod
    def from_mapping(cls, raw: Any, index: int = 0) -> DatabaseConfig:
        scope = f"databases[{index}]"
        if isinstance(raw, str):
            raw = {"name": raw}
        if not isinstance(raw, dict):
            raise ConfigurationError("must be a database name or mapping", scope)

        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigurationError("database is missing 'name'", scope)

        return cls(
            name=name,
            model_subfolder=_optional_str(
                raw.get("model_subfolder"), f"{scope}.model_subfolder"
            ),
            filters=FilterSet.from_mapping(raw.get("filters"), f"{scope}.filters"),
        )


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Everything the generator needs for one run."""

    models_folder: Path | None = None
    context_file: Path | None = None
    context_folder: Path | None = None
    namespace: str | None = None
    models_namespace: str | None = None
    context_namespace: str | None = None
    context_name: str | None = None
    base_context: str = DEFAULT_BASE_CONTEXT
    executor_type: str = DEFAULT_EXECUTOR_TYPE
    context_usings: tuple[str, ...] = DEFAULT_CONTEXT_USINGS
    model_usings: tuple[str, ...] = DEFAULT_MODEL_USINGS
    filters: FilterSet = field(default_factory=FilterSet)
    enable_nullable: bool = False
    file_scoped_namespaces: bool = True
    clean_before_generate: bool = False
    create_context: bool = True
    databases: tuple[DatabaseConfig, ...] = ()

    @classmethod
    def from_mapping(
        cls,
        raw: dict[str, Any],
        base_dir: Path | None = None,
    ) -> GeneratorConfig:
        """Build a config from a parsed YAML mapping."""
        databases = raw.get("databases", [])
        if not isinstance(databases, list):
            raise ConfigurationError("must be a list", "databases")

        def _flag(key: str, default: bool) -> bool:
            value = raw.get(key, default)
            if not isinstance(value, bool):
                raise ConfigurationError("must be true or false", key)
            return value

        def _names(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            value = raw.get(key)
            if value is None:
                return default
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError("must be a list of strings", key)
            return tuple(value)

        return cls(
            models_folder=_path(raw.get("models_folder"), "models_folder", base_dir),
            context_file=_path(raw.get("context_file"), "context_file", base_dir),
            context_folder=_path(raw.get("context_folder"), "context_folder", base_dir),
            namespace=_optional_str(raw.get("namespace"), "namespace"),
            models_namespace=_optional_str(raw.get("models_namespace"), "models_namespace"),
            context_namespace=_optional_str(raw.get("context_namespace"), "context_namespace"),
            context_name=_optional_str(raw.get("context_name"), "context_name"),
            base_context=_optional_str(raw.get("base_context"), "base_context")
            or DEFAULT_BASE_CONTEXT,
            executor_type=_optional_str(raw.get("executor_type"), "executor_type")
            or DEFAULT_EXECUTOR_TYPE,
            context_usings=_names("context_usings", DEFAULT_CONTEXT_USINGS),
            model_usings=_names("model_usings", DEFAULT_MODEL_USINGS),
            filters=FilterSet.from_mapping(raw.get("filters")),
            enable_nullable=_flag("enable_nullable", False),
            file_scoped_namespaces=_flag("file_scoped_namespaces", True),
            clean_before_generate=_flag("clean_before_generate", False),
            create_context=_flag("create_context", True),
            databases=tuple(
                DatabaseConfig.from_mapping(item, index)
                for index, item in enumerate(databases)
            ),
        )

    def resolve(self) -> GeneratorConfig:
        """Return a copy with derivable defaults filled in.

        Raises:
            ConfigurationError: If a required value has no viable default.
        """
        if self.models_folder is None:
            raise ConfigurationError("is required", "models_folder")

        models_namespace = self.models_namespace or self.namespace
        if not models_namespace:
            raise ConfigurationError(
                "is required when 'namespace' is not set", "models_namespace"
            )

        context_name = self.context_name or DEFAULT_CONTEXT_NAME
        context_file = self.context_file
        if context_file is None and self.context_folder is not None:
            context_file = self.context_folder / f"{context_name}.cs"

        context_namespace = self.context_namespace or self.namespace
        if self.create_context:
            if not context_namespace:
                raise ConfigurationError(
                    "is required when 'namespace' is not set", "context_namespace"
                )
            if context_file is None:
                raise ConfigurationError(
                    "is required when 'context_folder' is not set", "context_file"
                )

        return replace(
            self,
            models_namespace=models_namespace,
            context_namespace=context_namespace,
            context_name=context_name,
            context_file=context_file,
            context_folder=context_file.parent if context_file else self.context_folder,
        )

    def table_rules(self, database: DatabaseConfig) -> list[FilterRule]:
        """Flattened rule list applied to the tables of one database."""
        return [
            *self.filters.table_rules,
            *self.filters.global_rules,
            *database.filters.global_rules,
            *database.filters.table_rules,
        ]

    def function_rules(self, database: DatabaseConfig) -> list[FilterRule]:
        """Flattened rule list applied to the functions of one database."""
        return [
            *self.filters.function_rules,
            *self.filters.global_rules,
            *database.filters.global_rules,
            *database.filters.function_rules,
        ]

    def models_folder_for(self, database: DatabaseConfig) -> Path:
        if self.models_folder is None:
            raise ConfigurationError("is required", "models_folder")
        if database.model_subfolder:
            return self.models_folder / database.model_subfolder
        return self.models_folder


def load_config(config_path: Path) -> GeneratorConfig:
    """Load a GeneratorConfig from a YAML file.

    Relative paths in the file are resolved against the file's directory.

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed.
    """
    resolved = config_path.resolve()
    if not resolved.exists():
        raise ConfigurationError(f"Config file '{config_path}' does not exist")

    return GeneratorConfig.from_mapping(
        load_yaml_mapping(resolved), base_dir=resolved.parent
    )
