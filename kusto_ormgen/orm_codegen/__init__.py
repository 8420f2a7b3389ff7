"""ORM Code Generator - Generates C# entity models and a DbContext from Kusto schemas."""

from .config import DatabaseConfig, FilterSet, GeneratorConfig, load_config
from .emitters import ContextEmitter, GeneratedArtifact, ModelEmitter, TemplateContext
from .filters import FilterRule, apply_filters, keep
from .orchestrator import (
    ConsoleProgressReporter,
    GenerationOrchestrator,
    GenerationSummary,
    generate,
)
from .schema_source import (
    KustoRestSchemaSource,
    SchemaSource,
    SnapshotSchemaSource,
    parse_parameters,
)
from .types import DEFAULT_TYPE_MAPPER, TypeMapper, default_literal, map_type

__all__ = [
    "DatabaseConfig",
    "FilterSet",
    "GeneratorConfig",
    "load_config",
    "ContextEmitter",
    "GeneratedArtifact",
    "ModelEmitter",
    "TemplateContext",
    "FilterRule",
    "apply_filters",
    "keep",
    "ConsoleProgressReporter",
    "GenerationOrchestrator",
    "GenerationSummary",
    "generate",
    "KustoRestSchemaSource",
    "SchemaSource",
    "SnapshotSchemaSource",
    "parse_parameters",
    "DEFAULT_TYPE_MAPPER",
    "TypeMapper",
    "default_literal",
    "map_type",
]
