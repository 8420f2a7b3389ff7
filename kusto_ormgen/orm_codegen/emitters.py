"""C# source emitters for entity models and the aggregate DbContext."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Iterable, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..shared import FilesystemError
from .schema_source import FunctionParameter, SchemaColumn
from .types import DEFAULT_TYPE_MAPPER, TypeMapper

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"
GENERATOR_NAME: Final[str] = "kusto_ormgen"
FILE_EXTENSION: Final[str] = ".cs"


@dataclass(frozen=True, slots=True)
class GeneratedArtifact:
    """What the context needs to expose one emitted entity."""

    type_name: str
    query: str
    declaration: str


@dataclass(frozen=True, slots=True)
class ModelField:
    name: str
    type: str


@dataclass
class TemplateContext:
    """Jinja environment with the templates compiled once."""

    template_dir: Path = TEMPLATE_DIR
    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        self._model_template = self.template_env.get_template("model.cs.j2")
        self._context_template = self.template_env.get_template("context.cs.j2")
        self._file_template = self.template_env.get_template("source_file.cs.j2")

    @property
    def model_template(self):
        return self._model_template

    @property
    def context_template(self):
        return self._context_template

    @property
    def file_template(self):
        return self._file_template


def normalize_usings(usings: Iterable[str], namespace: str) -> list[str]:
    """Deduplicate using directives, dropping blanks and the file's own namespace."""
    seen: dict[str, None] = {}
    for using in usings:
        if not using or using == namespace:
            continue
        seen.setdefault(using if using.startswith("using") else f"using {using};", None)
    return list(seen)


def _write(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed to write file ({e.strerror or e})", path) from e
    return path


class _SourceEmitter:
    def __init__(
        self,
        templates: TemplateContext | None = None,
        *,
        file_scoped_namespaces: bool = True,
    ) -> None:
        self.templates = templates or TemplateContext()
        self.file_scoped_namespaces = file_scoped_namespaces

    @property
    def file_extension(self) -> str:
        return FILE_EXTENSION

    def wrap(
        self,
        body: str,
        usings: Iterable[str],
        namespace: str,
        nullable_enabled: bool,
    ) -> str:
        """Wrap a type declaration with the header, usings and namespace."""
        return self.templates.file_template.render(
            generator_name=GENERATOR_NAME,
            nullable=nullable_enabled,
            usings=normalize_usings(usings, namespace),
            namespace=namespace,
            file_scoped=self.file_scoped_namespaces,
            body=body.rstrip("\n"),
        )


class ModelEmitter(_SourceEmitter):
    """Renders one table or function as a partial class with one property per column."""

    def __init__(
        self,
        templates: TemplateContext | None = None,
        *,
        type_mapper: TypeMapper = DEFAULT_TYPE_MAPPER,
        file_scoped_namespaces: bool = True,
        usings: Sequence[str] = ("System",),
    ) -> None:
        super().__init__(templates, file_scoped_namespaces=file_scoped_namespaces)
        self.type_mapper = type_mapper
        self.usings = tuple(usings)

    def emit_model(
        self,
        entity_name: str,
        columns: Sequence[SchemaColumn],
        namespace: str,
        nullable_enabled: bool,
    ) -> str:
        # Columns are emitted as-is; duplicate names become duplicate properties.
        fields = [
            ModelField(
                name=column.name,
                type=self.type_mapper.map_type(column.column_type, nullable_enabled),
            )
            for column in columns
        ]
        body = self.templates.model_template.render(type_name=entity_name, fields=fields)
        return self.wrap(body, self.usings, namespace, nullable_enabled)

    def write_model(
        self,
        entity_name: str,
        columns: Sequence[SchemaColumn],
        namespace: str,
        nullable_enabled: bool,
        output_dir: Path,
    ) -> Path:
        """Render a model and write it to ``output_dir/<entity_name>.cs``."""
        content = self.emit_model(entity_name, columns, namespace, nullable_enabled)
        return _write(output_dir / f"{entity_name}{self.file_extension}", content)

    def table_artifact(self, table_name: str) -> GeneratedArtifact:
        return GeneratedArtifact(type_name=table_name, query=table_name, declaration=table_name)

    def function_artifact(
        self,
        function_name: str,
        parameters: Sequence[FunctionParameter],
        nullable_enabled: bool,
    ) -> GeneratedArtifact:
        """Accessor for a function: typed C# parameters, each spliced into the KQL call."""
        declared = ", ".join(
            f"{self.type_mapper.map_scalar_type(p.type, nullable_enabled)} {p.name}"
            for p in parameters
        )
        spliced = ", ".join(f"{{{p.name}.GetKQLValue()}}" for p in parameters)
        return GeneratedArtifact(
            type_name=function_name,
            query=f"{function_name}({spliced})",
            declaration=f"{function_name}({declared})",
        )


class ContextEmitter(_SourceEmitter):
    """Renders the DbContext exposing one queryable accessor per artifact."""

    def __init__(
        self,
        templates: TemplateContext | None = None,
        *,
        file_scoped_namespaces: bool = True,
        base_context: str = "ORMKustoDbContext",
        executor_type: str = "IKustoDbContextExecutor",
    ) -> None:
        super().__init__(templates, file_scoped_namespaces=file_scoped_namespaces)
        self.base_context = base_context
        self.executor_type = executor_type

    def emit_context(
        self,
        artifacts: Sequence[GeneratedArtifact],
        context_name: str,
        namespace: str,
        *,
        usings: Sequence[str] = (),
        nullable_enabled: bool = False,
    ) -> str:
        body = self.templates.context_template.render(
            context_name=context_name,
            base_context=self.base_context,
            executor_type=self.executor_type,
            artifacts=artifacts,
        )
        return self.wrap(body, usings, namespace, nullable_enabled)

    def write_context(
        self,
        path: Path,
        artifacts: Sequence[GeneratedArtifact],
        context_name: str,
        namespace: str,
        *,
        usings: Sequence[str] = (),
        nullable_enabled: bool = False,
    ) -> Path:
        """Render the context and overwrite ``path``."""
        content = self.emit_context(
            artifacts,
            context_name,
            namespace,
            usings=usings,
            nullable_enabled=nullable_enabled,
        )
        return _write(path, content)
