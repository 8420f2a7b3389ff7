"""
Generation driver.

Walks every configured database in order:

1. Resolve configuration defaults
2. Prepare (and optionally clean) the output folders
3. For each database: tables, then functions (each probed for its schema)
4. Write the DbContext once every model has been written
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol

from ..clean import clean_generated_output
from ..shared import FilesystemError
from .config import DatabaseConfig, GeneratorConfig
from .emitters import ContextEmitter, GeneratedArtifact, ModelEmitter, TemplateContext
from .filters import apply_filters
from .schema_source import (
    FunctionEntity,
    SchemaSource,
    TableEntity,
    group_table_rows,
    parse_parameters,
)
from .types import DEFAULT_TYPE_MAPPER, TypeMapper


class ProgressReporter(Protocol):
    """Receives progress events as generation runs."""

    def database_started(self, database: str) -> None: ...

    def section_started(self, title: str) -> None: ...

    def entity_started(self, name: str) -> None: ...

    def entity_finished(self, name: str) -> None: ...

    def context_started(self, path: Path) -> None: ...


class ConsoleProgressReporter:
    """Prints progress to stdout."""

    def database_started(self, database: str) -> None:
        print(" ")
        print("-------------------------")
        print(f" Start Generate {database}")
        print("-------------------------")

    def section_started(self, title: str) -> None:
        print(" ")
        print(f"---------- {title} ----------")

    def entity_started(self, name: str) -> None:
        print(f"{name} Start")

    def entity_finished(self, name: str) -> None:
        print(f"{name} End")

    def context_started(self, path: Path) -> None:
        print(" ")
        print("---------- DbContext ----------")
        print(f"{path.name} Start")


class NullProgressReporter:
    def database_started(self, database: str) -> None:
        pass

    def section_started(self, title: str) -> None:
        pass

    def entity_started(self, name: str) -> None:
        pass

    def entity_finished(self, name: str) -> None:
        pass

    def context_started(self, path: Path) -> None:
        pass


@dataclass
class GenerationSummary:
    """What a run produced."""

    artifacts: list[GeneratedArtifact] = field(default_factory=list)
    model_paths: list[Path] = field(default_factory=list)
    context_path: Path | None = None
    bytes_cleaned: int = 0


def prepare_output(config: GeneratorConfig) -> int:
    """Create the output folders and, if configured, wipe previous output.

    Returns the number of bytes removed. Must complete before any file is
    written.
    """
    folders = [config.models_folder]
    if config.context_folder is not None:
        folders.append(config.context_folder)

    for folder in folders:
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Failed to create directory ({e.strerror or e})", folder
            ) from e

    if not config.clean_before_generate:
        return 0
    return clean_generated_output(config.models_folder, config.context_file)


class GenerationOrchestrator:
    """Drives schema retrieval, filtering and emission for every database.

    Schema calls are awaited one at a time; nothing runs concurrently.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        source: SchemaSource,
        *,
        type_mapper: TypeMapper = DEFAULT_TYPE_MAPPER,
        model_emitter: ModelEmitter | None = None,
        context_emitter: ContextEmitter | None = None,
        progress: ProgressReporter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.type_mapper = type_mapper
        templates = None
        if model_emitter is None or context_emitter is None:
            templates = TemplateContext()
        self.model_emitter = model_emitter or ModelEmitter(
            templates,
            type_mapper=type_mapper,
            file_scoped_namespaces=config.file_scoped_namespaces,
            usings=config.model_usings,
        )
        self.context_emitter = context_emitter or ContextEmitter(
            templates,
            file_scoped_namespaces=config.file_scoped_namespaces,
            base_context=config.base_context,
            executor_type=config.executor_type,
        )
        self.progress = progress or NullProgressReporter()
        self.clock = clock

    async def generate(self) -> GenerationSummary:
        """Run one full generation.

        Raises:
            OrmGenError: Any configuration, transport, filesystem or signature
                error aborts the run. Files written before the failure stay.
        """
        config = self.config.resolve()
        summary = GenerationSummary(bytes_cleaned=prepare_output(config))

        for database in config.databases:
            self.progress.database_started(database.name)
            await self._generate_tables(config, database, summary)
            await self._generate_functions(config, database, summary)

        if config.create_context:
            self.progress.context_started(config.context_file)
            summary.context_path = self.context_emitter.write_context(
                config.context_file,
                summary.artifacts,
                config.context_name,
                config.context_namespace,
                usings=[
                    config.namespace or "",
                    config.models_namespace,
                    *config.context_usings,
                ],
                nullable_enabled=config.enable_nullable,
            )

        return summary

    async def fetch_tables(
        self,
        config: GeneratorConfig,
        database: DatabaseConfig,
    ) -> list[TableEntity]:
        rows = await self.source.list_table_columns(database.name)
        rows = apply_filters(rows, lambda row: row.table, config.table_rules(database))
        return group_table_rows(rows)

    async def fetch_functions(
        self,
        config: GeneratorConfig,
        database: DatabaseConfig,
    ) -> list[FunctionEntity]:
        rows = await self.source.list_functions(database.name)
        rows = apply_filters(rows, lambda row: row.name, config.function_rules(database))
        return [
            FunctionEntity(
                name=row.name,
                raw_parameters=row.parameters,
                parameters=parse_parameters(row.name, row.parameters, database.name),
            )
            for row in rows
        ]

    async def probe_function(self, function: FunctionEntity, database: DatabaseConfig) -> None:
        now = self.clock() if self.clock else None
        defaults = [self.type_mapper.default_literal(p.type, now) for p in function.parameters]
        function.columns = await self.source.probe_function_schema(
            function.name, defaults, database.name
        )

    async def _generate_tables(
        self,
        config: GeneratorConfig,
        database: DatabaseConfig,
        summary: GenerationSummary,
    ) -> None:
        self.progress.section_started("Tables")
        tables = await self.fetch_tables(config, database)
        output_dir = config.models_folder_for(database)
        for table in tables:
            self.progress.entity_started(table.name)
            summary.model_paths.append(
                self.model_emitter.write_model(
                    table.name,
                    table.columns,
                    config.models_namespace,
                    config.enable_nullable,
                    output_dir,
                )
            )
            summary.artifacts.append(self.model_emitter.table_artifact(table.name))
            self.progress.entity_finished(table.name)

    async def _generate_functions(
        self,
        config: GeneratorConfig,
        database: DatabaseConfig,
        summary: GenerationSummary,
    ) -> None:
        self.progress.section_started("Functions")
        functions = await self.fetch_functions(config, database)
        output_dir = config.models_folder_for(database)
        for function in functions:
            self.progress.entity_started(function.name)
            await self.probe_function(function, database)
            summary.model_paths.append(
                self.model_emitter.write_model(
                    function.name,
                    function.columns,
                    config.models_namespace,
                    config.enable_nullable,
                    output_dir,
                )
            )
            summary.artifacts.append(
                self.model_emitter.function_artifact(
                    function.name, function.parameters, config.enable_nullable
                )
            )
            self.progress.entity_finished(function.name)


async def generate(
    config: GeneratorConfig,
    source: SchemaSource,
    progress: ProgressReporter | None = None,
) -> GenerationSummary:
    """Convenience wrapper running a default orchestrator."""
    return await GenerationOrchestrator(config, source, progress=progress).generate()
