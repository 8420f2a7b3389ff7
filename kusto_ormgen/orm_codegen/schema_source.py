"""Schema metadata retrieval.

``SchemaSource`` is the seam between the generator and whatever talks to the
cluster. Two sources ship with the package:

- ``KustoRestSchemaSource`` queries a cluster over the Kusto REST v1 API.
- ``SnapshotSchemaSource`` reads a YAML snapshot, for offline generation.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Sequence

import requests

from ..shared import (
    ConfigurationError,
    MalformedFunctionSignature,
    TransportError,
    load_yaml_mapping,
)

SHOW_SCHEMA_COMMAND: Final[str] = ".show schema"
SHOW_FUNCTIONS_COMMAND: Final[str] = ".show functions"


@dataclass(frozen=True, slots=True)
class TableColumnRow:
    """One `.show schema` row. An empty column marks a table with no columns."""

    table: str
    column: str
    column_type: str


@dataclass(frozen=True, slots=True)
class FunctionRow:
    """One `.show functions` row."""

    name: str
    parameters: str


@dataclass(frozen=True, slots=True)
class SchemaColumn:
    """A named, typed column of an entity."""

    name: str
    column_type: str


@dataclass(frozen=True, slots=True)
class FunctionParameter:
    name: str
    type: str


@dataclass(slots=True)
class TableEntity:
    name: str
    columns: list[SchemaColumn] = field(default_factory=list)


@dataclass(slots=True)
class FunctionEntity:
    name: str
    raw_parameters: str
    parameters: list[FunctionParameter] = field(default_factory=list)
    columns: list[SchemaColumn] = field(default_factory=list)


class SchemaSource(ABC):
    """Asynchronous provider of table and function metadata."""

    @abstractmethod
    async def list_table_columns(self, database: str) -> list[TableColumnRow]:
        """Return one row per column of every table in the database."""

    @abstractmethod
    async def list_functions(self, database: str) -> list[FunctionRow]:
        """Return every stored function with its raw parameter list."""

    @abstractmethod
    async def probe_function_schema(
        self,
        function_name: str,
        default_arguments: Sequence[str],
        database: str,
    ) -> list[SchemaColumn]:
        """Discover a function's result columns by calling it with placeholders."""


def group_table_rows(rows: Sequence[TableColumnRow]) -> list[TableEntity]:
    """Group schema rows into tables, keeping first-seen order.

    Rows with an empty column name still register their table.
    """
    tables: dict[str, TableEntity] = {}
    for row in rows:
        table = tables.setdefault(row.table, TableEntity(name=row.table))
        if row.column:
            table.columns.append(SchemaColumn(row.column, row.column_type))
    return list(tables.values())


def parse_parameters(
    function_name: str,
    raw_parameters: str,
    database: str | None = None,
) -> list[FunctionParameter]:
    """Parse a `.show functions` parameter list such as ``(a:int, b:string)``.

    Raises:
        MalformedFunctionSignature: If an entry is not a single ``name:type`` pair.
    """
    inner = raw_parameters.strip()
    if inner.startswith("("):
        inner = inner[1:]
    if inner.endswith(")"):
        inner = inner[:-1]

    parameters: list[FunctionParameter] = []
    for item in inner.split(","):
        if not item.strip():
            continue
        parts = item.split(":")
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            raise MalformedFunctionSignature(function_name, raw_parameters, database)
        name, type_name = (part.strip() for part in parts)
        # "x:int=5" declares a default value; only the type matters here
        type_name = type_name.split("=", 1)[0].strip()
        parameters.append(FunctionParameter(name, type_name))
    return parameters


def build_probe_query(function_name: str, default_arguments: Sequence[str]) -> str:
    """KQL that returns the result schema of a function call, reading at most one row."""
    arguments = ", ".join(default_arguments)
    return f"{function_name}({arguments}) | take 1 | getschema"


class KustoRestSchemaSource(SchemaSource):
    """Schema source backed by the Kusto REST v1 endpoints.

    Calls are blocking ``requests`` calls pushed to a worker thread so the
    generator can await them.
    """

    MGMT_PATH: Final[str] = "/v1/rest/mgmt"
    QUERY_PATH: Final[str] = "/v1/rest/query"

    def __init__(
        self,
        cluster_url: str,
        access_token: str,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        if not cluster_url:
            raise ConfigurationError("is required", "cluster")
        if not access_token:
            raise ConfigurationError("is required", "token")
        self.cluster_url = cluster_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json; charset=utf-8",
            "Accept": "application/json",
        })

    async def list_table_columns(self, database: str) -> list[TableColumnRow]:
        rows = await self._execute(self.MGMT_PATH, SHOW_SCHEMA_COMMAND, database)
        return [
            TableColumnRow(
                table=str(row["TableName"]),
                column=str(row.get("ColumnName") or ""),
                column_type=str(row.get("ColumnType") or ""),
            )
            for row in self._require(
                rows, ("DatabaseName", "TableName"), SHOW_SCHEMA_COMMAND, database
            )
            if row["DatabaseName"] == database
        ]

    async def list_functions(self, database: str) -> list[FunctionRow]:
        rows = await self._execute(self.MGMT_PATH, SHOW_FUNCTIONS_COMMAND, database)
        return [
            FunctionRow(name=str(row["Name"]), parameters=str(row["Parameters"] or ""))
            for row in self._require(
                rows, ("Name", "Parameters"), SHOW_FUNCTIONS_COMMAND, database
            )
        ]

    async def probe_function_schema(
        self,
        function_name: str,
        default_arguments: Sequence[str],
        database: str,
    ) -> list[SchemaColumn]:
        query = build_probe_query(function_name, default_arguments)
        rows = await self._execute(self.QUERY_PATH, query, database)
        return [
            SchemaColumn(name=str(row["ColumnName"]), column_type=str(row["DataType"]))
            for row in self._require(rows, ("ColumnName", "DataType"), query, database)
        ]

    async def _execute(self, path: str, csl: str, database: str) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._post, path, csl, database)

    def _post(self, path: str, csl: str, database: str) -> list[dict[str, Any]]:
        """Run one command and return the primary result table as dict rows."""
        url = f"{self.cluster_url}{path}"
        try:
            response = self._session.post(
                url,
                json={"db": database, "csl": csl},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            raise TransportError("Request timed out", database, csl) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Failed to connect to {self.cluster_url}", database, csl) from e
        except requests.exceptions.HTTPError as e:
            raise TransportError(
                f"HTTP {e.response.status_code if e.response is not None else '?'}",
                database,
                csl,
            ) from e
        except ValueError as e:
            raise TransportError("Response is not valid JSON", database, csl) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}", database, csl) from e

        return self._primary_rows(payload, csl, database)

    @staticmethod
    def _primary_rows(payload: Any, csl: str, database: str) -> list[dict[str, Any]]:
        tables = payload.get("Tables") if isinstance(payload, dict) else None
        if not isinstance(tables, list) or not tables:
            raise TransportError("Response has no result tables", database, csl)

        primary = tables[0]
        try:
            names = [column["ColumnName"] for column in primary["Columns"]]
            return [dict(zip(names, row)) for row in primary["Rows"]]
        except (KeyError, TypeError) as e:
            raise TransportError("Result table has an unexpected shape", database, csl) from e

    @staticmethod
    def _require(
        rows: list[dict[str, Any]],
        columns: Sequence[str],
        csl: str,
        database: str,
    ) -> list[dict[str, Any]]:
        for row in rows:
            missing = [name for name in columns if name not in row]
            if missing:
                raise TransportError(
                    f"Result is missing column(s) {', '.join(missing)}", database, csl
                )
        return rows


class SnapshotSchemaSource(SchemaSource):
    """Schema source reading a YAML snapshot instead of a live cluster.

    Snapshot layout::

        databases:
          Samples:
            tables:
              StormEvents: {StartTime: System.DateTime, State: System.String}
            functions:
              - name: TopStates
                parameters: "(count:int)"
                columns: {State: System.String, Total: System.Int64}
    """

    def __init__(self, snapshot: dict[str, Any]) -> None:
        databases = snapshot.get("databases")
        if not isinstance(databases, dict):
            raise ConfigurationError("snapshot must provide a 'databases' mapping", "snapshot")
        self._databases = databases

    @classmethod
    def from_file(cls, path: Path) -> SnapshotSchemaSource:
        return cls(load_yaml_mapping(path))

    def _database(self, database: str) -> dict[str, Any]:
        data = self._databases.get(database)
        if not isinstance(data, dict):
            raise TransportError("Database not found in snapshot", database)
        return data

    def _tables(self, database: str) -> dict[str, Any]:
        tables = self._database(database).get("tables") or {}
        if not isinstance(tables, dict):
            raise TransportError("Snapshot 'tables' must be a mapping", database)
        for table, columns in tables.items():
            if columns and not isinstance(columns, dict):
                raise TransportError(
                    f"Snapshot columns of table '{table}' must be a mapping", database
                )
        return tables

    def _functions(self, database: str) -> list[dict[str, Any]]:
        functions = self._database(database).get("functions") or []
        if not isinstance(functions, list):
            raise TransportError("Snapshot 'functions' must be a list", database)
        for index, item in enumerate(functions):
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise TransportError(
                    f"Snapshot function #{index} must be a mapping with a 'name'", database
                )
            columns = item.get("columns")
            if columns and not isinstance(columns, dict):
                raise TransportError(
                    f"Snapshot columns of function '{item['name']}' must be a mapping",
                    database,
                )
        return functions

    async def list_table_columns(self, database: str) -> list[TableColumnRow]:
        rows: list[TableColumnRow] = []
        for table, columns in self._tables(database).items():
            if not columns:
                rows.append(TableColumnRow(str(table), "", ""))
                continue
            for column, column_type in columns.items():
                rows.append(TableColumnRow(str(table), str(column), str(column_type)))
        return rows

    async def list_functions(self, database: str) -> list[FunctionRow]:
        return [
            FunctionRow(item["name"], str(item.get("parameters") or "()"))
            for item in self._functions(database)
        ]

    async def probe_function_schema(
        self,
        function_name: str,
        default_arguments: Sequence[str],
        database: str,
    ) -> list[SchemaColumn]:
        for item in self._functions(database):
            if item.get("name") == function_name:
                return [
                    SchemaColumn(str(name), str(column_type))
                    for name, column_type in (item.get("columns") or {}).items()
                ]
        raise TransportError(
            f"Function '{function_name}' not found in snapshot",
            database,
            build_probe_query(function_name, default_arguments),
        )
