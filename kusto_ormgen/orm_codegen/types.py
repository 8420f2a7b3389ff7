"""Kusto to C# type mapping and KQL placeholder literals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Final


class ScalarKind(Enum):
    """Kusto scalar data types, plus a catch-all for anything unrecognized."""

    BOOL = "bool"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    GUID = "guid"
    INT = "int"
    LONG = "long"
    REAL = "real"
    STRING = "string"
    TIMESPAN = "timespan"
    DYNAMIC = "dynamic"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, kusto_type: str) -> ScalarKind:
        """Resolve a Kusto scalar type name (or alias) to its kind."""
        return SCALAR_ALIASES.get(kusto_type.strip().lower(), cls.UNKNOWN)


# https://learn.microsoft.com/en-us/kusto/query/scalar-data-types/
SCALAR_ALIASES: Final[dict[str, ScalarKind]] = {
    "bool": ScalarKind.BOOL,
    "boolean": ScalarKind.BOOL,
    "datetime": ScalarKind.DATETIME,
    "date": ScalarKind.DATETIME,
    "decimal": ScalarKind.DECIMAL,
    "guid": ScalarKind.GUID,
    "uuid": ScalarKind.GUID,
    "uniqueid": ScalarKind.GUID,
    "int": ScalarKind.INT,
    "long": ScalarKind.LONG,
    "real": ScalarKind.REAL,
    "double": ScalarKind.REAL,
    "string": ScalarKind.STRING,
    "timespan": ScalarKind.TIMESPAN,
    "time": ScalarKind.TIMESPAN,
    "dynamic": ScalarKind.DYNAMIC,
}

DEFAULT_CSHARP_TYPES: Final[dict[ScalarKind, str]] = {
    ScalarKind.BOOL: "bool",
    ScalarKind.DATETIME: "DateTime",
    ScalarKind.DECIMAL: "decimal",
    ScalarKind.GUID: "Guid",
    ScalarKind.INT: "int",
    ScalarKind.LONG: "long",
    ScalarKind.REAL: "double",
    ScalarKind.STRING: "string",
    ScalarKind.TIMESPAN: "TimeSpan",
    ScalarKind.DYNAMIC: "object",
    ScalarKind.UNKNOWN: "object",
}

# CLR type names reported by `.show schema` / `getschema` that C# spells in lower case
CLR_PRIMITIVE_ALIASES: Final[dict[str, str]] = {
    "String": "string",
    "Object": "object",
    "SByte": "sbyte",
}

EMPTY_GUID: Final[str] = "00000000-0000-0000-0000-000000000000"


def _datetime_literal(now: datetime) -> str:
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")
    return f"datetime({stamp}Z)"


@dataclass(frozen=True, slots=True)
class TypeMapper:
    """Maps remote type names to C# type expressions.

    The tables are plain fields so an alternate backend can swap them out
    without touching the orchestrator.
    """

    namespace_prefix: str = "System."
    primitive_aliases: dict[str, str] = field(
        default_factory=lambda: dict(CLR_PRIMITIVE_ALIASES)
    )
    scalar_types: dict[ScalarKind, str] = field(
        default_factory=lambda: dict(DEFAULT_CSHARP_TYPES)
    )
    string_type: str = "string"
    nullable_suffix: str = "?"

    def map_type(self, remote_type: str, nullable_enabled: bool) -> str:
        """Translate a column type reported by the cluster into a C# type.

        Examples:
            >>> TypeMapper().map_type("System.String", False)
            'string'
            >>> TypeMapper().map_type("System.Int64", False)
            'Int64?'
        """
        type_name = remote_type.removeprefix(self.namespace_prefix)
        type_name = self.primitive_aliases.get(type_name, type_name)
        if not nullable_enabled and type_name == self.string_type:
            return type_name
        return f"{type_name}{self.nullable_suffix}"

    def map_scalar_type(self, kusto_type: str, nullable_enabled: bool = False) -> str:
        """Translate a Kusto scalar type name into its canonical C# type.

        Unrecognized names resolve to the nullable object fallback.
        """
        kind = ScalarKind.from_name(kusto_type)
        type_name = self.scalar_types[kind]
        if kind is ScalarKind.STRING and not nullable_enabled:
            return type_name
        return f"{type_name}{self.nullable_suffix}"

    def default_literal(self, kusto_type: str, now: datetime | None = None) -> str:
        """Placeholder KQL literal for a parameter of the given scalar type.

        Only used to build schema probe calls; never written into models.
        """
        kind = ScalarKind.from_name(kusto_type)
        if kind is ScalarKind.BOOL:
            return "false"
        if kind is ScalarKind.DATETIME:
            return _datetime_literal(now or datetime.now(timezone.utc))
        if kind in (
            ScalarKind.DECIMAL,
            ScalarKind.INT,
            ScalarKind.LONG,
            ScalarKind.REAL,
        ):
            return "-1"
        if kind is ScalarKind.GUID:
            return f"guid({EMPTY_GUID})"
        if kind is ScalarKind.STRING:
            return "''"
        if kind is ScalarKind.TIMESPAN:
            return "timespan(00:00:01)"
        if kind is ScalarKind.DYNAMIC:
            return "dynamic({})"
        return "null"


DEFAULT_TYPE_MAPPER: Final[TypeMapper] = TypeMapper()


def map_type(remote_type: str, nullable_enabled: bool) -> str:
    """Translate a remote column type using the default mapper."""
    return DEFAULT_TYPE_MAPPER.map_type(remote_type, nullable_enabled)


def map_scalar_type(kusto_type: str, nullable_enabled: bool = False) -> str:
    """Translate a Kusto scalar name using the default mapper."""
    return DEFAULT_TYPE_MAPPER.map_scalar_type(kusto_type, nullable_enabled)


def default_literal(kusto_type: str, now: datetime | None = None) -> str:
    """Placeholder KQL literal using the default mapper."""
    return DEFAULT_TYPE_MAPPER.default_literal(kusto_type, now)
