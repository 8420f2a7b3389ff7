"""Include/exclude filtering of discovered tables and functions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Callable, Final, Iterable, Protocol, Sequence, TypeVar

from ..shared import ConfigurationError

T = TypeVar("T")


class Matcher(Protocol):
    """Anything that can decide whether a name matches."""

    def matches(self, name: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class GlobMatcher:
    pattern: str

    def matches(self, name: str) -> bool:
        return fnmatchcase(name, self.pattern)


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    pattern: str

    def __post_init__(self) -> None:
        try:
            re.compile(self.pattern)
        except re.error as e:
            raise ConfigurationError(f"invalid regex: {e}", "pattern") from e

    def matches(self, name: str) -> bool:
        return re.fullmatch(self.pattern, name) is not None


@dataclass(frozen=True, slots=True)
class ExactMatcher:
    pattern: str

    def matches(self, name: str) -> bool:
        return name == self.pattern


@dataclass(frozen=True, slots=True)
class PrefixMatcher:
    pattern: str

    def matches(self, name: str) -> bool:
        return name.startswith(self.pattern)


@dataclass(frozen=True, slots=True)
class SuffixMatcher:
    pattern: str

    def matches(self, name: str) -> bool:
        return name.endswith(self.pattern)


@dataclass(frozen=True, slots=True)
class ContainsMatcher:
    pattern: str

    def matches(self, name: str) -> bool:
        return self.pattern in name


MATCHER_KINDS: Final[dict[str, Callable[[str], Matcher]]] = {
    "glob": GlobMatcher,
    "regex": RegexMatcher,
    "exact": ExactMatcher,
    "prefix": PrefixMatcher,
    "suffix": SuffixMatcher,
    "contains": ContainsMatcher,
}


@dataclass(frozen=True, slots=True)
class FilterRule:
    """A matcher plus a flag saying whether a match excludes or includes."""

    matcher: Matcher
    exclude: bool = False

    def matches(self, name: str) -> bool:
        return self.matcher.matches(name)

    @classmethod
    def from_mapping(cls, raw: Any) -> FilterRule:
        """Build a rule from config.

        A bare string is an include glob; otherwise a mapping with
        ``pattern`` and optional ``kind`` and ``exclude``.
        """
        if isinstance(raw, str):
            return cls(GlobMatcher(raw))

        if not isinstance(raw, dict):
            raise ConfigurationError("filter rule must be a string or mapping", "filters")

        pattern = raw.get("pattern")
        if not isinstance(pattern, str) or not pattern:
            raise ConfigurationError("filter rule is missing 'pattern'", "filters")

        kind = str(raw.get("kind", "glob")).lower()
        factory = MATCHER_KINDS.get(kind)
        if factory is None:
            raise ConfigurationError(
                f"unknown filter kind '{kind}' (expected one of {', '.join(MATCHER_KINDS)})",
                "filters",
            )

        return cls(factory(pattern), exclude=bool(raw.get("exclude", False)))


def keep(name: str, rules: Iterable[FilterRule]) -> bool:
    """Decide whether a name survives the rules.

    Any matching include rule wins; otherwise any matching exclude rule
    drops the name; otherwise it is kept. Position within the list never
    matters.
    """
    rules = list(rules)
    if any(not rule.exclude and rule.matches(name) for rule in rules):
        return True
    if any(rule.exclude and rule.matches(name) for rule in rules):
        return False
    return True


def apply_filters(
    items: Sequence[T],
    key: Callable[[T], str],
    rules: Sequence[FilterRule],
) -> list[T]:
    """Keep the items whose key passes ``keep``, preserving order."""
    return [item for item in items if keep(key(item), rules)]
