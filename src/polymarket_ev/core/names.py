"""
Team name normalization and alias matching.

Polymarket and the sportsbooks author names independently: "OKC" vs
"Oklahoma City Thunder", "Chelsea FC" vs "Chelsea". Matching is rule based:

1. equal normalized forms,
2. one normalized form contained in the other (permissive on purpose,
   "bulls" matches "chicago bulls"; short names can false-positive),
3. one name listed as an alias of the other, or both in the same alias group.

Alias tables live in ``data/aliases.yaml`` and are loaded once at import.
"""

from __future__ import annotations

import re
import unicodedata
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

import yaml
from rapidfuzz import fuzz

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s&]")
_SOCCER_SUFFIXES = re.compile(r"\b(?:fc|cf)\b")


def normalize_team_name(name: str) -> str:
    """Lower-case, strip punctuation except '&', collapse whitespace."""
    if not isinstance(name, str):
        return ""
    text = _WHITESPACE.sub(" ", name.lower())
    text = _PUNCTUATION.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def fold_diacritics(text: str) -> str:
    """'Atlético' -> 'Atletico'."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_soccer_team_name(name: str) -> str:
    """Soccer variant: also folds diacritics, drops FC/CF and spells out '&'."""
    if not isinstance(name, str):
        return ""
    text = normalize_team_name(fold_diacritics(name))
    text = _SOCCER_SUFFIXES.sub("", text)
    text = text.replace("&", " and ")
    return _WHITESPACE.sub(" ", text).strip()


class AliasTable:
    """
    Immutable canonical-name -> aliases lookup.

    Both keys and aliases are stored normalized with the table's normalizer.
    """

    def __init__(
        self,
        entries: Mapping[str, Iterable[str]],
        normalize: Callable[[str], str],
    ) -> None:
        self._normalize = normalize
        groups: dict[str, tuple[str, ...]] = {}
        members: dict[str, set[str]] = {}

        for canonical, aliases in entries.items():
            key = normalize(str(canonical))
            if not key:
                continue
            normalized = [normalize(str(a)) for a in (aliases or [])]
            merged = list(groups.get(key, ()))
            merged.extend(a for a in normalized if a and a != key and a not in merged)
            groups[key] = tuple(merged)
            for name in (key, *merged):
                members.setdefault(name, set()).add(key)

        self._groups = MappingProxyType(groups)
        self._members = MappingProxyType({k: frozenset(v) for k, v in members.items()})

    @property
    def normalize(self) -> Callable[[str], str]:
        return self._normalize

    @property
    def groups(self) -> Mapping[str, tuple[str, ...]]:
        return self._groups

    def aliases_for(self, normalized: str) -> tuple[str, ...]:
        return self._groups.get(normalized, ())

    def groups_of(self, normalized: str) -> frozenset[str]:
        return self._members.get(normalized, frozenset())

    def pairs(self) -> list[tuple[str, str]]:
        """Every (canonical, alias) pair."""
        return [(canonical, alias) for canonical, aliases in self._groups.items() for alias in aliases]

    def merged(self, extra: Mapping[str, Iterable[str]]) -> AliasTable:
        """New table with ``extra`` entries added."""
        combined: dict[str, list[str]] = {k: list(v) for k, v in self._groups.items()}
        for canonical, aliases in extra.items():
            combined.setdefault(self._normalize(str(canonical)), []).extend(aliases or [])
        return AliasTable(combined, self._normalize)

    def __len__(self) -> int:
        return len(self._groups)


def _read_alias_file(path: Optional[Path] = None) -> dict:
    if path is None:
        text = resources.files("polymarket_ev").joinpath("data/aliases.yaml").read_text(encoding="utf-8")
    else:
        text = Path(path).read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


_BUILTIN = _read_alias_file()

TEAM_ALIASES = AliasTable(_BUILTIN.get("teams") or {}, normalize_team_name)
SOCCER_ALIASES = AliasTable(_BUILTIN.get("soccer") or {}, normalize_soccer_team_name)


def load_alias_tables(extra_file: Optional[Path] = None) -> tuple[AliasTable, AliasTable]:
    """
    Built-in (team, soccer) tables, extended by an optional YAML file with the
    same ``teams:`` / ``soccer:`` layout.
    """
    if extra_file is None:
        return TEAM_ALIASES, SOCCER_ALIASES
    extra = _read_alias_file(extra_file)
    if not isinstance(extra, dict) or not all(isinstance(extra.get(s) or {}, dict) for s in ("teams", "soccer")):
        raise ValueError(f"{extra_file}: expected teams / soccer mappings of name -> aliases")
    return (
        TEAM_ALIASES.merged(extra.get("teams") or {}),
        SOCCER_ALIASES.merged(extra.get("soccer") or {}),
    )


def _contains_words(haystack: str, needle: str) -> bool:
    return f" {needle} " in f" {haystack} "


def _alias_of(name: str, other: str, table: AliasTable) -> bool:
    """True if ``other`` is (or contains, word-wise) an alias of canonical ``name``."""
    return any(alias == other or _contains_words(other, alias) for alias in table.aliases_for(name))


def _match(a: str, b: str, table: AliasTable) -> bool:
    na = table.normalize(a)
    nb = table.normalize(b)
    if not na or not nb:
        return False
    if na == nb:
        return True
    if na in nb or nb in na:
        return True
    if _alias_of(na, nb, table) or _alias_of(nb, na, table):
        return True
    return bool(table.groups_of(na) & table.groups_of(nb))


def names_match(a: str, b: str, aliases: AliasTable = TEAM_ALIASES) -> bool:
    """Symmetric team-name match (North American leagues)."""
    return _match(a, b, aliases)


def soccer_names_match(a: str, b: str, aliases: AliasTable = SOCCER_ALIASES) -> bool:
    """Symmetric club-name match with soccer normalization."""
    return _match(a, b, aliases)


# ── Alias maintenance ──────────────────────────────────────────────────────


def suggest_aliases(
    contract_names: Iterable[str],
    book_names: Iterable[str],
    threshold: float = 0.75,
    aliases: AliasTable = TEAM_ALIASES,
    limit: int = 50,
) -> list[tuple[str, str, float]]:
    """
    Pair unmatched contract names with similar sportsbook names.

    Returns (contract_name, book_name, score) sorted by score descending.

    NOTE: For manual review of the alias table only. Never used for matching.
    """
    books = sorted({n for n in book_names if n})
    candidates: list[tuple[str, str, float]] = []

    for name in sorted({n for n in contract_names if n}):
        if any(_match(name, book, aliases) for book in books):
            continue
        for book in books:
            score = fuzz.token_sort_ratio(
                aliases.normalize(name),
                aliases.normalize(book),
            ) / 100.0
            if score >= threshold:
                candidates.append((name, book, score))

    candidates.sort(key=lambda x: x[2], reverse=True)
    return candidates[:limit]
