"""Region alias resolution.

Maps free-form region labels found in billing and usage exports (``'US East
2'``, ``'ustexas'``, ``'par'``, ``'AE Central'`` …) to the canonical Azure
region ID and display name.

The alias table is static reference data shipped in ``data/regions.csv``.  It
is a flat list, **not** a one-to-one map: a few short datacenter codes are
shared between the commercial and the US Government cloud (``bn``, ``cy``,
``dm``, ``sn``).  Lookups therefore return every candidate in table order and
the default tie-break is the first one.  Commercial rows precede sovereign
rows in the table, so without further context the commercial region wins;
pass ``cloud=`` to pick another cloud.

Matching is case-insensitive and tolerant of surrounding / repeated
whitespace.  Unknown labels are never guessed.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from az_region_resolver.models.region import (
    AZURE_CLOUDS,
    RegionAliasEntry,
    ResolveResult,
)

logger = logging.getLogger(__name__)

_PKG_DIR = Path(__file__).resolve().parent
DEFAULT_TABLE_PATH = _PKG_DIR / "data" / "regions.csv"
TABLE_COLUMNS = ("OriginalValue", "RegionId", "RegionName")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class RegionResolverError(Exception):
    """Base class for region resolution errors."""


class RegionNotFoundError(RegionResolverError, LookupError):
    """Raised when a label has no entry in the alias table."""

    def __init__(self, label: str, row: int | None = None) -> None:
        self.label = label
        self.row = row
        where = f" on row {row}" if row is not None else ""
        super().__init__(f"Unknown region label{where}: {label!r}")


class AmbiguousRegionError(RegionResolverError, LookupError):
    """Raised in strict mode when a label maps to several regions."""

    def __init__(self, label: str, candidates: list[RegionAliasEntry]) -> None:
        self.label = label
        self.candidates = candidates
        ids = ", ".join(c.region_id for c in candidates)
        super().__init__(f"Ambiguous region label {label!r}: {ids}")


class UnknownCloudError(RegionResolverError, ValueError):
    """Raised when a cloud filter is not a known Azure cloud name."""

    def __init__(self, cloud: str) -> None:
        self.cloud = cloud
        expected = ", ".join(AZURE_CLOUDS)
        super().__init__(f"Unknown Azure cloud {cloud!r}. Expected one of: {expected}")


class RegionTableError(RegionResolverError, ValueError):
    """Raised when the alias table file is malformed."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_label(label: str) -> str:
    """Return the matching key for *label*: trimmed, single-spaced, lowercase."""
    return " ".join(label.split()).lower()


def canonical_cloud(cloud: str | None) -> str | None:
    """Return the canonical spelling of *cloud*, or ``None`` when unset."""
    if not cloud:
        return None
    for known in AZURE_CLOUDS:
        if known.lower() == cloud.strip().lower():
            return known
    raise UnknownCloudError(cloud)


def read_table(path: Path) -> tuple[RegionAliasEntry, ...]:
    """Parse an alias table CSV, preserving row order."""
    with path.open(newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        missing = [c for c in TABLE_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise RegionTableError(f"{path}: missing column(s) {', '.join(missing)}")

        entries: list[RegionAliasEntry] = []
        for lineno, row in enumerate(reader, start=2):
            values = {c: (row.get(c) or "").strip() for c in TABLE_COLUMNS}
            empty = [c for c, v in values.items() if not v]
            if empty:
                raise RegionTableError(f"{path}:{lineno}: empty {', '.join(empty)}")
            entries.append(RegionAliasEntry(**values))

    logger.debug("Loaded %d region aliases from %s", len(entries), path)
    return tuple(entries)


@lru_cache(maxsize=8)
def load_table(path: Path | None = None) -> tuple[RegionAliasEntry, ...]:
    """Return the alias table at *path* (the packaged table by default).

    Results are cached per path for the lifetime of the process.
    """
    return read_table(Path(path) if path else DEFAULT_TABLE_PATH)


def check_table(entries: Iterable[RegionAliasEntry]) -> list[str]:
    """Return integrity problems found in *entries* (empty when clean)."""
    issues: list[str] = []
    names: dict[str, set[str]] = {}
    identities: set[str] = set()
    seen: set[tuple[str, str, str]] = set()

    for entry in entries:
        row = (entry.original_value, entry.region_id, entry.region_name)
        if row in seen:
            issues.append(f"Duplicate row: {', '.join(row)}")
        seen.add(row)

        rid = entry.region_id
        if rid != rid.lower() or any(ch.isspace() for ch in rid):
            issues.append(f"Region ID {entry.region_id!r} is not canonical (lowercase, no spaces)")
        names.setdefault(entry.region_id, set()).add(entry.region_name)
        if entry.is_identity:
            identities.add(entry.region_id)

    for region_id, region_names in names.items():
        if region_id not in identities:
            issues.append(f"Region ID {region_id!r} has no identity row")
        if len(region_names) > 1:
            issues.append(
                f"Region ID {region_id!r} has several display names: "
                f"{', '.join(sorted(region_names))}"
            )
    return issues


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class RegionAliasResolver:
    """Pure, read-only lookups over an alias table."""

    def __init__(self, entries: Iterable[RegionAliasEntry]) -> None:
        self.entries: tuple[RegionAliasEntry, ...] = tuple(entries)
        index: dict[str, list[RegionAliasEntry]] = {}
        for entry in self.entries:
            bucket = index.setdefault(normalize_label(entry.original_value), [])
            if all(e.region_id != entry.region_id for e in bucket):
                bucket.append(entry)
        self._index: dict[str, tuple[RegionAliasEntry, ...]] = {
            key: tuple(bucket) for key, bucket in index.items()
        }
        self._regions: dict[str, RegionAliasEntry] = {
            e.region_id: e for e in self.entries if e.is_identity
        }

    def __len__(self) -> int:
        return len(self.entries)

    def candidates(self, label: str, cloud: str | None = None) -> list[RegionAliasEntry]:
        """Return every entry matching *label*, in table order.

        When *cloud* is given only entries hosted in that cloud are kept.
        """
        cloud = canonical_cloud(cloud)
        found = self._index.get(normalize_label(label), ())
        if cloud:
            return [e for e in found if e.cloud == cloud]
        return list(found)

    def lookup(self, label: str, cloud: str | None = None) -> RegionAliasEntry | None:
        """Return the first candidate for *label*, or ``None``."""
        found = self.candidates(label, cloud)
        return found[0] if found else None

    def resolve(
        self, label: str, cloud: str | None = None, strict: bool = False
    ) -> RegionAliasEntry:
        """Resolve *label* to a single entry.

        Raises :class:`RegionNotFoundError` for unknown labels.  Several
        candidates resolve to the first one in table order, unless *strict*
        is set, in which case :class:`AmbiguousRegionError` is raised.
        """
        found = self.candidates(label, cloud)
        if not found:
            raise RegionNotFoundError(label)
        if strict and len(found) > 1:
            raise AmbiguousRegionError(label, found)
        return found[0]

    def resolve_result(self, label: str, cloud: str | None = None) -> ResolveResult:
        """Resolve *label* without raising for unknown or ambiguous labels."""
        found = self.candidates(label, cloud)
        if not found:
            return ResolveResult(label=label, status="not_found")
        return ResolveResult(
            label=label,
            status="ambiguous" if len(found) > 1 else "resolved",
            match=found[0],
            candidates=found,
        )

    def list_regions(self, cloud: str | None = None) -> list[RegionAliasEntry]:
        """Return the canonical (identity) entries sorted by display name."""
        cloud = canonical_cloud(cloud)
        regions = [e for e in self._regions.values() if not cloud or e.cloud == cloud]
        return sorted(regions, key=lambda e: (e.region_name.lower(), e.region_id))

    def get_region(self, region_id: str) -> RegionAliasEntry | None:
        """Return the identity entry for a canonical *region_id*."""
        return self._regions.get(region_id.strip().lower())

    def aliases_for(self, region_id: str) -> list[str]:
        """Return every ``OriginalValue`` pointing at *region_id*, in table order."""
        region = self.get_region(region_id)
        if region is None:
            raise RegionNotFoundError(region_id)
        return [e.original_value for e in self.entries if e.region_id == region.region_id]


@lru_cache(maxsize=8)
def get_resolver(path: Path | None = None) -> RegionAliasResolver:
    """Return a shared resolver over the table at *path* (packaged by default)."""
    return RegionAliasResolver(load_table(path))


# ---------------------------------------------------------------------------
# Module-level shortcuts over the packaged table
# ---------------------------------------------------------------------------


def candidates(label: str, cloud: str | None = None) -> list[RegionAliasEntry]:
    return get_resolver().candidates(label, cloud)


def lookup(label: str, cloud: str | None = None) -> RegionAliasEntry | None:
    return get_resolver().lookup(label, cloud)


def resolve(label: str, cloud: str | None = None, strict: bool = False) -> RegionAliasEntry:
    return get_resolver().resolve(label, cloud, strict=strict)
