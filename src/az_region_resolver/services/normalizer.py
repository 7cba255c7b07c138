"""Billing export normalisation.

Rewrites the region column of a cost / usage export so every row carries the
canonical ``RegionId`` and ``RegionName``.  Labels missing from the alias
table are handled according to the *on_missing* policy:

- ``passthrough``: copy the original label into both output columns;
- ``flag``: leave both output columns empty;
- ``fail``: raise :class:`RegionNotFoundError` for the first such row.

Every row gets a ``RegionStatus`` of ``resolved``, ``ambiguous``,
``not_found`` or ``empty`` (blank region cell).
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import TextIO

from az_region_resolver.models.region import NormalizeSummary
from az_region_resolver.resolver import (
    RegionAliasResolver,
    RegionNotFoundError,
    canonical_cloud,
    get_resolver,
)
from az_region_resolver.settings import OnMissing

logger = logging.getLogger(__name__)

# Region-bearing columns seen in Azure cost exports (EA, MCA, FOCUS),
# in order of preference.
REGION_COLUMNS: tuple[str, ...] = (
    "ResourceLocation",
    "ResourceLocationNormalized",
    "RegionName",
    "RegionId",
    "Region",
    "Location",
    "MeterRegion",
    "ResourceRegion",
)

OUTPUT_COLUMNS: tuple[str, ...] = ("RegionId", "RegionName", "RegionStatus")

ON_MISSING_POLICIES: tuple[str, ...] = ("passthrough", "flag", "fail")


def detect_region_column(fieldnames: Sequence[str]) -> str:
    """Return the first known region column present in *fieldnames*.

    Matching is case-insensitive; the header's own spelling is returned.
    """
    by_lower = {name.strip().lower(): name for name in fieldnames}
    for column in REGION_COLUMNS:
        found = by_lower.get(column.lower())
        if found is not None:
            return found
    raise ValueError(
        f"No region column found. Expected one of: {', '.join(REGION_COLUMNS)}"
    )


def normalize_rows(
    rows: Iterable[dict[str, str]],
    column: str,
    *,
    resolver: RegionAliasResolver | None = None,
    cloud: str | None = None,
    on_missing: OnMissing = "passthrough",
    summary: NormalizeSummary | None = None,
) -> Iterator[dict[str, str]]:
    """Yield *rows* with ``RegionId`` / ``RegionName`` / ``RegionStatus`` set.

    Counters and unresolved labels are accumulated into *summary* when given.
    """
    if on_missing not in ON_MISSING_POLICIES:
        raise ValueError(f"Unknown on_missing policy {on_missing!r}")
    resolver = resolver or get_resolver()
    cloud = canonical_cloud(cloud)
    summary = summary if summary is not None else NormalizeSummary()
    summary.column = column
    seen_missing: set[str] = set(summary.unresolvedLabels)

    for row_number, row in enumerate(rows, start=1):
        summary.rows += 1
        label = (row.get(column) or "").strip()
        out = dict(row)

        if not label:
            summary.empty += 1
            out.update(RegionId="", RegionName="", RegionStatus="empty")
            yield out
            continue

        found = resolver.candidates(label, cloud)
        if found:
            status = "ambiguous" if len(found) > 1 else "resolved"
            if status == "ambiguous":
                summary.ambiguous += 1
                logger.debug(
                    "Row %d: %r is ambiguous, using %s",
                    row_number,
                    label,
                    found[0].region_id,
                )
            else:
                summary.resolved += 1
            out.update(
                RegionId=found[0].region_id,
                RegionName=found[0].region_name,
                RegionStatus=status,
            )
            yield out
            continue

        summary.unresolved += 1
        if label not in seen_missing:
            seen_missing.add(label)
            summary.unresolvedLabels.append(label)
            logger.warning("Unresolved region label %r (first seen on row %d)", label, row_number)
        if on_missing == "fail":
            raise RegionNotFoundError(label, row=row_number)
        if on_missing == "passthrough":
            out.update(RegionId=label, RegionName=label, RegionStatus="not_found")
        else:
            out.update(RegionId="", RegionName="", RegionStatus="not_found")
        yield out


def normalize_csv(
    source: TextIO,
    dest: TextIO,
    column: str | None = None,
    *,
    resolver: RegionAliasResolver | None = None,
    cloud: str | None = None,
    on_missing: OnMissing = "passthrough",
) -> NormalizeSummary:
    """Stream a CSV export from *source* to *dest*, normalising its region column.

    When *column* is ``None`` the region column is detected from the header.
    Under the ``fail`` policy rows are buffered, so *dest* receives nothing
    when a label is unknown.
    """
    reader = csv.DictReader(source)
    fieldnames = list(reader.fieldnames or [])
    if not fieldnames:
        raise ValueError("Input CSV has no header row")
    if column is None:
        column = detect_region_column(fieldnames)
    elif column not in fieldnames:
        raise ValueError(f"Column {column!r} not found in input header")

    out_fields = fieldnames + [c for c in OUTPUT_COLUMNS if c not in fieldnames]
    summary = NormalizeSummary()
    rows: Iterable[dict[str, str]] = normalize_rows(
        reader,
        column,
        resolver=resolver,
        cloud=cloud,
        on_missing=on_missing,
        summary=summary,
    )
    if on_missing == "fail":
        rows = list(rows)

    writer = csv.DictWriter(dest, fieldnames=out_fields, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    summary.unresolvedLabels.sort()
    logger.info(
        "Normalised %d rows on %r: %d resolved, %d ambiguous, %d unresolved, %d empty",
        summary.rows,
        column,
        summary.resolved,
        summary.ambiguous,
        summary.unresolved,
        summary.empty,
    )
    return summary
