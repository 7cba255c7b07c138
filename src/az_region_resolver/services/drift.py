"""Compare the alias table with the locations Azure Resource Manager reports."""

import logging

from az_region_resolver.resolver import RegionAliasResolver

logger = logging.getLogger(__name__)


def find_table_drift(
    locations: list[dict[str, str]],
    resolver: RegionAliasResolver,
) -> list[str]:
    """Return differences between ARM *locations* and the alias table.

    *locations* is the output of :func:`azure_api.list_locations`.  Reports
    ARM regions with no identity row and regions whose display name differs.
    Regions only present in the table are not reported: the table also covers
    other clouds and retired regions.
    """
    issues: list[str] = []
    for loc in locations:
        name = loc["name"]
        display = loc.get("displayName", "")
        region = resolver.get_region(name)
        if region is None:
            issues.append(f"ARM region {name!r} ({display}) is missing from the alias table")
            continue
        if display and region.region_name != display:
            issues.append(
                f"Display name mismatch for {name!r}: "
                f"table {region.region_name!r}, ARM {display!r}"
            )
    logger.debug("Compared %d ARM locations, %d differences", len(locations), len(issues))
    return issues
