"""Pydantic models for region alias resolution.

``RegionAliasEntry`` is one row of the alias table.  Attributes are
snake_case in Python; the PascalCase names used by the table file and by
billing exports (``OriginalValue``, ``RegionId``, ``RegionName``) are the
serialisation aliases.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

# ---------------------------------------------------------------------------
# Clouds
# ---------------------------------------------------------------------------

AZURE_CLOUD = "AzureCloud"
AZURE_US_GOVERNMENT = "AzureUSGovernment"
AZURE_CHINA_CLOUD = "AzureChinaCloud"
AZURE_GERMAN_CLOUD = "AzureGermanCloud"

AZURE_CLOUDS: tuple[str, ...] = (
    AZURE_CLOUD,
    AZURE_US_GOVERNMENT,
    AZURE_CHINA_CLOUD,
    AZURE_GERMAN_CLOUD,
)

_SOVEREIGN_PREFIXES: tuple[tuple[str, str], ...] = (
    ("usgov", AZURE_US_GOVERNMENT),
    ("usdod", AZURE_US_GOVERNMENT),
    ("usnat", AZURE_US_GOVERNMENT),
    ("ussec", AZURE_US_GOVERNMENT),
    ("china", AZURE_CHINA_CLOUD),
)

# The retired Microsoft Cloud Deutschland regions; "germanynorth" and
# "germanywestcentral" are commercial.
_GERMAN_CLOUD_REGIONS = frozenset({"germanycentral", "germanynortheast"})


def cloud_for_region(region_id: str) -> str:
    """Return the Azure cloud that hosts *region_id*."""
    rid = region_id.lower()
    if rid in _GERMAN_CLOUD_REGIONS:
        return AZURE_GERMAN_CLOUD
    for prefix, cloud in _SOVEREIGN_PREFIXES:
        if rid.startswith(prefix):
            return cloud
    return AZURE_CLOUD


# ---------------------------------------------------------------------------
# Table rows
# ---------------------------------------------------------------------------


class RegionAliasEntry(BaseModel):
    """One ``OriginalValue -> (RegionId, RegionName)`` mapping."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_value: str = Field(alias="OriginalValue")
    region_id: str = Field(alias="RegionId")
    region_name: str = Field(alias="RegionName")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cloud(self) -> str:
        return cloud_for_region(self.region_id)

    @property
    def is_identity(self) -> bool:
        """``True`` for the row mapping a canonical region ID to itself."""
        return self.original_value == self.region_id


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

ResolveStatus = Literal["resolved", "ambiguous", "not_found"]


class ResolveResult(BaseModel):
    label: str
    status: ResolveStatus
    match: RegionAliasEntry | None = None
    candidates: list[RegionAliasEntry] = Field(default_factory=list)


class BatchResolveRequest(BaseModel):
    labels: list[str]
    cloud: str | None = None


class NormalizeSummary(BaseModel):
    column: str = ""
    rows: int = 0
    resolved: int = 0
    ambiguous: int = 0
    unresolved: int = 0
    empty: int = 0
    unresolvedLabels: list[str] = Field(default_factory=list)
