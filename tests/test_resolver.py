"""Tests for the region alias resolver."""

import pytest

from az_region_resolver.models.region import RegionAliasEntry, cloud_for_region
from az_region_resolver.resolver import (
    AmbiguousRegionError,
    RegionAliasResolver,
    RegionNotFoundError,
    RegionTableError,
    UnknownCloudError,
    canonical_cloud,
    check_table,
    load_table,
    lookup,
    normalize_label,
    read_table,
    resolve,
)


def _entry(original: str, region_id: str, region_name: str) -> RegionAliasEntry:
    return RegionAliasEntry(OriginalValue=original, RegionId=region_id, RegionName=region_name)


def _write_table(path, rows: list[tuple[str, str, str]]):
    lines = ["OriginalValue,RegionId,RegionName"] + [",".join(r) for r in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# normalize_label / canonical_cloud
# ---------------------------------------------------------------------------


class TestNormalizeLabel:
    """Tests for the matching key."""

    def test_lowercases(self):
        assert normalize_label("EASTUS2") == "eastus2"

    def test_trims_and_collapses_whitespace(self):
        assert normalize_label("  US   East\t2 ") == "us east 2"

    def test_empty(self):
        assert normalize_label("   ") == ""


class TestCanonicalCloud:
    """Tests for cloud name validation."""

    def test_none_passes_through(self):
        assert canonical_cloud(None) is None
        assert canonical_cloud("") is None

    def test_case_insensitive(self):
        assert canonical_cloud("azureusgovernment") == "AzureUSGovernment"

    def test_unknown_cloud_raises(self):
        with pytest.raises(UnknownCloudError, match="AzureCloud"):
            canonical_cloud("MarsCloud")

    def test_unknown_cloud_is_value_error(self):
        with pytest.raises(ValueError):
            canonical_cloud("MarsCloud")


class TestCloudForRegion:
    """Tests for the region ID → cloud derivation."""

    @pytest.mark.parametrize(
        "region_id,cloud",
        [
            ("eastus2", "AzureCloud"),
            ("germanywestcentral", "AzureCloud"),
            ("usgovvirginia", "AzureUSGovernment"),
            ("usdodeast", "AzureUSGovernment"),
            ("chinanorth3", "AzureChinaCloud"),
            ("germanycentral", "AzureGermanCloud"),
        ],
    )
    def test_cloud(self, region_id, cloud):
        assert cloud_for_region(region_id) == cloud


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


class TestResolve:
    """Tests for single-label resolution over the packaged table."""

    def test_canonical_id(self, resolver):
        entry = resolver.resolve("eastus2")
        assert entry.region_id == "eastus2"
        assert entry.region_name == "East US 2"

    def test_meter_region_style_label(self, resolver):
        entry = resolver.resolve("US East 2")
        assert (entry.region_id, entry.region_name) == ("eastus2", "East US 2")

    def test_case_insensitive(self, resolver):
        assert resolver.resolve("EASTUS2") == resolver.resolve("eastus2")
        assert resolver.resolve("us east 2") == resolver.resolve("US East 2")

    def test_surrounding_whitespace(self, resolver):
        assert resolver.resolve("  eastus2 ").region_id == "eastus2"

    def test_mixed_case_table_key(self, resolver):
        assert resolver.resolve("ae central").region_id == "uaecentral"
        assert resolver.resolve("AE Central").region_name == "UAE Central"

    def test_legacy_aliases(self, resolver):
        assert resolver.resolve("ustexas").region_id == "usgovtexas"
        assert resolver.resolve("par").region_id == "francecentral"

    def test_not_found_raises(self, resolver):
        with pytest.raises(RegionNotFoundError) as exc_info:
            resolver.resolve("not-a-real-region")
        assert exc_info.value.label == "not-a-real-region"

    def test_not_found_is_lookup_error(self, resolver):
        with pytest.raises(LookupError):
            resolver.resolve("not-a-real-region")

    def test_no_fuzzy_guess(self, resolver):
        # One character off a real alias must not resolve.
        assert resolver.lookup("eastus22") is None
        assert resolver.lookup("east us2") is None

    def test_empty_label_not_found(self, resolver):
        assert resolver.lookup("") is None

    def test_lookup_returns_none(self, resolver):
        assert resolver.lookup("not-a-real-region") is None

    def test_module_level_shortcuts(self):
        assert resolve("US East 2").region_id == "eastus2"
        assert lookup("not-a-real-region") is None


class TestIdentity:
    """Every canonical region ID resolves to itself."""

    def test_every_identity_row_resolves_to_itself(self, resolver):
        identities = [e for e in resolver.entries if e.is_identity]
        assert identities
        for entry in identities:
            resolved = resolver.resolve(entry.region_id, entry.cloud)
            assert (resolved.region_id, resolved.region_name) == (
                entry.region_id,
                entry.region_name,
            )

    def test_identity_without_cloud_for_commercial(self, resolver):
        for entry in resolver.list_regions("AzureCloud"):
            assert resolver.resolve(entry.region_id).region_id == entry.region_id


# ---------------------------------------------------------------------------
# Ambiguity
# ---------------------------------------------------------------------------


class TestAmbiguity:
    """Short codes shared by the commercial and US Government clouds."""

    def test_bn_candidates_in_table_order(self, resolver):
        ids = [c.region_id for c in resolver.candidates("bn")]
        assert ids == ["eastus2", "usgovvirginia"]

    @pytest.mark.parametrize(
        "code,commercial,government",
        [
            ("bn", "eastus2", "usgovvirginia"),
            ("cy", "westcentralus", "usgovwyoming"),
            ("dm", "centralus", "usgoviowa"),
            ("sn", "southcentralus", "usgovtexas"),
        ],
    )
    def test_default_policy_is_first_match(self, resolver, code, commercial, government):
        assert resolver.resolve(code).region_id == commercial
        assert resolver.resolve(code, cloud="AzureUSGovernment").region_id == government

    def test_cloud_filter_on_candidates(self, resolver):
        ids = [c.region_id for c in resolver.candidates("bn", cloud="AzureCloud")]
        assert ids == ["eastus2"]

    def test_cloud_filter_excludes_everything(self, resolver):
        assert resolver.candidates("eastus2", cloud="AzureChinaCloud") == []
        with pytest.raises(RegionNotFoundError):
            resolver.resolve("eastus2", cloud="AzureChinaCloud")

    def test_strict_raises_with_candidates(self, resolver):
        with pytest.raises(AmbiguousRegionError) as exc_info:
            resolver.resolve("bn", strict=True)
        assert [c.region_id for c in exc_info.value.candidates] == ["eastus2", "usgovvirginia"]

    def test_strict_with_cloud_is_unambiguous(self, resolver):
        entry = resolver.resolve("bn", cloud="AzureUSGovernment", strict=True)
        assert entry.region_id == "usgovvirginia"

    def test_strict_unique_label(self, resolver):
        assert resolver.resolve("eastus2", strict=True).region_id == "eastus2"

    def test_unknown_cloud_rejected(self, resolver):
        with pytest.raises(UnknownCloudError):
            resolver.candidates("bn", cloud="nope")

    def test_same_region_listed_twice_is_one_candidate(self):
        r = RegionAliasResolver(
            [
                _entry("eastus", "eastus", "East US"),
                _entry("US East", "eastus", "East US"),
                _entry("us east", "eastus", "East US"),
            ]
        )
        assert len(r.candidates("US EAST")) == 1


# ---------------------------------------------------------------------------
# resolve_result
# ---------------------------------------------------------------------------


class TestResolveResult:
    """Tests for the non-raising result object."""

    def test_resolved(self, resolver):
        result = resolver.resolve_result("US East 2")
        assert result.status == "resolved"
        assert result.match is not None
        assert result.match.region_id == "eastus2"
        assert len(result.candidates) == 1

    def test_ambiguous(self, resolver):
        result = resolver.resolve_result("bn")
        assert result.status == "ambiguous"
        assert result.match.region_id == "eastus2"
        assert {c.region_id for c in result.candidates} == {"eastus2", "usgovvirginia"}

    def test_not_found(self, resolver):
        result = resolver.resolve_result("not-a-real-region")
        assert result.status == "not_found"
        assert result.match is None
        assert result.candidates == []

    def test_serialises_with_table_column_names(self, resolver):
        data = resolver.resolve_result("eastus2").model_dump(mode="json", by_alias=True)
        assert data["match"]["RegionId"] == "eastus2"
        assert data["match"]["RegionName"] == "East US 2"
        assert data["match"]["cloud"] == "AzureCloud"


# ---------------------------------------------------------------------------
# Region listing and aliases
# ---------------------------------------------------------------------------


class TestListRegions:
    """Tests for canonical region listing."""

    def test_only_identity_rows(self, resolver):
        regions = resolver.list_regions()
        assert all(r.is_identity for r in regions)
        ids = [r.region_id for r in regions]
        assert len(ids) == len(set(ids))

    def test_sorted_by_display_name(self, resolver):
        names = [r.region_name.lower() for r in resolver.list_regions()]
        assert names == sorted(names)

    def test_cloud_filter(self, resolver):
        gov = {r.region_id for r in resolver.list_regions("AzureUSGovernment")}
        assert "usgovvirginia" in gov
        assert "eastus2" not in gov

    def test_get_region(self, resolver):
        assert resolver.get_region("EastUS2").region_name == "East US 2"
        assert resolver.get_region("US East 2") is None


class TestAliasesFor:
    """Tests for the reverse lookup."""

    def test_aliases_in_table_order(self, resolver):
        assert resolver.aliases_for("eastus2") == [
            "eastus2",
            "East US 2",
            "US East 2",
            "useast2",
            "bn",
        ]

    def test_unknown_region(self, resolver):
        with pytest.raises(RegionNotFoundError):
            resolver.aliases_for("atlantis")


# ---------------------------------------------------------------------------
# Table loading and integrity
# ---------------------------------------------------------------------------


class TestLoadTable:
    """Tests for reading alias table files."""

    def test_packaged_table_loads(self):
        entries = load_table()
        assert len(entries) > 100
        assert entries[0].original_value

    def test_packaged_table_is_cached(self):
        assert load_table() is load_table()

    def test_custom_table(self, tmp_path):
        path = _write_table(
            tmp_path / "regions.csv",
            [("eastus", "eastus", "East US"), ("bl", "eastus", "East US")],
        )
        entries = read_table(path)
        assert [e.original_value for e in entries] == ["eastus", "bl"]

    def test_strips_cells(self, tmp_path):
        path = tmp_path / "regions.csv"
        path.write_text("OriginalValue,RegionId,RegionName\n eastus , eastus ,East US \n")
        (entry,) = read_table(path)
        assert entry.original_value == "eastus"
        assert entry.region_name == "East US"

    def test_missing_column(self, tmp_path):
        path = tmp_path / "regions.csv"
        path.write_text("OriginalValue,RegionId\neastus,eastus\n")
        with pytest.raises(RegionTableError, match="RegionName"):
            read_table(path)

    def test_empty_cell(self, tmp_path):
        path = _write_table(tmp_path / "regions.csv", [("eastus", "eastus", "")])
        with pytest.raises(RegionTableError, match=":2"):
            read_table(path)


class TestCheckTable:
    """Tests for alias table integrity checks."""

    def test_packaged_table_is_clean(self):
        assert check_table(load_table()) == []

    def test_every_region_has_identity_row(self):
        entries = load_table()
        identities = {e.region_id for e in entries if e.original_value == e.region_id}
        missing = {e.region_id for e in entries} - identities
        assert missing == set()

    def test_missing_identity(self):
        issues = check_table([_entry("US East", "eastus", "East US")])
        assert issues == ["Region ID 'eastus' has no identity row"]

    def test_non_canonical_region_id(self):
        issues = check_table([_entry("East US", "East US", "East US")])
        assert any("not canonical" in i for i in issues)

    def test_conflicting_display_names(self):
        issues = check_table(
            [
                _entry("eastus", "eastus", "East US"),
                _entry("useast", "eastus", "US East"),
            ]
        )
        assert any("several display names" in i for i in issues)

    def test_duplicate_row(self):
        row = _entry("eastus", "eastus", "East US")
        assert any("Duplicate row" in i for i in check_table([row, row]))

    def test_shared_short_code_is_not_an_issue(self):
        issues = check_table(
            [
                _entry("eastus2", "eastus2", "East US 2"),
                _entry("bn", "eastus2", "East US 2"),
                _entry("usgovvirginia", "usgovvirginia", "US Gov Virginia"),
                _entry("bn", "usgovvirginia", "US Gov Virginia"),
            ]
        )
        assert issues == []
