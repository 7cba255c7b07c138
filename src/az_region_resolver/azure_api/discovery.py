"""Subscription and location discovery.

Only what ``check --live`` needs: the enabled subscriptions of the caller
and the physical regions ARM reports for one of them.  Location listings
are kept in memory for an hour, keyed by subscription and tenant.
"""

from __future__ import annotations

import logging
import time

import requests

from az_region_resolver.azure_api._auth import (
    AZURE_API_VERSION,
    AZURE_MGMT_URL,
    _get_headers,
)

logger = logging.getLogger(__name__)

LOCATIONS_CACHE_TTL = 3600
_locations_cache: dict[tuple[str, str], tuple[float, list[dict[str, str]]]] = {}


def _arm_values(url: str, headers: dict[str, str]) -> list[dict]:
    """GET an ARM list endpoint and return ``value`` across every ``nextLink`` page."""
    values: list[dict] = []
    next_url: str | None = url
    while next_url:
        resp = requests.get(next_url, headers=headers, timeout=30)
        resp.raise_for_status()
        page = resp.json()
        values.extend(page.get("value", []))
        next_url = page.get("nextLink")
    return values


def list_subscriptions(tenant_id: str | None = None) -> list[dict]:
    """Return enabled subscriptions as ``[{"id": ..., "name": ...}, ...]``."""
    url = f"{AZURE_MGMT_URL}/subscriptions?api-version={AZURE_API_VERSION}"
    subs = [
        {"id": s["subscriptionId"], "name": s["displayName"]}
        for s in _arm_values(url, _get_headers(tenant_id))
        if s.get("state") == "Enabled"
    ]
    return sorted(subs, key=lambda x: x["name"].lower())


def list_locations(
    subscription_id: str | None = None,
    tenant_id: str | None = None,
) -> list[dict[str, str]]:
    """Return physical ARM locations as ``[{"name": ..., "displayName": ...}, ...]``.

    When *subscription_id* is ``None`` the first enabled subscription (sorted
    by ID) is used.
    """
    key = (subscription_id or "", tenant_id or "")
    hit = _locations_cache.get(key)
    if hit is not None and time.monotonic() - hit[0] < LOCATIONS_CACHE_TTL:
        return hit[1]

    sub_id = subscription_id
    if not sub_id:
        enabled = sorted(s["id"] for s in list_subscriptions(tenant_id))
        if not enabled:
            raise LookupError("No enabled subscriptions found")
        sub_id = enabled[0]
        logger.debug("Listing locations with subscription %s", sub_id)

    url = f"{AZURE_MGMT_URL}/subscriptions/{sub_id}/locations?api-version={AZURE_API_VERSION}"
    locations = sorted(
        [
            {"name": loc["name"], "displayName": loc["displayName"]}
            for loc in _arm_values(url, _get_headers(tenant_id))
            if loc.get("metadata", {}).get("regionType") == "Physical"
        ],
        key=lambda x: x["displayName"],
    )
    _locations_cache[key] = (time.monotonic(), locations)
    return locations
