"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.accessory_selector import AccessorySelector, CheckoutView
from inventory_kernel.selectors.lookups import (
    AssetLookup,
    LocationLookup,
    SqlAssetLookup,
    SqlLocationLookup,
    SqlUserLookup,
    UserLookup,
    compose_asset_description,
)
from inventory_kernel.selectors.seat_selector import (
    SeatCounts,
    SeatSelector,
    SeatState,
    SeatView,
)

__all__ = [
    "AccessorySelector",
    "AssetLookup",
    "CheckoutView",
    "LocationLookup",
    "SeatCounts",
    "SeatSelector",
    "SeatState",
    "SeatView",
    "SqlAssetLookup",
    "SqlLocationLookup",
    "SqlUserLookup",
    "UserLookup",
    "compose_asset_description",
]
