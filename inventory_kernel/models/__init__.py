"""ORM models for the inventory kernel."""

from inventory_kernel.models.accessory import Accessory, AccessoryCheckout
from inventory_kernel.models.asset import Asset
from inventory_kernel.models.license import License, LicenseSeat
from inventory_kernel.models.reference import AssetModel, Location, StatusLabel, User

__all__ = [
    "Accessory",
    "AccessoryCheckout",
    "Asset",
    "AssetModel",
    "License",
    "LicenseSeat",
    "Location",
    "StatusLabel",
    "User",
]
