"""Write-side services of the inventory kernel."""

from inventory_kernel.services.accessory_service import AccessoryInfo, AccessoryService
from inventory_kernel.services.asset_service import AssetInfo, AssetService, normalize_tag
from inventory_kernel.services.assignment_workflow import AssignmentWorkflow
from inventory_kernel.services.audit_ledger import AuditLedger
from inventory_kernel.services.license_service import LicenseInfo, LicenseService
from inventory_kernel.services.seat_pool import SeatPoolManager
from inventory_kernel.services.target_resolver import TargetResolver

__all__ = [
    "AccessoryInfo",
    "AccessoryService",
    "AssetInfo",
    "AssetService",
    "AssignmentWorkflow",
    "AuditLedger",
    "LicenseInfo",
    "LicenseService",
    "SeatPoolManager",
    "TargetResolver",
    "normalize_tag",
]
