"""
Inventory Kernel

Assignment and license-seat allocation engine for an IT inventory:
- Assets assigned to exactly one user, location or custodian asset
- License seat pools reconciled against declared seat counts
- Typed results for every business-rule rejection
- Audit stamping and soft delete on every mutation
"""

__version__ = "0.1.0"
