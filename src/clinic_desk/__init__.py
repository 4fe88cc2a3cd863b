"""
clinic-desk: walk-in clinic front desk.

Provides:
- Patient registration with reuse of existing records
- A daily patient queue driven by a guarded status graph
- Consultation sessions and priced treatment items
- Tier-aware price resolution with base-price fallback
- Dispensary invoicing backed by a persisted payment ledger
"""

__version__ = "0.1.0"
