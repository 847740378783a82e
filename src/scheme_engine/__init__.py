"""
Scheme Engine

Promotion and scheme calculation for sales-force order entry:
- Eligibility filtering of active schemes for an outlet and cart
- Benefit evaluation for slab, buy-x-get-y, combo, value/bill-wise and display schemes
- Deterministic conflict resolution, caps and auditable totals
- Claim records and scheme counter recompute
"""

__version__ = "1.0.0"
__author__ = "Scheme Engine"
