"""
Rusunawa Analytics - occupancy and revenue reconciliation engine
for the dormitory administration dashboard.
"""
__version__ = "1.0.0"
