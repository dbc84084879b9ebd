"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SERVICE_RATE = 0.10
DEFAULT_TAX_RATE = 0.10

# Shared percentages must add up to 100 within this band.
SHARE_PERCENT_TOLERANCE = 0.01

# Minor currency units tolerated when reconciling totals and payments.
CONSISTENCY_TOLERANCE = 1
