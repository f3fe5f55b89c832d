"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

BARCODE_LENGTH = 16
DEFAULT_REFRESH_COOLDOWN_SECONDS = 30
DEFAULT_TRACKING_MAX_WORKERS = 8
DEFAULT_CARRIER_SLUG = "evri"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
