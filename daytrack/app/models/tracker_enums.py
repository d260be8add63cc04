"""
Baby tracker enumerations.
"""

import enum


class ActivityType(str, enum.Enum):
    """Activity type enumeration."""
    SLEEP = "sleep"
    FEED = "feed"
    DIAPER = "diaper"
    NOTE = "note"


class FeedType(str, enum.Enum):
    """Feed type enumeration."""
    BREAST = "breast"
    BOTTLE = "bottle"


class DiaperType(str, enum.Enum):
    """Diaper type enumeration."""
    WET = "wet"
    DIRTY = "dirty"
    BOTH = "both"  # Counted towards both the wet and the dirty totals
