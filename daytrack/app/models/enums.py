"""
Driver dashboard enumerations.

Stop/delivery classifications and the time-range containment policy.
"""

import enum


class JobStatus(str, enum.Enum):
    """Job history statuses that produce a stop."""
    IN_TRANSIT = "in transit"
    ORDER_DELIVERED = "order delivered"


class StopType(str, enum.Enum):
    """Stop classification."""
    PICKUP = "pickup"  # Job picked up ("in transit")
    DELIVERED = "delivered"  # Job delivered ("order delivered")
    DELIVERY = "delivery"  # GPS cluster classified as a delivery
    BREAK = "break"  # GPS cluster classified as a break
    UNKNOWN = "unknown"


class DeliveryStatus(str, enum.Enum):
    """Delivery outcome."""
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"
    PICKUP = "pickup"
    DELIVERED = "delivered"


class StopContainmentPolicy(str, enum.Enum):
    """
    How stops are matched against a time range.

    Policies:
        ARRIVAL_ONLY: arrival time falls inside the range
        FULLY_CONTAINED: arrival >= start and departure <= end
    """
    ARRIVAL_ONLY = "arrival_only"
    FULLY_CONTAINED = "fully_contained"
