from fieldslots.schemas.availability import (
    AvailabilityResponse, SlotResponse, DaySlotsResponse, ReservedDateResponse,
)
from fieldslots.schemas.booking import BookingResponse, BookingStatusUpdate
from fieldslots.schemas.subscription import (
    SubscriptionCreate, SubscriptionResponse, SubscriptionCreateResponse, SubscriptionCancelResponse,
    ConflictCheckRequest, ConflictCheckResponse, ConflictingDateResponse,
)
from fieldslots.schemas.reconciliation import ReconciliationSummaryResponse

__all__ = [
    "AvailabilityResponse", "SlotResponse", "DaySlotsResponse", "ReservedDateResponse",
    "BookingResponse", "BookingStatusUpdate",
    "SubscriptionCreate", "SubscriptionResponse", "SubscriptionCreateResponse", "SubscriptionCancelResponse",
    "ConflictCheckRequest", "ConflictCheckResponse", "ConflictingDateResponse",
    "ReconciliationSummaryResponse",
]
