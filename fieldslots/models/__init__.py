from fieldslots.models.field import Field
from fieldslots.models.booking import Booking
from fieldslots.models.subscription import Subscription

__all__ = ["Field", "Booking", "Subscription"]
