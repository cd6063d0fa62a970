"""Typed errors raised by the booking core."""


class BookingError(Exception):
    """Base class for every error the booking core raises."""

    default_message = "Booking operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    """Malformed or missing input."""

    default_message = "Validation error"


class NotFoundError(BookingError):
    """Referenced room type or booking does not exist."""

    default_message = "Not found"


class CapacityError(BookingError):
    """Guest count exceeds the room type's maximum occupancy."""

    default_message = "Number of guests exceeds room capacity"


class AvailabilityError(BookingError):
    """No units of the room type are free for the requested window."""

    default_message = "No rooms available for the selected dates"

    def __init__(self, message=None, *, total_rooms=0, booked_rooms=0):
        super().__init__(message)
        self.total_rooms = total_rooms
        self.booked_rooms = booked_rooms
        self.available_rooms = 0


class AlreadyCancelledError(BookingError):
    default_message = "Booking is already cancelled"


class ConflictError(BookingError):
    """Uniqueness violation, e.g. a duplicate room type name."""

    default_message = "Room type with this name already exists"


class DependencyError(BookingError):
    """The persistence layer is unreachable or failed."""

    default_message = "Persistence layer failure"
