class NotFoundException(Exception):
    def __init__(self, resource: str, identifier: str, status_code: int = 404):
        self.resource = resource
        self.identifier = identifier
        self.status_code = status_code

    def __str__(self):
        return f"{self.resource} '{self.identifier}' not found"


class InvalidDateRange(Exception):
    pass


class InvalidOccupancy(Exception):
    pass


class UnknownBedType(Exception):
    pass


class InvalidRating(Exception):
    pass


class RoomUnavailable(Exception):
    pass


class InvalidTransition(Exception):
    def __init__(self, booking_id: str, current: str, target: str):
        self.booking_id = booking_id
        self.current = current
        self.target = target

    def __str__(self):
        return f"booking '{self.booking_id}' cannot move from {self.current} to {self.target}"


class PaymentNotCompleted(Exception):
    pass


class ConcurrentUpdateError(Exception):
    """A conditional write lost against a concurrent writer."""


class ConcurrencyConflict(Exception):
    """Retries were exhausted; the caller may retry the whole operation."""
