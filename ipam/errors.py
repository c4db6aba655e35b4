class IPAMError(Exception):
    """Base class for every error raised by the allocation engine."""

    default_message = "IPAM error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class AddressSpaceError(IPAMError):
    """Raised by the address-at-offset arithmetic."""


class InvalidRangeError(AddressSpaceError):
    default_message = "Either start or subnet is required for an IP address range"


class AddressOverflowError(AddressSpaceError):
    default_message = "IP address overflow"


class OutOfBoundsError(AddressSpaceError):
    default_message = "IP address out of bounds"


class ExhaustedError(AddressSpaceError):
    default_message = "Exhausted IP Pools"


class ConflictError(IPAMError):
    default_message = "Requested IP address conflicts with the preallocated address"


class MisconfiguredError(IPAMError):
    default_message = "Preallocated IP address is not part of any range"


class UnavailableError(IPAMError):
    default_message = "Requested IP address is already allocated"


class TransientError(IPAMError):
    """Concurrent modification in the store; the whole pass must be retried."""

    default_message = "Object was modified concurrently, requeue"


class NotFoundError(IPAMError):
    default_message = "Object not found"


class InternalError(IPAMError):
    default_message = "Internal error"
