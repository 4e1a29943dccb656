"""Shared GPU status constants and helpers."""

STATUS_AVAILABLE = "available"
STATUS_MISSING = "missing"
STATUS_IN_USE = "in-use"
STATUS_LOANED_OUT = "loaned-out"

# Order matters: it is echoed back to clients as ``validStatuses``.
STATUS_CHOICES = (
    STATUS_AVAILABLE,
    STATUS_MISSING,
    STATUS_IN_USE,
    STATUS_LOANED_OUT,
)

DEFAULT_STATUS = STATUS_AVAILABLE


def is_valid_status(value: object) -> bool:
    """Return True when ``value`` is one of the known status strings."""

    return isinstance(value, str) and value in STATUS_CHOICES


__all__ = [
    "DEFAULT_STATUS",
    "STATUS_AVAILABLE",
    "STATUS_CHOICES",
    "STATUS_IN_USE",
    "STATUS_LOANED_OUT",
    "STATUS_MISSING",
    "is_valid_status",
]
