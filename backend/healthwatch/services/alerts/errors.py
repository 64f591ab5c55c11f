class AlertPersistenceError(RuntimeError):
    """Alert store rejected a write for a reason other than the fingerprint constraint."""


class InvalidReadingError(ValueError):
    """Reading value does not match the shape required by its kind."""
