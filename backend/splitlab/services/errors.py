"""Domain errors raised by the experiment services.

Each error carries a ``kind`` and a human-readable ``message`` so the API layer
can render a response without inspecting the exception type further.
"""


class SplitLabError(Exception):
    """Base class for expected and unexpected service failures."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SplitLabError):
    """Missing or malformed input (wrong variation count, bad type, bad weight)."""

    kind = "validation_error"


class NotFoundError(SplitLabError):
    """Experiment or variation does not exist, or the variation belongs elsewhere."""

    kind = "not_found"


class ConflictError(SplitLabError):
    """An experiment already has a variation of the requested type."""

    kind = "conflict"


class PersistenceError(SplitLabError):
    """Store unavailable or a constraint violation with no better classification."""

    kind = "persistence_error"
