"""Typed exceptions raised by job-layer workflows."""


class CycleAbortError(RuntimeError):
    """Raised inside a poll cycle when a job outcome cannot be processed.

    Attributes:
        target_key: Target being processed, when known.
    """

    def __init__(self, message: str, target_key: str | None = None):
        super().__init__(message)
        self.target_key = target_key
