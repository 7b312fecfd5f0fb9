"""Store-level exceptions."""


class StoreError(Exception):
    """
    An operation against the underlying database failed.

    The session was rolled back before this was raised, so the
    store is in the state it was in before the failed call.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store operation '{operation}' failed")
