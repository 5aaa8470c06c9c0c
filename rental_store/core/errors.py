# rental_store/core/errors.py


class PersistenceError(Exception):
    """
    A durable-slot write (or read) did not complete.

    Carried inside cart write results instead of being raised, so the
    caller can warn the shopper that the cart may not survive a reload.
    """

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Could not persist slot '{key}': {reason}")
