# Overview: Domain errors raised by services and translated to HTTP status codes by routes.


class NotFoundError(LookupError):
    """404: entity missing or not owned by the caller."""


class InsufficientBalanceError(ValueError):
    """400: debit exceeds the user's balance. Nothing is written."""

    def __init__(self, balance, required):
        self.balance = balance
        self.required = required
        super().__init__("Insufficient balance")
