"""
Domain errors raised by the rule engine and the services built on it.
None of these are transient: callers should report them, not retry.
"""

from typing import Optional


class MoneyMapError(Exception):
    """Base class for all domain errors."""


class ValidationError(MoneyMapError):
    """An attribute fails a business rule (quantity, price, variant payload)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidTransactionError(MoneyMapError):
    """A transaction kind is not allowed for the asset's variant."""

    def __init__(self, transaction_type, asset_type):
        super().__init__(
            f"Transaction type {getattr(transaction_type, 'value', transaction_type)} "
            f"is not allowed for {getattr(asset_type, 'value', asset_type)} assets"
        )
        self.transaction_type = transaction_type
        self.asset_type = asset_type


class NotFoundError(MoneyMapError):
    """A referenced client, portfolio, asset or transaction does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found with id: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InconsistentStateError(MoneyMapError):
    """An aggregate is in a state where the requested computation cannot run."""
