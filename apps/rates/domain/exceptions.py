class RatesError(Exception):
    """Base class for exchange rate cache errors."""


class ReconciliationError(RatesError):
    """A fetched snapshot could not be written to the store. Nothing was applied."""

    def __init__(self, base_code: str, cause: Exception):
        self.base_code = base_code
        self.cause = cause
        super().__init__(f"Failed to reconcile rates for {base_code}: {cause}")
