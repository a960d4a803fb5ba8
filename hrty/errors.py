"""Exception hierarchy for the alerting core."""


class HrtyError(Exception):
    """Base class for errors raised by the alerting core."""


class LedgerEntryNotFoundError(HrtyError, KeyError):
    """Raised when acknowledging an entry id the ledger has never recorded."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"No ledger entry with id {entry_id!r}")
        self.entry_id = entry_id
