# core/errors.py
from typing import Optional

NOT_APPLIED = "not_applied"
UNCERTAIN = "uncertain"


class LedgerError(Exception):
    """Base class for every failure the ledger reports to its callers."""

    kind = "ledger_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(LedgerError):
    """Input rejected before anything was written."""

    kind = "validation_error"


class NotFoundError(LedgerError):
    kind = "not_found"

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} '{identifier}' does not exist")
        self.entity = entity
        self.identifier = identifier


class ReferentialIntegrityError(LedgerError):
    """The write would point at a patient, treatment or lab-work order that does not exist."""

    kind = "referential_integrity_error"


class LedgerIOError(LedgerError):
    """
    The backing store could not be reached or did not answer in time.

    `outcome` tells the caller whether the request definitely did not take
    effect (`not_applied`) or may have been committed before the failure
    (`uncertain`). Financial writes with an uncertain outcome must be
    verified before they are retried.
    """

    kind = "io_error"

    def __init__(self, detail: str, outcome: str = NOT_APPLIED, cause: Optional[BaseException] = None):
        super().__init__(detail)
        self.outcome = outcome
        self.cause = cause
