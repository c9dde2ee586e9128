"""Error taxonomy shared by the domain, service and API layers."""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATE = "INVALID_STATE"
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_PERIOD = "DUPLICATE_PERIOD"
    CONFLICT = "CONFLICT"


class DeclarationError(Exception):
    """Base class. The API maps ``kind`` to a response status."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(DeclarationError):
    """Malformed or out-of-range input to a declaration operation."""

    kind = ErrorKind.INVALID_INPUT


class InvalidStateError(DeclarationError):
    """Operation not allowed in the current state, or filing pre-validation failed."""

    kind = ErrorKind.INVALID_STATE


class DeclarationNotFoundError(DeclarationError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, reference: object) -> None:
        super().__init__(f"Declaration {reference} not found")
        self.reference = reference


class DuplicatePeriodError(DeclarationError):
    kind = ErrorKind.DUPLICATE_PERIOD

    def __init__(self, taxpayer_id: str, period: object, tax_type: object) -> None:
        super().__init__(
            f"A declaration already exists for taxpayer {taxpayer_id} in period {period} ({tax_type})"
        )
        self.taxpayer_id = taxpayer_id
        self.period = period
        self.tax_type = tax_type


class ConcurrentModificationError(DeclarationError):
    """The stored declaration changed since it was read."""

    kind = ErrorKind.CONFLICT


class FilingNumberCollisionError(DeclarationError):
    """Generated filing number is already taken. Retried by the service."""

    kind = ErrorKind.CONFLICT

    def __init__(self, filing_number: str) -> None:
        super().__init__(f"Filing number {filing_number} already in use")
        self.filing_number = filing_number
