from enum import Enum


class DeclarationStatus(str, Enum):
    """Declaration lifecycle state."""

    DRAFT = "DRAFT"
    FILED = "FILED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (DeclarationStatus.APPROVED, DeclarationStatus.REJECTED)
