from taxdecl.domain.enums.status import DeclarationStatus
from taxdecl.domain.enums.tax import TaxType

__all__ = [
    "DeclarationStatus",
    "TaxType",
]
