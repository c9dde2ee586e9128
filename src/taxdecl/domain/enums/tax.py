from enum import Enum


class TaxType(str, Enum):
    """Tax a declaration reports on. Values mirror the DGII form codes."""

    INCOME = "INCOME"
    VALUE_ADDED = "VALUE_ADDED"
    EXCISE = "EXCISE"

    @property
    def code(self) -> int:
        return _TAX_TYPE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "TaxType":
        for tax_type, value in _TAX_TYPE_CODES.items():
            if value == code:
                return tax_type
        raise ValueError(f"Unknown tax type code: {code}")


_TAX_TYPE_CODES = {
    TaxType.INCOME: 1,
    TaxType.VALUE_ADDED: 2,
    TaxType.EXCISE: 3,
}
