from taxdecl.db.models.declaration import DeclarationRecord

__all__ = [
    "DeclarationRecord",
]
