from taxdecl.db.repos.declaration_repo import DeclarationRepo

__all__ = ["DeclarationRepo"]
