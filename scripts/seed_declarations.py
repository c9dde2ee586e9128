"""Seed demo declarations into the database.

Usage:
    PYTHONPATH=src python scripts/seed_declarations.py

Idempotent: safe to run multiple times. Skips taxpayer/period/tax type
combinations that already have a live declaration. Files the older drafts so
the dataset has both on-time and late filings.
"""

import asyncio
import logging
import sys
from datetime import date

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("seed_declarations")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

DECLARATIONS = [
    {
        "taxpayer_id": "101123456",
        "legal_name": "Comercial Las Americas SRL",
        "period": date(2025, 1, 1),
        "tax_type": "INCOME",
        "income_amount": "1000000",
        "expense_amount": "200000",
        "file": True,
    },
    {
        "taxpayer_id": "101123456",
        "legal_name": "Comercial Las Americas SRL",
        "period": date(2025, 1, 1),
        "tax_type": "VALUE_ADDED",
        "income_amount": "100000",
        "expense_amount": "30000",
        "file": True,
    },
    {
        "taxpayer_id": "130987654",
        "legal_name": "Destileria del Cibao SA",
        "period": date(2025, 6, 1),
        "tax_type": "EXCISE",
        "income_amount": "250000",
        "expense_amount": "40000",
        "file": False,
    },
]


async def seed() -> None:
    from taxdecl.config import settings
    from taxdecl.db.session import build_engine, build_session_factory
    from taxdecl.domain.enums import TaxType
    from taxdecl.exceptions import DuplicatePeriodError
    from taxdecl.services.declaration_service import DeclarationService

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)

    created = 0
    async with session_factory() as session:
        service = DeclarationService(session, max_filing_number_attempts=settings.filing_number_max_attempts)
        for row in DECLARATIONS:
            try:
                declaration = await service.create_declaration(
                    taxpayer_id=row["taxpayer_id"],
                    legal_name=row["legal_name"],
                    period=row["period"],
                    tax_type=TaxType(row["tax_type"]),
                    income_amount=row["income_amount"],
                    expense_amount=row["expense_amount"],
                )
            except DuplicatePeriodError as exc:
                logger.info("Skipping: %s", exc.message)
                continue
            if row["file"]:
                declaration = await service.file_declaration(declaration.id)
            await session.commit()
            created += 1
            logger.info(
                "%s %s %s total payable %s",
                declaration.filing_number, declaration.tax_type.value,
                declaration.status.value, declaration.total_payable,
            )

    await engine.dispose()
    logger.info("Seeded %d declaration(s)", created)


if __name__ == "__main__":
    try:
        asyncio.run(seed())
    except KeyboardInterrupt:
        sys.exit(1)
