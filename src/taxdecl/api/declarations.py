import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taxdecl.api.deps import get_db, get_declaration_service
from taxdecl.api.schemas.declarations import (
    DeclarationCreateRequest,
    DeclarationListResponse,
    DeclarationRejectRequest,
    DeclarationResponse,
    DeclarationSummary,
    DeclarationUpdateRequest,
)
from taxdecl.config import settings
from taxdecl.services.declaration_service import DeclarationService, clamp_pagination

router = APIRouter(prefix="/api/declarations", tags=["declarations"])

DbDep = Annotated[AsyncSession, Depends(get_db)]
ServiceDep = Annotated[DeclarationService, Depends(get_declaration_service)]


@router.post("", response_model=DeclarationResponse, status_code=status.HTTP_201_CREATED)
async def create_declaration(body: DeclarationCreateRequest, service: ServiceDep, db: DbDep) -> DeclarationResponse:
    """Open a new draft declaration."""
    declaration = await service.create_declaration(
        taxpayer_id=body.taxpayer_id,
        legal_name=body.legal_name,
        period=body.period,
        tax_type=body.tax_type,
        income_amount=body.income_amount,
        expense_amount=body.expense_amount,
    )
    await db.commit()
    return DeclarationResponse.model_validate(declaration)


@router.get("/number/{filing_number}", response_model=DeclarationResponse)
async def get_declaration_by_number(filing_number: str, service: ServiceDep) -> DeclarationResponse:
    declaration = await service.get_by_filing_number(filing_number)
    return DeclarationResponse.model_validate(declaration)


@router.get("/taxpayer/{taxpayer_id}", response_model=DeclarationListResponse)
async def list_taxpayer_declarations(
    taxpayer_id: str,
    service: ServiceDep,
    page: int = Query(1),
    page_size: int = Query(settings.default_page_size),
) -> DeclarationListResponse:
    """Declarations of one taxpayer, newest first."""
    page, page_size = clamp_pagination(
        page, page_size, default_size=settings.default_page_size, max_size=settings.max_page_size,
    )
    result = await service.list_by_taxpayer(taxpayer_id, page, page_size)
    return DeclarationListResponse(
        items=[DeclarationSummary.model_validate(d) for d in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/{declaration_id}", response_model=DeclarationResponse)
async def get_declaration(declaration_id: uuid.UUID, service: ServiceDep) -> DeclarationResponse:
    declaration = await service.get_declaration(declaration_id)
    return DeclarationResponse.model_validate(declaration)


@router.put("/{declaration_id}", response_model=DeclarationResponse)
async def update_declaration(
    declaration_id: uuid.UUID, body: DeclarationUpdateRequest, service: ServiceDep, db: DbDep,
) -> DeclarationResponse:
    """Replace income and expenses of a draft; tax is recomputed."""
    declaration = await service.update_amounts(declaration_id, body.income_amount, body.expense_amount)
    await db.commit()
    return DeclarationResponse.model_validate(declaration)


@router.post("/{declaration_id}/file", response_model=DeclarationResponse)
async def file_declaration(declaration_id: uuid.UUID, service: ServiceDep, db: DbDep) -> DeclarationResponse:
    """Present a draft. Late filings carry their penalty in the response."""
    declaration = await service.file_declaration(declaration_id)
    await db.commit()
    return DeclarationResponse.model_validate(declaration)


@router.post("/{declaration_id}/approve", response_model=DeclarationResponse)
async def approve_declaration(declaration_id: uuid.UUID, service: ServiceDep, db: DbDep) -> DeclarationResponse:
    declaration = await service.approve_declaration(declaration_id)
    await db.commit()
    return DeclarationResponse.model_validate(declaration)


@router.post("/{declaration_id}/reject", response_model=DeclarationResponse)
async def reject_declaration(
    declaration_id: uuid.UUID, body: DeclarationRejectRequest, service: ServiceDep, db: DbDep,
) -> DeclarationResponse:
    declaration = await service.reject_declaration(declaration_id, body.remarks)
    await db.commit()
    return DeclarationResponse.model_validate(declaration)
