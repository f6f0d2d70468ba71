"""Conversion, template and conversion record endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import (
    get_archive_template_use_case,
    get_conversion_record_use_case,
    get_create_template_use_case,
    get_execute_conversion_use_case,
    get_get_template_use_case,
    get_list_conversion_records_use_case,
    get_list_templates_use_case,
)
from stockledger.application.dto.requests import (
    CreateTemplateRequest,
    ExecuteConversionRequest,
    ListTemplatesRequest,
)
from stockledger.application.dto.responses import (
    ConversionRecordListResponse,
    ConversionRecordResponse,
    Envelope,
    TemplateResponse,
)
from stockledger.application.use_cases import (
    ArchiveTemplateUseCase,
    CreateTemplateUseCase,
    ExecuteConversionUseCase,
    GetConversionRecordUseCase,
    GetTemplateUseCase,
    ListConversionRecordsUseCase,
    ListTemplatesUseCase,
)
from stockledger.core.entities.conversion import TemplateStatus

router = APIRouter(prefix="/api/conversions", tags=["conversions"])


@router.post(
    "",
    response_model=Envelope[ConversionRecordResponse],
    status_code=status.HTTP_201_CREATED,
)
async def execute_conversion(
    request: ExecuteConversionRequest,
    use_case: ExecuteConversionUseCase = Depends(get_execute_conversion_use_case),
) -> Envelope[ConversionRecordResponse]:
    """
    Convert inputs into outputs atomically.

    Any shortage rejects the whole conversion with INSUFFICIENT_STOCK.
    """
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("", response_model=Envelope[ConversionRecordListResponse])
async def list_conversion_records(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListConversionRecordsUseCase = Depends(get_list_conversion_records_use_case),
) -> Envelope[ConversionRecordListResponse]:
    return Envelope.ok(await use_case.execute(limit, offset))


# --- Templates ---


@router.post(
    "/templates",
    response_model=Envelope[TemplateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    request: CreateTemplateRequest,
    use_case: CreateTemplateUseCase = Depends(get_create_template_use_case),
) -> Envelope[TemplateResponse]:
    result = await use_case.execute(request)
    return Envelope.ok(use_case.to_response(result))


@router.get("/templates", response_model=Envelope[list[TemplateResponse]])
async def list_templates(
    template_status: TemplateStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListTemplatesUseCase = Depends(get_list_templates_use_case),
) -> Envelope[list[TemplateResponse]]:
    result = await use_case.execute(
        ListTemplatesRequest(status=template_status, limit=limit, offset=offset)
    )
    return Envelope.ok(use_case.to_response(result))


@router.get("/templates/{template_id}", response_model=Envelope[TemplateResponse])
async def get_template(
    template_id: int,
    use_case: GetTemplateUseCase = Depends(get_get_template_use_case),
) -> Envelope[TemplateResponse]:
    result = await use_case.execute(template_id)
    return Envelope.ok(use_case.to_response(result))


@router.post("/templates/{template_id}/archive", response_model=Envelope[TemplateResponse])
async def archive_template(
    template_id: int,
    use_case: ArchiveTemplateUseCase = Depends(get_archive_template_use_case),
) -> Envelope[TemplateResponse]:
    """Archive a template; archived templates cannot be produced."""
    result = await use_case.execute(template_id)
    return Envelope.ok(use_case.to_response(result))


@router.get("/{reference}", response_model=Envelope[ConversionRecordResponse])
async def get_conversion_record(
    reference: str,
    use_case: GetConversionRecordUseCase = Depends(get_conversion_record_use_case),
) -> Envelope[ConversionRecordResponse]:
    result = await use_case.execute(reference)
    return Envelope.ok(use_case.to_response(result))
