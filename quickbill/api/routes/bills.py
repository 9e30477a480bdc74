"""Bill endpoints."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError

from quickbill.api.dependencies import get_pdf_renderer, get_storage
from quickbill.application.dto.requests import SaveBillRequest
from quickbill.application.dto.responses import (
    BillListResponse,
    BillResponse,
    ErrorResponse,
    NextNumberResponse,
    StorageStatusResponse,
)
from quickbill.config import get_logger
from quickbill.core.entities.bill import BillRecord, normalize_sequence_number
from quickbill.core.exceptions import BillNotFoundError, ValidationError
from quickbill.core.services.storage_orchestrator import BillStorageOrchestrator
from quickbill.infrastructure.pdf import IBillPdfRenderer, pdf_filename

logger = get_logger(__name__)

router = APIRouter(prefix="/api/bills", tags=["bills"])


async def _find_bill(storage: BillStorageOrchestrator, s_no: str) -> BillRecord:
    s_no = normalize_sequence_number(s_no)
    for record in await storage.fetch_all():
        if record.s_no == s_no:
            return record
    raise BillNotFoundError(s_no)


@router.get("", response_model=BillListResponse)
async def list_bills(
    customer: str | None = Query(default=None, description="Exact customer name, any case"),
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> BillListResponse:
    """List saved bills, newest first."""
    if customer:
        records = await storage.fetch_by_customer(customer)
    else:
        records = await storage.fetch_all()

    return BillListResponse(
        bills=[BillResponse.from_record(r) for r in records],
        total=len(records),
        storage=StorageStatusResponse.from_orchestrator(storage),
    )


@router.get("/next-number", response_model=NextNumberResponse)
async def next_number(
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> NextNumberResponse:
    """Next free bill number."""
    return NextNumberResponse(s_no=await storage.next_sequence_number())


@router.get(
    "/{s_no}",
    response_model=BillResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_bill(
    s_no: str,
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> BillResponse:
    """Get a saved bill by number."""
    return BillResponse.from_record(await _find_bill(storage, s_no))


@router.put(
    "/{s_no}",
    response_model=BillResponse,
    responses={
        400: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def save_bill(
    s_no: str,
    request: SaveBillRequest,
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> BillResponse:
    """Create or overwrite the bill stored under s_no."""
    try:
        record = request.to_record(s_no)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "body"
        raise ValidationError(field, error["msg"]) from e

    saved = await storage.save_record(record)
    return BillResponse.from_record(saved)


@router.delete(
    "/{s_no}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={503: {"model": ErrorResponse}},
)
async def delete_bill(
    s_no: str,
    storage: BillStorageOrchestrator = Depends(get_storage),
) -> Response:
    """Delete a bill. Deleting a missing bill succeeds."""
    await storage.delete_record(s_no)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{s_no}/pdf",
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"model": ErrorResponse},
    },
)
async def download_bill_pdf(
    s_no: str,
    storage: BillStorageOrchestrator = Depends(get_storage),
    renderer: IBillPdfRenderer = Depends(get_pdf_renderer),
) -> Response:
    """Printable bill as PDF."""
    record = await _find_bill(storage, s_no)
    pdf_bytes = renderer.render(record)
    logger.info("bill_pdf_generated", s_no=record.s_no, size=len(pdf_bytes))

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(record)}"'},
    )
