"""Invoice API Routes

FastAPI routes for the invoice ledger: create, edit, send, view, void,
delete, get and list.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.invoice_request import CreateInvoiceRequestSchema, UpdateInvoiceRequestSchema
from src.app.use_cases.invoices import (
    CreateInvoice,
    UpdateInvoice,
    SendInvoice,
    MarkInvoiceViewed,
    VoidInvoice,
    DeleteInvoice,
    GetInvoice,
    ListInvoices,
    CreateInvoiceCommandDTO,
    UpdateInvoiceCommandDTO,
    InvoiceReferenceDTO,
    ListInvoicesQueryDTO,
    InvoiceResponseDTO,
    InvoiceListResponseDTO,
)
from src.app.services.notification_service import NotificationService
from src.app.services.sequence_generator import SequenceGenerator
from src.adapter.repositories import (
    SqlAlchemyInvoiceRepository,
    SqlAlchemyInvoiceLineItemRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyJobRepository,
    SqlAlchemySequenceRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.invoice import InvoiceStatus
from src.depends import get_session, get_account_id, get_user_id, get_notification_service
from src.api.error import ClientError
from config import ApplicationConfig

router = APIRouter(prefix="/invoices", tags=["Invoices"])

ERROR_EXAMPLE = {
    "content": {
        "application/json": {
            "example": {"error": {"code": "INVOICE_NOT_FOUND", "message": "Invoice 123 not found"}}
        }
    }
}


@router.post(
    "",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Client or job not found", **ERROR_EXAMPLE}, 422: {"description": "Validation error"}},
)
async def create_invoice(
    request: CreateInvoiceRequestSchema,
    account_id: str = Depends(get_account_id),
    user_id: Optional[str] = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Create a draft invoice.

    Totals are computed from the line items: subtotal, tax on taxable items
    at `tax_rate`, minus `discount_amount`. The invoice number comes from the
    account's invoice sequence (INV-00001, INV-00002, ...).

    **Returns:**
    - 201: Invoice created in draft
    - 404: Client or job not found in the account
    - 422: Invalid request (e.g., discount larger than subtotal + tax)
    """
    use_case = CreateInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineItemRepository(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyJobRepository(session),
        SequenceGenerator(SqlAlchemySequenceRepository(session), ApplicationConfig.SEQUENCE_MAX_ATTEMPTS),
    )
    command = CreateInvoiceCommandDTO(
        account_id=account_id,
        created_by=user_id,
        **request.model_dump(),
    )

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=InvoiceListResponseDTO)
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    client_id: Optional[str] = None,
    overdue: bool = False,
    include_deleted: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    """List invoices of the account, newest first, with the total count for pagination."""
    use_case = ListInvoices(SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute(
        ListInvoicesQueryDTO(
            account_id=account_id,
            status=status_filter,
            client_id=client_id,
            overdue_only=overdue,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={404: {"description": "Invoice not found", **ERROR_EXAMPLE}},
)
async def get_invoice(
    invoice_id: str,
    include_deleted: bool = False,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = GetInvoice(SqlAlchemyInvoiceRepository(session), SqlAlchemyInvoiceLineItemRepository(session))
    result = await use_case.execute(
        InvoiceReferenceDTO(account_id=account_id, invoice_id=invoice_id, include_deleted=include_deleted)
    )
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={404: {"description": "Invoice not found", **ERROR_EXAMPLE}, 409: {"description": "Invoice is paid or void"}},
)
async def update_invoice(
    invoice_id: str,
    request: UpdateInvoiceRequestSchema,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Edit an open invoice.

    Supplying `line_items` replaces the whole set. Changing `tax_rate` or
    `discount_amount` alone recomputes totals from the stored line items.

    **Returns:**
    - 200: Updated invoice
    - 404: Invoice not found
    - 409: Invoice is paid or void
    - 422: Invalid request
    """
    use_case = UpdateInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineItemRepository(session),
    )
    command = UpdateInvoiceCommandDTO(
        account_id=account_id,
        invoice_id=invoice_id,
        **request.model_dump(exclude_unset=True),
    )

    result = await use_case.execute(command)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{invoice_id}/send",
    response_model=InvoiceResponseDTO,
    responses={404: {"description": "Invoice not found", **ERROR_EXAMPLE}, 409: {"description": "Invoice is paid or void"}},
)
async def send_invoice(
    invoice_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Mark the invoice sent and email it to the client (delivery is best effort)."""
    use_case = SendInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineItemRepository(session),
        SqlAlchemyClientRepository(session),
        notification_service,
    )
    result = await use_case.execute(InvoiceReferenceDTO(account_id=account_id, invoice_id=invoice_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{invoice_id}/view", response_model=InvoiceResponseDTO)
async def mark_invoice_viewed(
    invoice_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = MarkInvoiceViewed(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineItemRepository(session),
    )
    result = await use_case.execute(InvoiceReferenceDTO(account_id=account_id, invoice_id=invoice_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{invoice_id}/void",
    response_model=InvoiceResponseDTO,
    responses={409: {"description": "Invoice is paid, void or has payments"}},
)
async def void_invoice(
    invoice_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = VoidInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineItemRepository(session),
    )
    result = await use_case.execute(InvoiceReferenceDTO(account_id=account_id, invoice_id=invoice_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.delete(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={409: {"description": "Invoice is paid or has payments"}},
)
async def delete_invoice(
    invoice_id: str,
    account_id: str = Depends(get_account_id),
    session: AsyncSession = Depends(get_session),
):
    """Soft delete: the invoice is hidden from reads but its number stays allocated."""
    use_case = DeleteInvoice(SqlAlchemyUnitOfWork(session), SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute(InvoiceReferenceDTO(account_id=account_id, invoice_id=invoice_id))
    if result.is_err():
        raise ClientError(result.error)
    return result.value
