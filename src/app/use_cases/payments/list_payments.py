"""
List Payments Use Case

Paginated payment history for an account, newest first.
"""
from libs.result import Result, Return
from src.app.repositories.payment_repository import PaymentRepository
from .dtos import ListPaymentsQueryDTO, PaymentListResponseDTO, PaymentResponseDTO


class ListPayments:
    """Use case: list payments, optionally for one invoice or in one status"""

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, query: ListPaymentsQueryDTO) -> Result[PaymentListResponseDTO]:
        payments = await self.payment_repo.list(
            account_id=query.account_id,
            invoice_id=query.invoice_id,
            status=query.status,
            limit=query.limit,
            offset=query.offset,
        )
        total = await self.payment_repo.count(
            account_id=query.account_id,
            invoice_id=query.invoice_id,
            status=query.status,
        )

        return Return.ok(
            PaymentListResponseDTO(
                items=[PaymentResponseDTO.from_entity(payment) for payment in payments],
                total=total,
                limit=query.limit,
                offset=query.offset,
            )
        )
