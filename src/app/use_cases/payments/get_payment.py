"""GetPayment Use Case"""

from libs.result import Result, Return
from src.app.errors import LedgerError
from src.app.repositories.payment_repository import PaymentRepository
from .common import load_payment
from .dtos import PaymentReferenceDTO, PaymentResponseDTO


class GetPayment:
    """Use case: fetch one payment of an account"""

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, query: PaymentReferenceDTO) -> Result[PaymentResponseDTO]:
        try:
            payment = await load_payment(self.payment_repo, query.account_id, query.payment_id)
        except LedgerError as e:
            return Return.err(e.to_error())

        return Return.ok(PaymentResponseDTO.from_entity(payment))
