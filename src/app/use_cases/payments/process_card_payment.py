"""ProcessCardPayment Use Case"""

from libs.result import Result
from src.app.services.payment_processor import ChargeResult, ChargeStatus
from src.domain.payment import PaymentMethod, PaymentStatus
from .processor_payment import ProcessorPayment
from .dtos import ProcessCardPaymentCommandDTO, PaymentAllocationResponseDTO


class ProcessCardPayment(ProcessorPayment):
    """
    Use Case: Charge a card for an invoice

    succeeded -> completed; canceled/failed -> failed; anything else
    (processing, requires_action) -> processing. The card is attached to the
    client's processor customer only when save_card is set.
    """

    payment_method = PaymentMethod.CARD
    operation = "PROCESS_CARD_PAYMENT"

    def status_for(self, charge: ChargeResult) -> PaymentStatus:
        if charge.status == ChargeStatus.SUCCEEDED:
            return PaymentStatus.COMPLETED
        if charge.status in (ChargeStatus.CANCELED, ChargeStatus.FAILED):
            return PaymentStatus.FAILED
        return PaymentStatus.PROCESSING

    async def execute(self, command: ProcessCardPaymentCommandDTO) -> Result[PaymentAllocationResponseDTO]:
        return await self._process(
            account_id=command.account_id,
            invoice_id=command.invoice_id,
            amount=command.amount,
            instrument_ref=command.payment_method_token,
            attach_instrument=command.save_card,
            notes=command.notes,
            created_by=command.created_by,
        )
