"""ProcessBankPayment Use Case"""

from libs.result import Result
from src.app.services.payment_processor import ChargeResult, ChargeStatus
from src.domain.payment import PaymentMethod, PaymentStatus
from .processor_payment import ProcessorPayment
from .dtos import ProcessBankPaymentCommandDTO, PaymentAllocationResponseDTO


class ProcessBankPayment(ProcessorPayment):
    """
    Use Case: Debit a bank account for an invoice

    Bank debits clear days later, so an accepted debit is always stored as
    processing and only counts once the reconciler sees it succeed. The bank
    account is always attached to the processor customer.
    """

    payment_method = PaymentMethod.BANK
    operation = "PROCESS_BANK_PAYMENT"

    def status_for(self, charge: ChargeResult) -> PaymentStatus:
        if charge.status in (ChargeStatus.CANCELED, ChargeStatus.FAILED):
            return PaymentStatus.FAILED
        return PaymentStatus.PROCESSING

    async def execute(self, command: ProcessBankPaymentCommandDTO) -> Result[PaymentAllocationResponseDTO]:
        return await self._process(
            account_id=command.account_id,
            invoice_id=command.invoice_id,
            amount=command.amount,
            instrument_ref=command.bank_account_token,
            attach_instrument=True,
            notes=command.notes,
            created_by=command.created_by,
        )
