"""Shared flow for processor-backed (card and bank) payments"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return
from src.app.errors import (
    ExternalProcessorError,
    LedgerError,
    NotFoundError,
    unexpected_error,
)
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.sequence_generator import SequenceGenerator
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import (
    ChargeResult,
    PaymentProcessor,
    PaymentProcessorError,
    PaymentProcessorTimeout,
)
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.use_cases.invoices.dtos import InvoiceResponseDTO
from src.domain.base import round_money
from src.domain.client import Client
from src.domain.invoice import Invoice
from src.domain.payment import Payment, PaymentMethod, PaymentStatus
from src.domain.sequence import SequenceType
from .common import load_payable_invoice
from .dtos import PaymentAllocationResponseDTO, PaymentResponseDTO

logger = logging.getLogger(__name__)


class ProcessorPayment(ABC):
    """
    Base for payments charged through the external processor

    Business Rules:
    1. Same invoice checks as a manual payment (exists, payable, amount <= balance)
    2. The client's processor customer is created once and cached on the client
    3. The charge carries idempotency_key = local payment id, so a replay
       never charges twice
    4. Decline: payment kept as failed, error returned
    5. Timeout: payment kept as processing (never completed), error
       PROCESSOR_TIMEOUT; the payment reconciler settles it later
    6. Only completed payments move the invoice balance

    Flow:
    1. Lock invoice and validate amount
    2. Resolve processor customer (and attach the instrument when asked)
    3. Allocate payment number and insert the payment as pending
    4. Create the charge
    5. Store the outcome and recompute the invoice
    6. Commit transaction
    """

    payment_method: PaymentMethod = PaymentMethod.OTHER
    operation = "PROCESS_PAYMENT"

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        client_repo: ClientRepository,
        sequence_generator: SequenceGenerator,
        allocator: PaymentAllocator,
        processor: PaymentProcessor,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.client_repo = client_repo
        self.sequence_generator = sequence_generator
        self.allocator = allocator
        self.processor = processor

    @abstractmethod
    def status_for(self, charge: ChargeResult) -> PaymentStatus:
        pass

    async def _process(
        self,
        account_id: str,
        invoice_id: str,
        amount: Decimal,
        instrument_ref: str,
        attach_instrument: bool,
        notes: Optional[str],
        created_by: Optional[str],
    ) -> Result[PaymentAllocationResponseDTO]:
        try:
            # Step 1: Lock and validate
            invoice = await load_payable_invoice(self.invoice_repo, account_id, invoice_id, amount)

            # Step 2: Processor customer
            client = await self.client_repo.get_by_id(account_id, invoice.client_id)
            if not client:
                raise NotFoundError(
                    code="CLIENT_NOT_FOUND",
                    message=f"Client {invoice.client_id} not found",
                )
            customer_id = await self._resolve_customer(client)
            if attach_instrument:
                await self.processor.attach_instrument(customer_id, instrument_ref)

            # Step 3: Pending payment row; its id is the idempotency key
            payment_number = await self.sequence_generator.next_number(account_id, SequenceType.PAYMENT)
            payment = await self.payment_repo.create(
                Payment(
                    account_id=account_id,
                    client_id=invoice.client_id,
                    invoice_id=invoice.id,
                    payment_number=payment_number,
                    amount=round_money(amount),
                    currency=invoice.currency,
                    payment_method=self.payment_method,
                    payment_processor=self.processor.name,
                    status=PaymentStatus.PENDING,
                    notes=notes,
                    created_by=created_by,
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except PaymentProcessorError as e:
            await self.uow.rollback()
            logger.error(f"Processor rejected customer setup for invoice {invoice_id}: {e.message}")
            return Return.err(self._processor_error(e).to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to prepare {self.payment_method.value} payment on invoice {invoice_id}: {e}")
            return Return.err(unexpected_error(f"{self.operation}_FAILED", "Failed to process payment", e))

        # Step 4: Charge
        try:
            charge = await self.processor.create_charge(
                amount=payment.amount,
                currency=payment.currency,
                instrument_ref=instrument_ref,
                customer_id=customer_id,
                metadata={
                    "account_id": account_id,
                    "payment_id": payment.id,
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                },
                idempotency_key=payment.id,
            )
        except PaymentProcessorTimeout as e:
            return await self._keep_as(payment, invoice, PaymentStatus.PROCESSING, e)
        except PaymentProcessorError as e:
            return await self._keep_as(payment, invoice, PaymentStatus.FAILED, e)
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Charge for payment {payment.payment_number} failed unexpectedly: {e}")
            return Return.err(unexpected_error(f"{self.operation}_FAILED", "Failed to process payment", e))

        # Step 5-6: Outcome, allocation, commit
        try:
            status = self.status_for(charge)
            self._apply_charge(payment, charge, status)
            payment = await self.payment_repo.update(payment)

            if status == PaymentStatus.FAILED:
                await self.uow.commit()
                logger.warning(f"Charge {charge.id} for payment {payment.payment_number} ended {charge.status}")
                return Return.err(
                    ExternalProcessorError(
                        code="PAYMENT_DECLINED",
                        message="The payment was declined by the processor",
                        reason=f"charge {charge.id} status {charge.status}",
                    ).to_error()
                )

            invoice = await self.allocator.recompute(invoice)
            await self.uow.commit()

            logger.info(
                f"{self.payment_method.value.capitalize()} payment processed: {payment.payment_number} "
                f"status={payment.status.value} for invoice {invoice.invoice_number}"
            )

            return Return.ok(
                PaymentAllocationResponseDTO(
                    payment=PaymentResponseDTO.from_entity(payment),
                    invoice=InvoiceResponseDTO.from_entity(invoice),
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to store charge outcome for payment {payment.payment_number}: {e}")
            return Return.err(unexpected_error(f"{self.operation}_FAILED", "Failed to process payment", e))

    async def _resolve_customer(self, client: Client) -> str:
        if client.processor_customer_id:
            return client.processor_customer_id

        customer_id = await self.processor.create_customer(
            client.email,
            client.display_name,
            {"account_id": client.account_id, "client_id": client.id},
        )
        await self.client_repo.set_processor_customer_id(client, customer_id)
        logger.info(f"Processor customer {customer_id} created for client {client.id}")
        return customer_id

    @staticmethod
    def _apply_charge(payment: Payment, charge: ChargeResult, status: PaymentStatus) -> None:
        now = datetime.utcnow()
        payment.status = status
        payment.processor_payment_id = charge.id
        payment.processor_charge_id = charge.charge_ref
        payment.card_last4 = charge.card_last4
        payment.card_brand = charge.card_brand
        if status == PaymentStatus.COMPLETED:
            payment.settled_date = now
        payment.updated_at = now

    async def _keep_as(
        self, payment: Payment, invoice: Invoice, status: PaymentStatus, exc: PaymentProcessorError
    ) -> Result[PaymentAllocationResponseDTO]:
        """Persist a declined (failed) or timed out (processing) payment and report the error"""
        try:
            payment.status = status
            payment.updated_at = datetime.utcnow()
            await self.payment_repo.update(payment)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to store {status.value} payment {payment.payment_number}: {e}")
            return Return.err(unexpected_error(f"{self.operation}_FAILED", "Failed to process payment", e))

        if status == PaymentStatus.PROCESSING:
            logger.error(
                f"Processor timed out charging payment {payment.payment_number} "
                f"(invoice {invoice.invoice_number}); left processing for reconciliation"
            )
        else:
            logger.warning(f"Payment {payment.payment_number} declined: {exc.message}")

        return Return.err(self._processor_error(exc).to_error())

    @staticmethod
    def _processor_error(exc: PaymentProcessorError) -> ExternalProcessorError:
        if isinstance(exc, PaymentProcessorTimeout):
            return ExternalProcessorError(
                code="PROCESSOR_TIMEOUT",
                message="The payment processor did not answer in time",
                reason=exc.message,
            )
        return ExternalProcessorError(
            code="PAYMENT_DECLINED",
            message="The payment was declined by the processor",
            reason=exc.message,
        )
