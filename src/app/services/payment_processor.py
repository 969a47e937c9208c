"""Charge/Refund Processor Interface

The external card/bank processor is opaque to the ledger. It is eventually
consistent and fallible: calls may fail outright or time out with the
outcome unknown.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel


class PaymentProcessorError(Exception):
    """The processor rejected the request (declined card, bad instrument, API error)"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class PaymentProcessorTimeout(PaymentProcessorError):
    """No answer from the processor; the operation may or may not have happened"""


class ChargeStatus:
    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    REQUIRES_ACTION = "requires_action"
    CANCELED = "canceled"
    FAILED = "failed"


class ChargeResult(BaseModel):
    id: str
    status: str
    charge_ref: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None


class RefundResult(BaseModel):
    id: str
    status: str


class PaymentProcessor(ABC):
    name: str = "processor"

    @abstractmethod
    async def create_customer(
        self, email: Optional[str], name: str, metadata: Optional[Dict[str, str]] = None
    ) -> str:
        """Create a customer at the processor and return its id"""
        pass

    @abstractmethod
    async def attach_instrument(self, customer_id: str, instrument_ref: str) -> None:
        """Attach a card or bank account token to a customer"""
        pass

    @abstractmethod
    async def create_charge(
        self,
        amount: Decimal,
        currency: str,
        instrument_ref: str,
        customer_id: str,
        metadata: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> ChargeResult:
        """
        Charge an instrument

        Args:
            amount: Amount in currency units (not cents)
            currency: ISO 4217 code
            instrument_ref: Card or bank account token
            customer_id: Processor customer id
            metadata: Key/value pairs stored with the charge
            idempotency_key: Replays with the same key never charge twice

        Raises:
            PaymentProcessorTimeout: outcome unknown
            PaymentProcessorError: charge rejected
        """
        pass

    @abstractmethod
    async def retrieve_charge(self, charge_id: str) -> ChargeResult:
        pass

    @abstractmethod
    async def find_charge_by_reference(self, reference: str) -> Optional[ChargeResult]:
        """Look up a charge by the local payment id stored in its metadata"""
        pass

    @abstractmethod
    async def create_refund(
        self,
        charge_ref: str,
        amount: Decimal,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> RefundResult:
        pass

    @abstractmethod
    async def retrieve_refund(self, refund_id: str) -> RefundResult:
        pass

    @abstractmethod
    async def find_refund_by_reference(self, charge_ref: str, reference: str) -> Optional[RefundResult]:
        """Look up a refund on a charge by the local refund id stored in its metadata"""
        pass
