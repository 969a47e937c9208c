"""Payment Reconciliation Background Worker

Polls the processor for payments left pending/processing (bank debits in
flight, charges that timed out) and for pending refunds, and settles them
on the ledger.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.database import create_engine
from src.adapter.repositories import (
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyRefundRepository,
)
from src.adapter.services.stripe_payment_processor import StripePaymentProcessor
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.payment_allocator import PaymentAllocator
from src.app.services.payment_processor import PaymentProcessor
from src.app.use_cases.payments import (
    ReconcilePayment,
    ReconcileRefund,
    PaymentReferenceDTO,
    RefundReferenceDTO,
)

logger = logging.getLogger(__name__)


class ReconciliationRunDTO(BaseModel):
    """Outcome of one reconciliation pass"""

    payments_checked: int = 0
    payments_resolved: int = 0
    refunds_checked: int = 0
    refunds_resolved: int = 0
    errors: int = 0


class PaymentReconcilerWorker:
    """
    Background worker for processor reconciliation

    Each payment and refund is reconciled in its own session so one failure
    does not roll back the others. Rows younger than the grace period are
    left alone; the request that created them may still be running.

    Usage:
        worker = PaymentReconcilerWorker()
        result = await worker.run_once()

        await worker.run_forever(interval_seconds=900)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        processor: Optional[PaymentProcessor] = None,
        session_factory=None,
        grace_seconds: Optional[int] = None,
        batch_size: int = 100,
    ):
        self.engine = None
        if session_factory is None:
            self.engine = create_engine(db_uri or ApplicationConfig.DB_URI)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.processor = processor or StripePaymentProcessor(
            secret_key=ApplicationConfig.STRIPE_SECRET_KEY,
            api_base=ApplicationConfig.STRIPE_API_BASE,
            timeout=ApplicationConfig.PROCESSOR_TIMEOUT_SECONDS,
        )
        self.grace_seconds = (
            ApplicationConfig.PAYMENT_RECONCILIATION_GRACE_SECONDS if grace_seconds is None else grace_seconds
        )
        self.batch_size = batch_size

        logger.info("PaymentReconcilerWorker initialized")

    def _allocator(self, session: AsyncSession) -> PaymentAllocator:
        return PaymentAllocator(
            SqlAlchemyInvoiceRepository(session),
            SqlAlchemyPaymentRepository(session),
            SqlAlchemyRefundRepository(session),
        )

    async def _reconcile_payment(self, payment_id: str) -> bool:
        async with self.async_session_factory() as session:
            use_case = ReconcilePayment(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
                allocator=self._allocator(session),
                processor=self.processor,
            )
            result = await use_case.execute(PaymentReferenceDTO(payment_id=payment_id))

        if result.is_err():
            logger.warning(f"Payment {payment_id} not reconciled: {result.error.code} {result.error.message}")
            raise RuntimeError(result.error.message)
        return result.value.payment.status not in ("pending", "processing")

    async def _reconcile_refund(self, refund_id: str) -> bool:
        async with self.async_session_factory() as session:
            use_case = ReconcileRefund(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
                refund_repo=SqlAlchemyRefundRepository(session),
                allocator=self._allocator(session),
                processor=self.processor,
            )
            result = await use_case.execute(RefundReferenceDTO(refund_id=refund_id))

        if result.is_err():
            logger.warning(f"Refund {refund_id} not reconciled: {result.error.code} {result.error.message}")
            raise RuntimeError(result.error.message)
        return result.value.status != "pending"

    async def run_once(self, now: Optional[datetime] = None) -> ReconciliationRunDTO:
        """Reconcile every unresolved payment and pending refund older than the grace period"""
        run = ReconciliationRunDTO()
        if not ApplicationConfig.PAYMENT_RECONCILIATION_ENABLED:
            logger.info("Payment reconciliation is disabled, skipping")
            return run

        cutoff = (now or datetime.utcnow()) - timedelta(seconds=self.grace_seconds)

        async with self.async_session_factory() as session:
            payments = await SqlAlchemyPaymentRepository(session).get_unresolved(cutoff, limit=self.batch_size)
            refunds = await SqlAlchemyRefundRepository(session).get_pending(cutoff, limit=self.batch_size)
            payment_ids = [p.id for p in payments]
            refund_ids = [r.id for r in refunds]

        for payment_id in payment_ids:
            run.payments_checked += 1
            try:
                if await self._reconcile_payment(payment_id):
                    run.payments_resolved += 1
            except Exception as e:
                run.errors += 1
                logger.error(f"Failed to reconcile payment {payment_id}: {e}")

        for refund_id in refund_ids:
            run.refunds_checked += 1
            try:
                if await self._reconcile_refund(refund_id):
                    run.refunds_resolved += 1
            except Exception as e:
                run.errors += 1
                logger.error(f"Failed to reconcile refund {refund_id}: {e}")

        if run.errors:
            logger.error(f"ALERT: {run.errors} payments/refunds could not be reconciled")

        return run

    async def run_forever(self, interval_seconds: int = 900):
        logger.info(f"Starting payment reconciliation with {interval_seconds}s interval")

        while True:
            try:
                run = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Resolved {run.payments_resolved}/{run.payments_checked} payments, "
                    f"{run.refunds_resolved}/{run.refunds_checked} refunds"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("PaymentReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.payment_reconciler --once
        python -m src.worker.payment_reconciler --interval 600
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Payment Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.PAYMENT_RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = PaymentReconcilerWorker()

    try:
        if args.once:
            run = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Payments resolved: {run.payments_resolved}/{run.payments_checked}")
            print(f"  Refunds resolved: {run.refunds_resolved}/{run.refunds_checked}")
            print(f"  Errors: {run.errors}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
