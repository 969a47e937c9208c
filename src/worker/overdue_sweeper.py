"""Overdue Sweep and Reminder Background Worker

Moves sent invoices past their due date to overdue, then emails payment
reminders. Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import date
from typing import Optional, Tuple
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.database import create_engine
from src.adapter.repositories import SqlAlchemyInvoiceRepository, SqlAlchemyClientRepository
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.use_cases.invoices import (
    SweepOverdueInvoices,
    DispatchReminders,
    SweepOverdueCommandDTO,
    DispatchRemindersCommandDTO,
    OverdueSweepResultDTO,
    ReminderDispatchResultDTO,
)

logger = logging.getLogger(__name__)


class OverdueSweeperWorker:
    """
    Background worker for the overdue sweep and payment reminders

    Features:
    - Marks sent invoices past due as overdue (idempotent per day)
    - Sends reminders for invoices due soon or overdue
    - Can run once or continuously

    Usage:
        worker = OverdueSweeperWorker()
        sweep, reminders = await worker.run_once()

        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        notification_service: Optional[NotificationService] = None,
        session_factory=None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            notification_service: Reminder dispatcher (defaults to the configured one)
            session_factory: Existing session factory; the worker then owns no engine
        """
        self.engine = None
        if session_factory is None:
            self.engine = create_engine(db_uri or ApplicationConfig.DB_URI)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.notification_service = notification_service or create_notification_service(
            sendgrid_api_key=ApplicationConfig.SENDGRID_API_KEY,
            from_email=ApplicationConfig.SENDGRID_FROM_EMAIL,
            from_name=ApplicationConfig.SENDGRID_FROM_NAME,
            webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK_URL,
        )

        logger.info("OverdueSweeperWorker initialized")

    async def sweep(self, today: Optional[date] = None) -> OverdueSweepResultDTO:
        async with self.async_session_factory() as session:
            use_case = SweepOverdueInvoices(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
            )
            result = await use_case.execute(SweepOverdueCommandDTO(today=today))

            if result.is_err():
                logger.error(f"Overdue sweep failed: {result.error.message}")
                raise RuntimeError(f"Overdue sweep failed: {result.error.message}")

            return result.value

    async def send_reminders(self, today: Optional[date] = None) -> ReminderDispatchResultDTO:
        async with self.async_session_factory() as session:
            use_case = DispatchReminders(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                client_repo=SqlAlchemyClientRepository(session),
                notification_service=self.notification_service,
            )
            result = await use_case.execute(
                DispatchRemindersCommandDTO(
                    today=today,
                    interval_days=ApplicationConfig.REMINDER_INTERVAL_DAYS,
                    lead_days=ApplicationConfig.REMINDER_LEAD_DAYS,
                )
            )

            if result.is_err():
                logger.error(f"Reminder dispatch failed: {result.error.message}")
                raise RuntimeError(f"Reminder dispatch failed: {result.error.message}")

            response = result.value
            if response.failed:
                logger.warning(f"{response.failed} reminders were not delivered and will be retried")
            return response

    async def run_once(
        self, today: Optional[date] = None, reminders: bool = True
    ) -> Tuple[Optional[OverdueSweepResultDTO], Optional[ReminderDispatchResultDTO]]:
        """
        Run the sweep, then the reminders

        Returns:
            (sweep result, reminder result); a disabled step yields None
        """
        sweep_result = None
        if ApplicationConfig.OVERDUE_SWEEP_ENABLED:
            sweep_result = await self.sweep(today)
        else:
            logger.info("Overdue sweep is disabled, skipping")

        reminder_result = None
        if reminders and ApplicationConfig.REMINDERS_ENABLED:
            reminder_result = await self.send_reminders(today)

        return sweep_result, reminder_result

    async def run_forever(self, interval_seconds: int = 3600, reminders: bool = True):
        logger.info(f"Starting overdue sweeper with {interval_seconds}s interval")

        while True:
            try:
                sweep_result, reminder_result = await self.run_once(reminders=reminders)
                if sweep_result is not None:
                    logger.info(f"Sweep cycle complete. Marked {sweep_result.marked_overdue} invoices overdue")
                if reminder_result is not None:
                    logger.info(
                        f"Reminder cycle complete. Sent {reminder_result.sent}, "
                        f"skipped {reminder_result.skipped}, failed {reminder_result.failed}"
                    )
            except Exception as e:
                logger.error(f"Overdue sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("OverdueSweeperWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.overdue_sweeper --once
        python -m src.worker.overdue_sweeper --interval 3600
        python -m src.worker.overdue_sweeper --once --skip-reminders
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Overdue Sweep Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.OVERDUE_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    parser.add_argument("--skip-reminders", action="store_true", help="Only run the overdue sweep")
    args = parser.parse_args()

    worker = OverdueSweeperWorker()

    try:
        if args.once:
            sweep_result, reminder_result = await worker.run_once(reminders=not args.skip_reminders)
            if sweep_result is not None:
                print(f"Overdue sweep as of {sweep_result.as_of}:")
                print(f"  Marked overdue: {sweep_result.marked_overdue}")
            if reminder_result is not None:
                print("Reminders:")
                print(f"  Candidates: {reminder_result.candidates}")
                print(f"  Sent: {reminder_result.sent}")
                print(f"  Skipped: {reminder_result.skipped}")
                print(f"  Failed: {reminder_result.failed}")
        else:
            await worker.run_forever(interval_seconds=args.interval, reminders=not args.skip_reminders)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
