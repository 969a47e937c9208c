from typing import Optional
from fastapi import Header
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.database import create_engine
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.stripe_payment_processor import StripePaymentProcessor
from src.app.services.notification_service import NotificationService
from src.app.services.payment_processor import PaymentProcessor
import src.domain  # noqa: F401  registers every table on SQLModel.metadata

engine = create_engine(ApplicationConfig.DB_URI)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def init_db(bind=None) -> None:
    """Create missing tables (development and SQLite deployments)"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_payment_processor() -> PaymentProcessor:
    return StripePaymentProcessor(
        secret_key=ApplicationConfig.STRIPE_SECRET_KEY,
        api_base=ApplicationConfig.STRIPE_API_BASE,
        timeout=ApplicationConfig.PROCESSOR_TIMEOUT_SECONDS,
    )


def get_notification_service() -> NotificationService:
    return create_notification_service(
        sendgrid_api_key=ApplicationConfig.SENDGRID_API_KEY,
        from_email=ApplicationConfig.SENDGRID_FROM_EMAIL,
        from_name=ApplicationConfig.SENDGRID_FROM_NAME,
        webhook_url=ApplicationConfig.NOTIFICATION_WEBHOOK_URL,
    )


async def get_account_id(x_account_id: str = Header(..., min_length=1)) -> str:
    """Tenant of the request. Authentication sits in front of this service and sets the header."""
    return x_account_id


async def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_user_id
