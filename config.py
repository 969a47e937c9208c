import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./ledger.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    DB_CREATE_ALL = bool(data.get("DB_CREATE_ALL", True))

    # Ledger defaults
    DEFAULT_CURRENCY = data.get("DEFAULT_CURRENCY", "USD")
    DEFAULT_PAYMENT_TERMS_DAYS = data.get("DEFAULT_PAYMENT_TERMS_DAYS", 30)
    SEQUENCE_MAX_ATTEMPTS = data.get("SEQUENCE_MAX_ATTEMPTS", 3)

    # Overdue sweep and reminders
    OVERDUE_SWEEP_ENABLED = bool(data.get("OVERDUE_SWEEP_ENABLED", True))
    OVERDUE_SWEEP_INTERVAL_SECONDS = data.get("OVERDUE_SWEEP_INTERVAL_SECONDS", 3600)
    REMINDERS_ENABLED = bool(data.get("REMINDERS_ENABLED", True))
    REMINDER_INTERVAL_DAYS = data.get("REMINDER_INTERVAL_DAYS", 7)
    REMINDER_LEAD_DAYS = data.get("REMINDER_LEAD_DAYS", 3)

    # Payment reconciliation (processing payments, pending refunds)
    PAYMENT_RECONCILIATION_ENABLED = bool(data.get("PAYMENT_RECONCILIATION_ENABLED", True))
    PAYMENT_RECONCILIATION_INTERVAL_SECONDS = data.get("PAYMENT_RECONCILIATION_INTERVAL_SECONDS", 900)
    PAYMENT_RECONCILIATION_GRACE_SECONDS = data.get("PAYMENT_RECONCILIATION_GRACE_SECONDS", 300)

    # Charge/refund processor
    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", "")
    STRIPE_API_BASE = data.get("STRIPE_API_BASE", "https://api.stripe.com/v1")
    PROCESSOR_TIMEOUT_SECONDS = data.get("PROCESSOR_TIMEOUT_SECONDS", 20.0)

    # Notification dispatcher
    SENDGRID_API_KEY = data.get("SENDGRID_API_KEY", "")
    SENDGRID_FROM_EMAIL = data.get("SENDGRID_FROM_EMAIL", "noreply@example.com")
    SENDGRID_FROM_NAME = data.get("SENDGRID_FROM_NAME", "Field Ledger")
    NOTIFICATION_WEBHOOK_URL = data.get("NOTIFICATION_WEBHOOK_URL", None)
