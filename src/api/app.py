import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from src.api.error import ClientError, client_error_handler, validation_error_handler
from src.api.routes import invoices, payments


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.DB_CREATE_ALL:
            from src.depends import init_db

            await init_db()
        yield

    app = FastAPI(
        title="Field Ledger",
        description="Invoices, payments and refunds for field-service accounts",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(invoices.router, prefix=config.API_PREFIX)
    app.include_router(payments.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
