import logging

from fastapi import FastAPI

from bookflow.api.wizard import router as wizard_router
from bookflow.core.config import settings

CONTEXT_KEYS = ("session_id", "tenant_id", "step", "staff_id", "slot_start", "key", "attempt", "error")


class ContextFormatter(logging.Formatter):
    """Append booking context passed through `extra=` as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = [
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_KEYS
            if getattr(record, key, None) not in (None, "")
        ]
        return f"{base} | {' '.join(context)}" if context else base


def configure_logging(level: str | None = None) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
    return handler


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Booking Wizard", version="1.0.0")
    application.include_router(wizard_router, tags=["booking"])

    @application.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
