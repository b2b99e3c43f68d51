import asyncio
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from relay.config import settings
from relay.database import Base, engine
from relay.logging_config import get_logger, setup_logging
from relay.routers import whatsapp
from relay.services.report_service import cleanup_old_reports

setup_logging(settings.log_level)

app = FastAPI(
    title="WhatsApp AI Relay",
    description="Relays WhatsApp messages to the AI chat backend",
    version="0.1.0",
)

Path(settings.reports_dir).mkdir(parents=True, exist_ok=True)
app.mount("/reports", StaticFiles(directory=settings.reports_dir), name="reports")

app.include_router(whatsapp.router)

cleanup_logger = get_logger("report_cleanup")
_cleanup_task: asyncio.Task | None = None


def _is_report_cleanup_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.report_cleanup_enabled


async def _report_cleanup_loop() -> None:
    interval_seconds = max(float(settings.report_cleanup_interval_seconds), 1.0)
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            cleanup_old_reports(settings.reports_dir, settings.report_max_age_seconds)
        except asyncio.CancelledError:
            break
        except Exception as exc:
            cleanup_logger.error(
                "Report cleanup failed",
                extra={"context": {"error": str(exc)}},
            )


@app.on_event("startup")
async def init_database() -> None:
    Base.metadata.create_all(bind=engine)


@app.on_event("startup")
async def start_report_cleanup() -> None:
    global _cleanup_task
    if not _is_report_cleanup_enabled():
        return
    if _cleanup_task is None or _cleanup_task.done():
        _cleanup_task = asyncio.create_task(_report_cleanup_loop())
        cleanup_logger.info("Report cleanup started")


@app.on_event("shutdown")
async def stop_report_cleanup() -> None:
    global _cleanup_task
    if _cleanup_task is None:
        return
    _cleanup_task.cancel()
    try:
        await _cleanup_task
    except asyncio.CancelledError:
        pass
    _cleanup_task = None


@app.get("/health")
async def health():
    return {"status": "ok"}
