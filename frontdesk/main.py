import asyncio
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from frontdesk.config import is_scheduler_enabled, settings
from frontdesk.database import SessionLocal, get_db, init_db
from frontdesk.logging_config import get_logger, setup_logging
from frontdesk.models import Booking, Room, User
from frontdesk.routers import admin, bookings, reminders, tokens, webhook
from frontdesk.services.alert_service import alert_critical
from frontdesk.services.kv_store import get_kv_store
from frontdesk.services.scheduler_service import run_scheduler_tick
from frontdesk.services.whatsapp_service import get_whatsapp_service

setup_logging(settings.log_level)

app = FastAPI(
    title="Front Desk API",
    description="WhatsApp front desk assistant for hotel bookings, check-in and in-stay services",
    version="0.1.0",
)

cors_env = os.environ.get("CORS_ALLOW_ORIGINS", "*")
cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhook.router)
app.include_router(bookings.router)
app.include_router(tokens.router)
app.include_router(reminders.router)
app.include_router(admin.router)

scheduler_logger = get_logger("scheduler_worker")
_scheduler_task: asyncio.Task | None = None


def _scheduler_tick_once() -> dict:
    db = SessionLocal()
    try:
        return run_scheduler_tick(db, get_whatsapp_service(), kv_store=get_kv_store())
    finally:
        db.close()


async def _scheduler_worker_loop() -> None:
    while True:
        try:
            await asyncio.sleep(max(settings.scheduler_interval_seconds, 0.1))
            await asyncio.to_thread(_scheduler_tick_once)
        except asyncio.CancelledError:
            break
        except Exception as exc:
            scheduler_logger.error(
                "Scheduler worker loop failed",
                extra={"context": {"error": str(exc)}},
            )
            await asyncio.to_thread(alert_critical, "Scheduler tick failed", {"error": str(exc)[:200]})


@app.on_event("startup")
async def startup() -> None:
    global _scheduler_task
    init_db()
    if not is_scheduler_enabled():
        return
    if _scheduler_task is None or _scheduler_task.done():
        _scheduler_task = asyncio.create_task(_scheduler_worker_loop())
        scheduler_logger.info("Scheduler worker started")


@app.on_event("shutdown")
async def stop_scheduler_worker() -> None:
    global _scheduler_task
    if _scheduler_task is None:
        return
    _scheduler_task.cancel()
    try:
        await _scheduler_task
    except asyncio.CancelledError:
        pass
    _scheduler_task = None


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    return {
        "status": "ok",
        "users": db.query(User).count(),
        "rooms": db.query(Room).count(),
        "bookings": db.query(Booking).count(),
    }
