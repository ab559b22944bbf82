import asyncio
import logging
import uvicorn

from shared.core.config import settings
from shared.core.database import RentalSessionLocal
from rental_service.app.crud.scheduler.scheduler_service import run_lifecycle_jobs

logger = logging.getLogger(__name__)


def run_jobs_once():
    db = RentalSessionLocal()
    try:
        return run_lifecycle_jobs(db)
    finally:
        db.close()


async def run_scheduler():
    while True:
        try:
            await asyncio.to_thread(run_jobs_once)
        except Exception:
            logger.exception("Lifecycle scheduler pass failed")
        await asyncio.sleep(settings.SCHEDULER_INTERVAL_SECONDS)


async def start_servers():
    config = uvicorn.Config(
        "rental_service.app.main:app",
        host="0.0.0.0",
        port=8002,
        reload=False,
    )
    server = uvicorn.Server(config)

    # API and lifecycle jobs side by side
    await asyncio.gather(
        server.serve(),
        run_scheduler(),
    )

if __name__ == "__main__":
    try:
        asyncio.run(start_servers())
    except KeyboardInterrupt:
        print("\nShutting down servers...")
