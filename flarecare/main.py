from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
import logging
import sys

from flarecare.core.config import settings
from flarecare.reminders.api import router as cron_router
from flarecare.reminders.push_api import router as push_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="FlareCare Reminder Service")
    app.include_router(cron_router, prefix="/api/cron", tags=["cron"])
    app.include_router(push_router, prefix="/api/push", tags=["push"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "reminders"}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
        logger.info("📈 [Startup] Prometheus metrics exposed at /metrics")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("flarecare.main:app", host="0.0.0.0", port=8000)
