"""
ARQ Worker Configuration

This module configures the ARQ background worker that delivers email.

Running the Worker:
------------------
    # From project root directory
    arq app.worker.WorkerSettings

    # With verbose logging
    arq app.worker.WorkerSettings --verbose

Several workers can run against the same Redis queue; jobs are
distributed between them automatically.
"""

import logging
from typing import Any, Dict

from app.core.config import settings
from app.db.redis import get_arq_redis_settings
from app.tasks.email_tasks import send_email_job

# ============================================================
# Logging Configuration
# ============================================================

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================
# Startup and Shutdown Hooks
# ============================================================

async def startup(ctx: Dict[str, Any]) -> None:
    """Called when worker starts."""
    if settings.SMTP_SERVER and settings.SMTP_EMAIL:
        logger.info(f"ARQ Worker ready, SMTP: {settings.SMTP_SERVER}")
    else:
        logger.warning("ARQ Worker ready, SMTP not configured (emails are logged only)")


async def shutdown(ctx: Dict[str, Any]) -> None:
    """Called when worker shuts down."""
    logger.info("ARQ Worker shutdown complete")


# ============================================================
# Worker Configuration Class
# ============================================================

class WorkerSettings:
    """
    ARQ Worker settings.

    This class is discovered by ARQ when you run:
        arq app.worker.WorkerSettings
    """

    functions = [
        send_email_job,
    ]

    redis_settings = get_arq_redis_settings()

    on_startup = startup
    on_shutdown = shutdown

    # ========================================
    # Job Settings
    # ========================================
    job_timeout = 60       # SMTP round trip
    keep_result = 3600     # 1 hour
    max_tries = 3          # Retry failed sends up to 3 times
    retry_delay = 60

    # ========================================
    # Concurrency Settings
    # ========================================
    max_jobs = 10
    poll_delay = 0.5

    queue_name = "arq:queue"
    health_check_interval = 10
