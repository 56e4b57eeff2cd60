"""Health check endpoint for the webhook service and monitoring."""

from datetime import datetime, timezone
from src.services.supabase_client import BOX_DROPS, REALTORS, count_rows
from src.utils.http import JSONHandler
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class handler(JSONHandler):
    """Unauthenticated liveness check with row counts."""

    requires_auth = False

    async def get(self):
        database = "connected"
        drops = realtors = 0
        try:
            drops = await count_rows(BOX_DROPS)
            realtors = await count_rows(REALTORS)
        except Exception as e:
            logger.warning("Health check could not reach database", error=str(e))
            database = "error"
            drops = realtors = 0

        return {
            "status": "ok",
            "service": self.service_name,
            "database": database,
            "counts": {"drops": drops, "realtors": realtors},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def post(self):
        """Same as GET for health check."""
        return await self.get()
