"""Token Sweeper - Periodic revocation of expired access tokens

Expired tokens already fail validation on their own; the sweep keeps the
one-live-token-per-target slot free and the `issued` set small. Safe to run
on every server: the revocation is a conditional bulk update.
"""
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..domain.errors import StorageUnavailableError
from ..services.authorization_service import AuthorizationService
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TokenSweeper:
    """APScheduler wrapper running the expiry sweep"""

    def __init__(self, service: AuthorizationService, interval_seconds: Optional[int] = None):
        self.service = service
        self.interval_seconds = interval_seconds or settings.token_sweep_interval_seconds
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Token sweeper already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.revoke_expired_tokens,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="revoke_expired_tokens",
            name="Revoke expired access tokens",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(f"Token sweeper started (interval={self.interval_seconds}s)")

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler:
            self.scheduler.shutdown()
            self._is_running = False
            logger.info("Token sweeper stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def revoke_expired_tokens(self) -> int:
        """Revoke expired tokens; storage outages are left for the next run"""
        try:
            revoked = self.service.sweep_expired_tokens()
        except StorageUnavailableError as e:
            logger.error(f"Token sweep skipped: {e.message}")
            return 0

        if revoked > 0:
            logger.info(f"Revoked {revoked} expired access tokens", extra={"status": "revoked"})
        return revoked
