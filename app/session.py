"""Per-session composition root: one notification subscription and one sync bus"""
from typing import Optional
import logging

from app.core.config import Settings
from app.modules.notifications.services.subscription import NotificationSubscription, SessionNotificationWriter
from app.modules.sync.bus import SyncBus

logger = logging.getLogger(__name__)


class UserSession:
    def __init__(self, user_id: str, subscription: NotificationSubscription, bus: Optional[SyncBus] = None):
        self.user_id = user_id
        self.notifications = subscription
        self.bus = bus or SyncBus()

    @classmethod
    def for_pipeline(cls, user_id: str, pipeline, session_factory, settings: Settings) -> "UserSession":
        """Session fed by the in-process notification feed and writing through the store services"""
        subscription = NotificationSubscription(
            user_id,
            source=pipeline.feed.stream,
            writer=SessionNotificationWriter(session_factory),
            max_retries=settings.SUBSCRIPTION_MAX_RETRIES,
            retry_base_delay=settings.SUBSCRIPTION_RETRY_BASE_DELAY,
            retry_max_delay=settings.SUBSCRIPTION_RETRY_MAX_DELAY,
        )
        return cls(user_id, subscription)

    async def start(self) -> None:
        self.notifications.start()
        logger.info(f"Session started for user {self.user_id}")

    async def close(self) -> None:
        await self.notifications.stop()
        self.bus.clear()
        logger.info(f"Session closed for user {self.user_id}")

    async def __aenter__(self) -> "UserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
