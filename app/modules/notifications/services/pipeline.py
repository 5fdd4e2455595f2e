"""Wires document triggers, fan-out, push and the live feed together"""
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from app.core.config import Settings
from app.modules.notifications.services.fanout import triggers as fanout_triggers
from app.modules.notifications.services.feed import NotificationFeed
from app.modules.notifications.services.profiles import ProfileLookup
from app.modules.notifications.services.push import PushDispatcher
from app.modules.notifications.services.triggers import TriggerDispatcher

logger = logging.getLogger(__name__)


@dataclass
class NotificationPipeline:
    dispatcher: TriggerDispatcher
    feed: NotificationFeed
    push: PushDispatcher
    profiles: ProfileLookup

    def install(self) -> None:
        self.dispatcher.install()

    def shutdown(self) -> None:
        self.dispatcher.shutdown()
        self.profiles.shutdown()
        logger.info("Notification pipeline stopped")


def build_pipeline(session_factory, settings: Settings, push_sender: Optional[Callable] = None) -> NotificationPipeline:
    push = PushDispatcher(sender=push_sender, enabled=settings.PUSH_ENABLED)
    profiles = ProfileLookup(session_factory, timeout=settings.PROFILE_LOOKUP_TIMEOUT_SECONDS)
    feed = NotificationFeed(session_factory, limit=settings.NOTIFICATION_FEED_LIMIT)
    dispatcher = TriggerDispatcher(
        session_factory,
        [fanout_triggers, feed.triggers],
        push=push,
        profiles=profiles,
        settings=settings,
        workers=settings.TRIGGER_WORKERS,
    )
    return NotificationPipeline(dispatcher=dispatcher, feed=feed, push=push, profiles=profiles)
