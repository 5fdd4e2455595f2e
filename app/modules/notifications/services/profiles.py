"""Actor profile point reads with a deadline"""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging
import threading

from app.modules.user_management.models.user import User
from app.modules.user_management.services.user import get_user

logger = logging.getLogger(__name__)

FALLBACK_DISPLAY_NAME = "Someone"


class LookupStatus(str, Enum):
    FOUND = "found"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(frozen=True)
class ActorProfile:
    status: LookupStatus
    user_id: str
    display_name: str = FALLBACK_DISPLAY_NAME


def display_name_for(user: User) -> str:
    return user.display_name or user.username or FALLBACK_DISPLAY_NAME


class ProfileLookup:
    """Reads actor profiles off the calling thread so a slow read can be abandoned"""

    def __init__(self, session_factory, timeout: float = 5.0, executor: Optional[ThreadPoolExecutor] = None):
        self._session_factory = session_factory
        self.timeout = timeout
        self._owns_executor = executor is None
        self._executor = executor or self._new_executor()
        self._lock = threading.Lock()

    @staticmethod
    def _new_executor() -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=4, thread_name_prefix="profile-lookup")

    def _retire_executor(self, executor: ThreadPoolExecutor) -> None:
        """Move later lookups to a fresh pool; reads stuck in the old one finish on their own"""
        if not self._owns_executor:
            return
        with self._lock:
            if self._executor is not executor:
                return
            self._executor = self._new_executor()
        executor.shutdown(wait=False)

    def _load(self, user_id: str) -> Optional[str]:
        db = self._session_factory()
        try:
            user = get_user(db, user_id)
            return display_name_for(user) if user else None
        finally:
            db.close()

    def lookup(self, user_id: str) -> ActorProfile:
        with self._lock:
            executor = self._executor
            future = executor.submit(self._load, user_id)
        try:
            display_name = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            # A read that already started cannot be cancelled and keeps its worker
            if not future.cancel():
                self._retire_executor(executor)
            logger.warning(f"Profile lookup for {user_id} timed out after {self.timeout}s")
            return ActorProfile(LookupStatus.FAILED, user_id)
        except Exception as e:
            logger.error(f"Profile lookup for {user_id} failed: {e}")
            return ActorProfile(LookupStatus.FAILED, user_id)

        if display_name is None:
            return ActorProfile(LookupStatus.MISSING, user_id)
        return ActorProfile(LookupStatus.FOUND, user_id, display_name)

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)
