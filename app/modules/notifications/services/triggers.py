"""
Document triggers.

Committed ORM writes are turned into document events
(``{eventType, documentPath, data}``) and handed to every handler registered
for a matching path pattern, e.g. ``posts/{postId}/comments/{commentId}``.
Handlers run only after the originating transaction commits, each with its
own database session, and a failing handler never affects the writer or the
other handlers.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.db.document import DocumentMixin

logger = logging.getLogger(__name__)

EVENT_CREATE = "create"
EVENT_UPDATE = "update"
EVENT_DELETE = "delete"

_PENDING_KEY = "pending_document_events"


@dataclass(frozen=True)
class DocumentEvent:
    event_type: str
    document_path: str
    data: Optional[Dict[str, Any]] = None
    # Body before an update or delete
    before: Optional[Dict[str, Any]] = None
    # Wildcard values from the matched pattern
    params: Dict[str, str] = field(default_factory=dict)


@dataclass
class HandlerContext:
    db: Session
    settings: Settings
    push: Any = None
    profiles: Any = None


Handler = Callable[[DocumentEvent, HandlerContext], Any]


def match_path(pattern: str, path: str) -> Optional[Dict[str, str]]:
    """Match a document path against a pattern; returns the wildcard values or None"""
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return None

    params = {}
    for expected, actual in zip(pattern_parts, path_parts):
        if expected.startswith("{") and expected.endswith("}"):
            params[expected[1:-1]] = actual
        elif expected != actual:
            return None
    return params


class TriggerRegistry:
    """Handlers keyed by event type and document path pattern"""

    def __init__(self):
        self._handlers: List[Tuple[str, str, Handler]] = []

    def _register(self, event_type: str, pattern: str):
        def decorator(handler: Handler) -> Handler:
            self._handlers.append((event_type, pattern, handler))
            return handler
        return decorator

    def on_create(self, pattern: str):
        return self._register(EVENT_CREATE, pattern)

    def on_update(self, pattern: str):
        return self._register(EVENT_UPDATE, pattern)

    def on_delete(self, pattern: str):
        return self._register(EVENT_DELETE, pattern)

    def handlers_for(self, document_event: DocumentEvent) -> List[Tuple[Handler, Dict[str, str]]]:
        matches = []
        for event_type, pattern, handler in self._handlers:
            if event_type != document_event.event_type:
                continue
            params = match_path(pattern, document_event.document_path)
            if params is not None:
                matches.append((handler, params))
        return matches


class TriggerDispatcher:
    """Collects document writes on a sessionmaker and dispatches them after commit"""

    def __init__(
        self,
        session_factory,
        registries: Iterable[TriggerRegistry],
        push=None,
        profiles=None,
        settings: Settings = default_settings,
        workers: int = 0,
    ):
        self._session_factory = session_factory
        self._registries = list(registries)
        self.push = push
        self.profiles = profiles
        self.settings = settings
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="trigger") if workers > 0 else None
        self._installed = False

    def install(self) -> None:
        if self._installed:
            return
        event.listen(self._session_factory, "after_flush", self._after_flush)
        event.listen(self._session_factory, "after_commit", self._after_commit)
        event.listen(self._session_factory, "after_rollback", self._after_rollback)
        self._installed = True
        logger.info("Document triggers installed")

    def uninstall(self) -> None:
        if not self._installed:
            return
        event.remove(self._session_factory, "after_flush", self._after_flush)
        event.remove(self._session_factory, "after_commit", self._after_commit)
        event.remove(self._session_factory, "after_rollback", self._after_rollback)
        self._installed = False

    def shutdown(self) -> None:
        self.uninstall()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    # Session hooks

    def _after_flush(self, session: Session, flush_context) -> None:
        pending = session.info.setdefault(_PENDING_KEY, [])

        for obj in session.new:
            if isinstance(obj, DocumentMixin):
                pending.append(DocumentEvent(EVENT_CREATE, obj.document_path, data=obj.to_document()))

        for obj in session.dirty:
            if isinstance(obj, DocumentMixin) and session.is_modified(obj, include_collections=False):
                pending.append(DocumentEvent(
                    EVENT_UPDATE,
                    obj.document_path,
                    data=obj.to_document(),
                    before=obj.to_previous_document(),
                ))

        for obj in session.deleted:
            if isinstance(obj, DocumentMixin):
                pending.append(DocumentEvent(EVENT_DELETE, obj.document_path, before=obj.to_document()))

    def _after_commit(self, session: Session) -> None:
        pending = session.info.pop(_PENDING_KEY, None)
        for document_event in pending or ():
            self.dispatch(document_event)

    def _after_rollback(self, session: Session) -> None:
        discarded = session.info.pop(_PENDING_KEY, None)
        if discarded:
            logger.debug(f"Discarded {len(discarded)} document event(s) after rollback")

    # Dispatch

    def dispatch(self, document_event: DocumentEvent) -> None:
        """Run every handler matching the event; repeated calls run the handlers again"""
        for registry in self._registries:
            for handler, params in registry.handlers_for(document_event):
                bound_event = replace(document_event, params=params)
                if self._executor is not None:
                    self._executor.submit(self._run_handler, handler, bound_event)
                else:
                    self._run_handler(handler, bound_event)

    def _run_handler(self, handler: Handler, document_event: DocumentEvent) -> None:
        db = self._session_factory()
        context = HandlerContext(db=db, settings=self.settings, push=self.push, profiles=self.profiles)
        try:
            handler(document_event, context)
        except Exception:
            logger.exception(
                f"Trigger {handler.__name__} failed for {document_event.event_type} {document_event.document_path}"
            )
        finally:
            db.close()
