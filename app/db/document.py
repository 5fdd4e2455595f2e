"""
Document mapping for ORM rows.

Every model that takes part in the notification pipeline maps to a path in
the shared document layout (``posts/{postId}/comments/{commentId}``,
``users/{userId}/notifications/{notificationId}``, ...) and to a camelCase
document body. The trigger dispatcher uses this mapping to turn committed
writes into document events.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import event, inspect


def utcnow() -> datetime:
    """Naive UTC timestamp with microseconds, used as the column default."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DocumentMixin:
    # Path template using attribute names, e.g. "posts/{post_id}/likes/{id}"
    __document_path__: str = ""
    # attribute name -> wire field name
    __document_fields__: Dict[str, str] = {}

    @property
    def document_path(self) -> str:
        return self.__document_path__.format(
            **{name: getattr(self, name) for name in _template_names(self.__document_path__)}
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            wire: _wire_value(getattr(self, attr))
            for attr, wire in self.__document_fields__.items()
        }

    def to_previous_document(self) -> Optional[Dict[str, Any]]:
        """Document body as it was before the pending flush changed it."""
        state = inspect(self)
        previous = {}
        for attr, wire in self.__document_fields__.items():
            history = state.attrs[attr].history
            if history.deleted:
                previous[wire] = _wire_value(history.deleted[0])
            else:
                previous[wire] = _wire_value(getattr(self, attr))
        return previous


@event.listens_for(DocumentMixin, "mapper_configured", propagate=True)
def _track_previous_values(mapper, class_) -> None:
    # Rows are usually expired by an earlier commit, so the old value has to be
    # loaded when a document field is set or the update event loses it
    for attr in class_.__document_fields__:
        event.listen(getattr(class_, attr), "set", _load_previous_value, active_history=True)


def _load_previous_value(target, value, oldvalue, initiator) -> None:
    pass


def _template_names(template: str):
    names = []
    for chunk in template.split("{")[1:]:
        names.append(chunk.split("}", 1)[0])
    return names


def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
