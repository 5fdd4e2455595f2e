"""
Notification fan-out.

One trigger per domain event: each resolves who should hear about the write,
stores a notification record for them and attempts a push. Every handler
stands alone; none of them raise into the dispatcher for expected absences
(missing post, unknown username, no device token), they log and skip.
"""
from typing import Any, Dict, List, Optional
import logging
import re

from app.modules.notifications.models.notification import Notification, NotificationType
from app.modules.notifications.schemas.notification import NotificationCreate
from app.modules.notifications.services.notification import (
    create_notification,
    delete_follow_notifications,
    delete_amen_notifications,
)
from app.modules.notifications.services.profiles import LookupStatus
from app.modules.notifications.services.triggers import DocumentEvent, HandlerContext, TriggerRegistry
from app.modules.messaging.services.conversation import get_conversation
from app.modules.posts.services.post import get_post
from app.modules.posts.comments.services.comment import get_comment
from app.modules.user_management.services.user import get_user, get_user_by_username

logger = logging.getLogger(__name__)

triggers = TriggerRegistry()

MENTION_PATTERN = re.compile(r"@(\w+)")

PUSH_COPY = {
    NotificationType.FOLLOW: ("New Follower", "{name} started following you"),
    NotificationType.AMEN: ("New Amen", "{name} amened your post"),
    NotificationType.COMMENT: ("New Comment", "{name} commented on your post"),
    NotificationType.REPLY: ("New Reply", "{name} replied to your comment"),
    NotificationType.MENTION: ("You were mentioned", "{name} mentioned you in a post"),
    NotificationType.REPOST: ("Post Reposted", "{name} reposted your post"),
    NotificationType.FOLLOW_REQUEST_ACCEPTED: ("Follow Request Accepted", "{name} accepted your follow request"),
}

PHOTO_MESSAGE_BODY = "Sent you a photo"


def extract_mentions(text: Optional[str]) -> List[str]:
    """Distinct @username tokens in order of first appearance"""
    usernames = []
    for username in MENTION_PATTERN.findall(text or ""):
        if username not in usernames:
            usernames.append(username)
    return usernames


def truncate_preview(text: Optional[str], length: int) -> Optional[str]:
    if not text:
        return text
    if len(text) <= length:
        return text
    return text[:length] + "..."


def push_copy(notification_type: NotificationType, actor_name: str, preview: Optional[str] = None):
    if notification_type == NotificationType.MESSAGE:
        return actor_name, preview or PHOTO_MESSAGE_BODY
    title, body = PUSH_COPY[notification_type]
    return title, body.format(name=actor_name)


def deliver_notification(
    ctx: HandlerContext,
    recipient_id: Optional[str],
    notification_type: NotificationType,
    actor_id: Optional[str],
    subject_id: Optional[str] = None,
    preview: Optional[str] = None,
    push_data: Optional[Dict[str, Any]] = None,
) -> Optional[Notification]:
    """Write one notification for recipient and attempt a push; the two effects are independent"""
    if not recipient_id or not actor_id:
        logger.warning(f"Skipping {notification_type.value} notification: recipient or actor missing")
        return None

    if recipient_id == actor_id:
        logger.debug(f"Skipping {notification_type.value} notification: user {actor_id} acted on own content")
        return None

    profile = ctx.profiles.lookup(actor_id)
    if profile.status == LookupStatus.MISSING:
        logger.warning(f"Actor {actor_id} not found, skipping {notification_type.value} notification")
        return None

    preview = truncate_preview(preview, ctx.settings.NOTIFICATION_PREVIEW_LENGTH)

    notification = None
    if profile.status == LookupStatus.FOUND:
        try:
            notification = create_notification(ctx.db, NotificationCreate(
                recipient_id=recipient_id,
                type=notification_type,
                actor_id=actor_id,
                actor_display_name=profile.display_name,
                subject_id=subject_id,
                preview=preview,
            ))
            logger.info(f"Created {notification_type.value} notification for user {recipient_id} from user {actor_id}")
        except Exception as e:
            ctx.db.rollback()
            logger.error(f"Error creating {notification_type.value} notification for user {recipient_id}: {e}")
    else:
        logger.warning(
            f"Profile lookup for {actor_id} failed, skipping {notification_type.value} notification record"
        )

    title, body = push_copy(notification_type, profile.display_name, preview)
    data = {"type": notification_type.value, "actorId": actor_id}
    data.update(push_data or {})
    try:
        ctx.push.send_to_user(ctx.db, recipient_id, title, body, data)
    except Exception as e:
        logger.error(f"Error sending {notification_type.value} push to user {recipient_id}: {e}")

    return notification


# Follows

@triggers.on_create("follows/{followId}")
def on_follow_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    deliver_notification(ctx, event.data.get("followingId"), NotificationType.FOLLOW, event.data.get("followerId"))


@triggers.on_delete("follows/{followId}")
def on_follow_deleted(event: DocumentEvent, ctx: HandlerContext) -> None:
    """Compensating delete: the follow notifications go away with the follow"""
    following_id = event.before.get("followingId")
    follower_id = event.before.get("followerId")
    if not following_id or not follower_id:
        logger.warning(f"Follow {event.params['followId']} deleted without user ids")
        return
    delete_follow_notifications(ctx.db, following_id, follower_id)


def _notify_request_accepted(ctx: HandlerContext, data: Dict[str, Any]) -> None:
    deliver_notification(
        ctx, data.get("fromUserId"), NotificationType.FOLLOW_REQUEST_ACCEPTED, data.get("toUserId")
    )


@triggers.on_create("followRequests/{requestId}")
def on_follow_request_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    if event.data.get("status") == "accepted":
        _notify_request_accepted(ctx, event.data)


@triggers.on_update("followRequests/{requestId}")
def on_follow_request_updated(event: DocumentEvent, ctx: HandlerContext) -> None:
    was_accepted = (event.before or {}).get("status") == "accepted"
    if event.data.get("status") == "accepted" and not was_accepted:
        _notify_request_accepted(ctx, event.data)


# Posts

@triggers.on_create("posts/{postId}")
def on_post_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    """Notify every resolvable @username in a new post"""
    post_id = event.params["postId"]
    content = event.data.get("content")
    for username in extract_mentions(content):
        user = get_user_by_username(ctx.db, username)
        if not user:
            logger.debug(f"Mentioned username @{username} not found in post {post_id}")
            continue
        deliver_notification(
            ctx, user.id, NotificationType.MENTION, event.data.get("authorId"),
            subject_id=post_id, preview=content, push_data={"postId": post_id},
        )


@triggers.on_create("posts/{postId}/likes/{likeId}")
def on_amen_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    post_id = event.params["postId"]
    post = get_post(ctx.db, post_id)
    if not post:
        logger.warning(f"Post {post_id} not found when creating amen notification")
        return
    deliver_notification(
        ctx, post.author_id, NotificationType.AMEN, event.data.get("userId"),
        subject_id=post_id, push_data={"postId": post_id},
    )


@triggers.on_delete("posts/{postId}/likes/{likeId}")
def on_amen_deleted(event: DocumentEvent, ctx: HandlerContext) -> None:
    post_id = event.params["postId"]
    post = get_post(ctx.db, post_id)
    if not post:
        logger.debug(f"Post {post_id} is gone, leaving its amen notifications")
        return
    delete_amen_notifications(ctx.db, post.author_id, event.before.get("userId"), post_id)


@triggers.on_create("posts/{postId}/comments/{commentId}")
def on_comment_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    post_id = event.params["postId"]
    post = get_post(ctx.db, post_id)
    if not post:
        logger.warning(f"Post {post_id} not found when creating comment notification")
        return
    deliver_notification(
        ctx, post.author_id, NotificationType.COMMENT, event.data.get("authorId"),
        subject_id=post_id, preview=event.data.get("text"), push_data={"postId": post_id},
    )


@triggers.on_create("posts/{postId}/comments/{commentId}")
def on_reply_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    parent_comment_id = event.data.get("parentCommentId")
    if not parent_comment_id:
        return

    post_id = event.params["postId"]
    parent = get_comment(ctx.db, parent_comment_id)
    if not parent:
        logger.warning(f"Parent comment {parent_comment_id} not found when creating reply notification")
        return
    deliver_notification(
        ctx, parent.author_id, NotificationType.REPLY, event.data.get("authorId"),
        subject_id=post_id, preview=event.data.get("text"), push_data={"postId": post_id},
    )


@triggers.on_create("reposts/{repostId}")
def on_repost_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    post_id = event.data.get("postId")
    post = get_post(ctx.db, post_id) if post_id else None
    if not post:
        logger.warning(f"Post {post_id} not found when creating repost notification")
        return
    deliver_notification(
        ctx, post.author_id, NotificationType.REPOST, event.data.get("userId"),
        subject_id=post_id, push_data={"postId": post_id},
    )


# Messages

@triggers.on_create("conversations/{conversationId}/messages/{messageId}")
def on_message_created(event: DocumentEvent, ctx: HandlerContext) -> None:
    conversation_id = event.params["conversationId"]
    conversation = get_conversation(ctx.db, conversation_id)
    if not conversation:
        logger.warning(f"Conversation {conversation_id} not found when creating message notification")
        return

    sender_id = event.data.get("senderId")
    for participant_id in conversation.participant_ids or []:
        if participant_id == sender_id:
            continue

        recipient = get_user(ctx.db, participant_id)
        if not recipient:
            logger.warning(f"Participant {participant_id} of conversation {conversation_id} not found")
            continue
        if (recipient.notification_settings or {}).get("messages") is False:
            logger.debug(f"User {participant_id} muted message notifications")
            continue

        deliver_notification(
            ctx, participant_id, NotificationType.MESSAGE, sender_id,
            subject_id=conversation_id, preview=event.data.get("text"),
            push_data={"conversationId": conversation_id},
        )
