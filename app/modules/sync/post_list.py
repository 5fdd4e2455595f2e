from typing import Callable, List, Optional

from app.modules.posts.schemas.post import PostWithCounts
from app.modules.sync.bus import Subscription, SyncBus
from app.modules.sync.events import (
    PostCreated,
    PostDeleted,
    PostAmened,
    PostReposted,
    PostSaved,
    PostUnsaved,
)


class PostListView:
    """A loaded list of posts (home feed, profile, saved...) kept current from the sync bus"""

    def __init__(self, posts: Optional[List[PostWithCounts]] = None,
                 accepts: Optional[Callable[[PostWithCounts], bool]] = None):
        self.posts: List[PostWithCounts] = list(posts or [])
        # Decides whether a newly created post belongs in this list
        self._accepts = accepts or (lambda post: True)
        self._subscriptions: List[Subscription] = []

    def attach(self, bus: SyncBus) -> "PostListView":
        self.detach()
        self._subscriptions = [
            bus.subscribe(PostCreated, self._on_created),
            bus.subscribe(PostDeleted, self._on_deleted),
            bus.subscribe(PostAmened, self._on_amened),
            bus.subscribe(PostReposted, self._on_reposted),
            bus.subscribe(PostSaved, self._on_saved),
            bus.subscribe(PostUnsaved, self._on_unsaved),
        ]
        return self

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def find(self, post_id: str) -> Optional[PostWithCounts]:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    def _on_created(self, event: PostCreated) -> None:
        if self.find(event.post_id) is None and self._accepts(event.post):
            self.posts.insert(0, event.post.model_copy())

    def _on_deleted(self, event: PostDeleted) -> None:
        self.posts = [post for post in self.posts if post.id != event.post_id]

    def _update(self, post_id: str, **changes) -> None:
        post = self.find(post_id)
        if post is None:
            return
        for field, value in changes.items():
            setattr(post, field, value)

    def _on_amened(self, event: PostAmened) -> None:
        self._update(event.post_id, amen_count=event.amen_count, has_amened=event.has_amened)

    def _on_reposted(self, event: PostReposted) -> None:
        self._update(event.post_id, repost_count=event.repost_count)

    def _on_saved(self, event: PostSaved) -> None:
        self._update(event.post_id, is_saved=True)

    def _on_unsaved(self, event: PostUnsaved) -> None:
        self._update(event.post_id, is_saved=False)
