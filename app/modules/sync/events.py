"""Typed payloads announced on the local sync bus"""
from dataclasses import dataclass

from app.modules.posts.schemas.post import PostWithCounts


@dataclass(frozen=True)
class PostEvent:
    post_id: str


@dataclass(frozen=True)
class PostCreated(PostEvent):
    post: PostWithCounts


@dataclass(frozen=True)
class PostDeleted(PostEvent):
    pass


@dataclass(frozen=True)
class PostAmened(PostEvent):
    amen_count: int
    has_amened: bool


@dataclass(frozen=True)
class PostReposted(PostEvent):
    repost_count: int


@dataclass(frozen=True)
class PostSaved(PostEvent):
    pass


@dataclass(frozen=True)
class PostUnsaved(PostEvent):
    pass
