import asyncio
from datetime import datetime

from app.modules.posts.schemas.post import PostWithCounts
from app.modules.sync.bus import SyncBus
from app.modules.sync.events import (
    PostEvent,
    PostCreated,
    PostDeleted,
    PostAmened,
    PostReposted,
    PostSaved,
    PostUnsaved,
)
from app.modules.sync.post_list import PostListView


def make_post(post_id, author_id="author"):
    return PostWithCounts(id=post_id, author_id=author_id, content=f"post {post_id}", created_at=datetime(2026, 1, 1))


def test_delete_of_unknown_post_is_a_no_op():
    bus = SyncBus()
    home = PostListView([make_post("p1")]).attach(bus)
    profile = PostListView().attach(bus)

    bus.publish(PostDeleted(post_id="missing"))

    assert [post.id for post in home.posts] == ["p1"]
    assert profile.posts == []


def test_lists_patch_themselves_without_refetching():
    bus = SyncBus()
    home = PostListView([make_post("p1"), make_post("p2")]).attach(bus)
    saved = PostListView([make_post("p2")], accepts=lambda post: False).attach(bus)

    bus.publish(PostCreated(post_id="p0", post=make_post("p0")))
    bus.publish(PostAmened(post_id="p2", amen_count=5, has_amened=True))
    bus.publish(PostReposted(post_id="p2", repost_count=2))
    bus.publish(PostSaved(post_id="p1"))
    bus.publish(PostDeleted(post_id="p2"))

    assert [post.id for post in home.posts] == ["p0", "p1"]
    assert home.find("p1").is_saved is True
    assert saved.posts == []


def test_created_post_is_inserted_once_and_filtered():
    bus = SyncBus()
    mine = PostListView(accepts=lambda post: post.author_id == "me").attach(bus)

    bus.publish(PostCreated(post_id="p1", post=make_post("p1", author_id="me")))
    bus.publish(PostCreated(post_id="p1", post=make_post("p1", author_id="me")))
    bus.publish(PostCreated(post_id="p2", post=make_post("p2", author_id="someone")))

    assert [post.id for post in mine.posts] == ["p1"]


def test_field_updates_apply_to_each_list_separately():
    bus = SyncBus()
    first = PostListView([make_post("p1")]).attach(bus)
    second = PostListView([make_post("p1")]).attach(bus)

    bus.publish(PostUnsaved(post_id="p1"))
    bus.publish(PostAmened(post_id="p1", amen_count=1, has_amened=True))

    assert first.find("p1") is not second.find("p1")
    assert first.find("p1").amen_count == second.find("p1").amen_count == 1


def test_post_id_filter_and_unsubscribe():
    bus = SyncBus()
    seen = []
    subscription = bus.subscribe(PostSaved, seen.append, post_id="p1")

    bus.publish(PostSaved(post_id="p2"))
    bus.publish(PostSaved(post_id="p1"))
    subscription.unsubscribe()
    bus.publish(PostSaved(post_id="p1"))

    assert seen == [PostSaved(post_id="p1")]


def test_events_published_from_handlers_keep_emission_order():
    bus = SyncBus()
    order = []

    def cascade(event):
        order.append(("first", event.post_id))
        if event.post_id == "p1":
            bus.publish(PostDeleted(post_id="p2"))

    bus.subscribe(PostDeleted, cascade)
    bus.subscribe(PostDeleted, lambda event: order.append(("second", event.post_id)))

    bus.publish(PostDeleted(post_id="p1"))

    assert order == [("first", "p1"), ("second", "p1"), ("first", "p2"), ("second", "p2")]


def test_failing_handler_does_not_block_others():
    bus = SyncBus()
    seen = []

    def broken(event):
        raise ValueError("bad handler")

    bus.subscribe(PostEvent, broken)
    bus.subscribe(PostEvent, seen.append)

    bus.publish(PostReposted(post_id="p1", repost_count=1))

    assert seen == [PostReposted(post_id="p1", repost_count=1)]


def test_detached_list_stops_listening():
    bus = SyncBus()
    view = PostListView([make_post("p1")]).attach(bus)

    view.detach()
    bus.publish(PostDeleted(post_id="p1"))

    assert [post.id for post in view.posts] == ["p1"]


async def test_publish_threadsafe_runs_on_owning_loop():
    bus = SyncBus()
    view = PostListView([make_post("p1")]).attach(bus)
    loop = asyncio.get_running_loop()

    await asyncio.to_thread(bus.publish_threadsafe, loop, PostDeleted(post_id="p1"))
    await asyncio.sleep(0)

    assert view.posts == []
