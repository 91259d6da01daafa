from datetime import datetime, timezone

from bson import ObjectId
import pytest

from moodjournal import moderation
from moodjournal.crud import posts as crud_posts
from moodjournal.errors import NotFound, ValidationFailure
from moodjournal.models.post import PostCreate, PostUpdate
from moodjournal.moderation import ModerationState
from moodjournal.query.ordering import SortMode


def at(year, month, dom):
    return datetime(year, month, dom, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def owner(make_user):
    return make_user()


@pytest.fixture
def other(make_user):
    return make_user(email="other@example.com")


# ----------------- CREATION -----------------
def test_new_post_defaults(db, owner):
    post = crud_posts.create_post(
        db, owner["_id"], PostCreate(description="Sunny", mood=7, temperature=21.5), now=at(2024, 5, 1)
    )
    stored = db.posts.find_one({"_id": post["_id"]})
    assert stored["isPublic"] is False
    assert stored["isApproved"] is False
    assert stored["photo"] == ""
    assert stored["createdDay"] == "2024-05-01"
    assert moderation.state_of(stored) == ModerationState.PRIVATE


def test_public_post_starts_pending(make_post, owner):
    post = make_post(owner, at(2024, 5, 1), is_public=True)
    assert moderation.state_of(post) == ModerationState.PENDING


def test_second_post_same_day_rejected(make_post, owner):
    make_post(owner, at(2024, 5, 1))
    with pytest.raises(ValidationFailure, match="already created a post today"):
        make_post(owner, datetime(2024, 5, 1, 23, 0, tzinfo=timezone.utc))


def test_same_day_allowed_for_different_owners(make_post, owner, other):
    make_post(owner, at(2024, 5, 1))
    make_post(other, at(2024, 5, 1))


def test_next_day_allowed(make_post, owner):
    make_post(owner, at(2024, 5, 1))
    make_post(owner, at(2024, 5, 2))


def test_mood_out_of_range_rejected():
    with pytest.raises(ValueError):
        PostCreate(description="Too good", mood=11, temperature=20)
    with pytest.raises(ValueError):
        PostCreate(description="Too bad", mood=0, temperature=20)


# ----------------- GUEST LISTINGS -----------------
def test_guest_listing_shows_only_approved_public(db, make_post, owner):
    make_post(owner, at(2024, 1, 1), description="private", is_approved=True)
    make_post(owner, at(2024, 1, 2), description="pending", is_public=True)
    make_post(owner, at(2024, 1, 3), description="approved", is_public=True, is_approved=True)

    page = crud_posts.list_public_approved(db, SortMode.NEWEST, 1)
    assert [p["description"] for p in page.items] == ["approved"]
    assert page.totalItems == 1

    pending = crud_posts.list_pending(db, 1)
    assert [p["description"] for p in pending.items] == ["pending"]


def test_seven_approved_posts_third_page(db, make_post, owner):
    for dom in range(1, 8):
        make_post(owner, at(2024, 3, dom), is_public=True, is_approved=True)

    page = crud_posts.list_public_approved(db, "newest", "3")
    assert len(page.items) == 1
    assert page.totalPages == 3
    assert page.currentPage == 3
    assert page.items[0]["createdDay"] == "2024-03-01"


def test_oldest_first(db, make_post, owner):
    for dom in (3, 1, 2):
        make_post(owner, at(2024, 3, dom), is_public=True, is_approved=True)
    page = crud_posts.list_public_approved(db, SortMode.OLDEST, 1)
    assert [p["createdDay"] for p in page.items] == ["2024-03-01", "2024-03-02", "2024-03-03"]


def test_listed_posts_carry_owner(db, make_post, owner):
    make_post(owner, at(2024, 3, 1), is_public=True, is_approved=True)
    item = crud_posts.list_public_approved(db, SortMode.NEWEST, 1).items[0]
    out = crud_posts.post_out(item)
    assert out.user.email == owner["email"]
    assert out.user.id == str(owner["_id"])


def test_public_search_matches_either_field(db, make_post, owner, other):
    make_post(owner, at(2024, 3, 1), description="Walked by the river", location="paris, France",
              is_public=True, is_approved=True)
    make_post(other, at(2024, 3, 1), description="Trip to PARIS", is_public=True, is_approved=True)
    make_post(owner, at(2024, 3, 2), description="Rainy", location="Oslo", is_public=True, is_approved=True)
    make_post(other, at(2024, 3, 2), description="Paris again", is_public=True)

    page = crud_posts.search_public_approved(db, "Paris", 1)
    assert page.totalItems == 2
    assert {p["description"] for p in page.items} == {"Walked by the river", "Trip to PARIS"}

    assert crud_posts.search_public_approved(db, "", 1).totalItems == 3


def test_get_public_post_hides_unapproved(make_post, db, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    with pytest.raises(NotFound):
        crud_posts.get_public_post(db, post["_id"])
    with pytest.raises(NotFound):
        crud_posts.get_public_post(db, "not-an-id")


# ----------------- OWNER LISTINGS -----------------
def test_owner_listing_is_scoped(db, make_post, owner, other):
    make_post(owner, at(2024, 3, 1))
    make_post(owner, at(2024, 3, 2), is_public=True)
    make_post(other, at(2024, 3, 1))
    page = crud_posts.list_owner_posts(db, owner["_id"], 1)
    assert page.totalItems == 2
    assert all(p["user"] == owner["_id"] for p in page.items)


def test_owner_search(db, make_post, owner, other):
    make_post(owner, at(2024, 3, 1), description="Coffee", location="Lisbon")
    make_post(owner, at(2024, 3, 2), description="Tea")
    make_post(other, at(2024, 3, 1), description="lisbon trip")
    page = crud_posts.search_owner_posts(db, owner["_id"], "LISBON", 1)
    assert [p["description"] for p in page.items] == ["Coffee"]


def test_day_month_across_years(db, make_post, owner):
    make_post(owner, at(2024, 2, 29), description="leap 2024")
    make_post(owner, at(2020, 2, 29), description="leap 2020")
    make_post(owner, at(2024, 2, 28))
    make_post(owner, at(2023, 3, 1))

    posts = crud_posts.list_owner_posts_by_day_month(db, owner["_id"], 29, 2)
    assert [p["description"] for p in posts] == ["leap 2024", "leap 2020"]


def test_year_range(db, make_post, owner):
    for year in (2019, 2020, 2021, 2022, 2023):
        make_post(owner, at(year, 6, 1), description=str(year))
    page = crud_posts.list_owner_posts_in_range(db, owner["_id"], 2020, 2022, 1)
    assert page.totalItems == 3
    assert [p["description"] for p in page.items] == ["2022", "2021", "2020"]


def test_owner_cannot_touch_others_posts(db, make_post, owner, other):
    post = make_post(other, at(2024, 3, 1))
    with pytest.raises(NotFound):
        crud_posts.get_owner_post(db, owner["_id"], post["_id"])
    with pytest.raises(NotFound):
        crud_posts.delete_post(db, owner["_id"], post["_id"])


# ----------------- MODERATION -----------------
def test_approve_pending(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    approved = crud_posts.approve(db, post["_id"])
    assert approved["isApproved"] is True
    assert crud_posts.get_public_post(db, post["_id"])["_id"] == post["_id"]


def test_approve_twice_is_not_found(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    crud_posts.approve(db, post["_id"])
    with pytest.raises(NotFound):
        crud_posts.approve(db, post["_id"])


def test_approve_private_or_missing_is_not_found(db, make_post, owner):
    private = make_post(owner, at(2024, 3, 1))
    with pytest.raises(NotFound):
        crud_posts.approve(db, private["_id"])
    with pytest.raises(NotFound):
        crud_posts.approve(db, ObjectId())
    with pytest.raises(NotFound):
        crud_posts.approve(db, "garbage")


def test_deny_deletes_permanently(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    crud_posts.deny(db, post["_id"])
    assert db.posts.find_one({"_id": post["_id"]}) is None
    with pytest.raises(NotFound):
        crud_posts.deny(db, post["_id"])
    with pytest.raises(NotFound):
        crud_posts.get_pending_post(db, post["_id"])
    with pytest.raises(NotFound):
        crud_posts.get_owner_post(db, owner["_id"], post["_id"])


def test_deny_approved_is_not_found(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True, is_approved=True)
    with pytest.raises(NotFound):
        crud_posts.deny(db, post["_id"])
    assert db.posts.find_one({"_id": post["_id"]}) is not None


@pytest.mark.parametrize("flags, is_public, expected", [
    ({"isPublic": False, "isApproved": False}, None, {"isPublic": False, "isApproved": False}),
    ({"isPublic": False, "isApproved": False}, True, {"isPublic": True, "isApproved": False}),
    ({"isPublic": False, "isApproved": True}, True, {"isPublic": True, "isApproved": False}),
    ({"isPublic": True, "isApproved": False}, True, {"isPublic": True, "isApproved": False}),
    ({"isPublic": True, "isApproved": True}, None, {"isPublic": True, "isApproved": True}),
    ({"isPublic": True, "isApproved": True}, False, {"isPublic": False, "isApproved": True}),
])
def test_apply_edit(flags, is_public, expected):
    assert moderation.apply_edit(flags, is_public) == expected


def test_publishing_private_post_requeues_it(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_approved=True)
    updated = crud_posts.update_post(db, owner["_id"], post["_id"], PostUpdate(isPublic=True))
    assert moderation.state_of(updated) == ModerationState.PENDING
    assert crud_posts.list_public_approved(db, SortMode.NEWEST, 1).items == []


def test_content_edit_keeps_approval(db, make_post, owner):
    post = make_post(owner, at(2024, 3, 1), is_public=True, is_approved=True)
    updated = crud_posts.update_post(db, owner["_id"], post["_id"], PostUpdate(description="Edited", mood=9))
    assert updated["description"] == "Edited"
    assert updated["mood"] == 9
    assert moderation.state_of(updated) == ModerationState.APPROVED


def test_content_edit_does_not_undo_concurrent_approval(db, make_post, owner, monkeypatch):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    read_post = crud_posts.get_owner_post

    def read_then_approve(*args, **kwargs):
        current = read_post(*args, **kwargs)
        crud_posts.approve(db, post["_id"])
        return current

    monkeypatch.setattr(crud_posts, "get_owner_post", read_then_approve)
    updated = crud_posts.update_post(db, owner["_id"], post["_id"], PostUpdate(mood=3))
    assert updated["mood"] == 3
    assert updated["isApproved"] is True
    assert moderation.state_of(db.posts.find_one({"_id": post["_id"]})) == ModerationState.APPROVED


def test_flag_edit_is_recomputed_after_concurrent_approval(db, make_post, owner, monkeypatch):
    post = make_post(owner, at(2024, 3, 1), is_public=True)
    read_post = crud_posts.get_owner_post
    reads = []

    def read_then_approve_once(*args, **kwargs):
        current = read_post(*args, **kwargs)
        if not reads:
            crud_posts.approve(db, post["_id"])
        reads.append(current)
        return current

    monkeypatch.setattr(crud_posts, "get_owner_post", read_then_approve_once)
    updated = crud_posts.update_post(db, owner["_id"], post["_id"], PostUpdate(isPublic=False))
    assert len(reads) == 2
    assert updated["isPublic"] is False
    assert updated["isApproved"] is True


def test_flag_edit_gives_up_when_post_keeps_changing(db, make_post, owner, monkeypatch):
    post = make_post(owner, at(2024, 3, 1))

    def stale_read(*args, **kwargs):
        return {"_id": post["_id"], "user": owner["_id"], "isPublic": True, "isApproved": True}

    monkeypatch.setattr(crud_posts, "get_owner_post", stale_read)
    with pytest.raises(NotFound):
        crud_posts.update_post(db, owner["_id"], post["_id"], PostUpdate(isPublic=False))
    assert db.posts.find_one({"_id": post["_id"]})["isPublic"] is False
