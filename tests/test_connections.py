"""Ledger: send / review / входящие / мэтчи / контакты."""

import pytest

from constants import STATUS_ACCEPT, STATUS_LIKE, STATUS_PASS, STATUS_REJECT
from exceptions import (
    ConflictError,
    DuplicateRequest,
    InvalidAction,
    RequestNotFound,
    SelfRequest,
    TargetNotFound,
)
from services import connections as ledger
from services.connections import (
    get_connection_contact,
    get_connections,
    get_pending_requests,
    review_connection_request,
    send_connection_request,
)
from services.feed import get_feed


# -- send ----------------------------------------------------------------------


async def test_send_like_creates_record(db, trio):
    alice, bob, _ = trio

    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    assert req.id is not None
    assert req.from_user_id == alice.id
    assert req.to_user_id == bob.id
    assert req.status == STATUS_LIKE
    assert (req.user_low_id, req.user_high_id) == (alice.id, bob.id)
    assert req.created_at is not None
    assert req.updated_at is not None


async def test_send_pass_creates_terminal_record(db, trio):
    alice, _, carl = trio

    req = await send_connection_request(
        db, actor_id=alice.id, target_id=carl.id, action=STATUS_PASS
    )

    assert req.status == STATUS_PASS


@pytest.mark.parametrize("action", [STATUS_ACCEPT, STATUS_REJECT, "love", ""])
async def test_send_rejects_unknown_action(db, trio, action):
    alice, bob, _ = trio

    with pytest.raises(InvalidAction) as exc_info:
        await send_connection_request(
            db, actor_id=alice.id, target_id=bob.id, action=action
        )

    assert exc_info.value.code == "INVALID_STATUS"


async def test_send_to_self_fails(db, trio):
    alice, _, _ = trio

    with pytest.raises(SelfRequest):
        await send_connection_request(
            db, actor_id=alice.id, target_id=alice.id, action=STATUS_LIKE
        )


async def test_send_to_self_fails_even_for_unknown_id(db):
    # self-проверка не зависит от того, существует ли пользователь
    with pytest.raises(SelfRequest):
        await send_connection_request(db, actor_id=999, target_id=999, action=STATUS_LIKE)


async def test_self_request_is_an_invalid_action(db, trio):
    alice, _, _ = trio

    with pytest.raises(InvalidAction):
        await send_connection_request(
            db, actor_id=alice.id, target_id=alice.id, action=STATUS_PASS
        )


async def test_send_to_missing_user_fails(db, trio):
    alice, _, _ = trio

    with pytest.raises(TargetNotFound) as exc_info:
        await send_connection_request(
            db, actor_id=alice.id, target_id=404, action=STATUS_LIKE
        )

    assert exc_info.value.user_id == 404


@pytest.mark.parametrize("second_action", [STATUS_LIKE, STATUS_PASS])
@pytest.mark.parametrize("reverse", [False, True])
async def test_second_send_for_pair_is_duplicate(db, trio, second_action, reverse):
    alice, bob, _ = trio
    alice_id, bob_id = alice.id, bob.id

    await send_connection_request(
        db, actor_id=alice_id, target_id=bob_id, action=STATUS_LIKE
    )

    actor, target = (bob_id, alice_id) if reverse else (alice_id, bob_id)
    with pytest.raises(DuplicateRequest):
        await send_connection_request(
            db, actor_id=actor, target_id=target, action=second_action
        )


async def test_pass_cannot_be_circumvented_by_the_other_side(db, trio):
    alice, bob, _ = trio

    await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_PASS
    )

    with pytest.raises(DuplicateRequest):
        await send_connection_request(
            db, actor_id=bob.id, target_id=alice.id, action=STATUS_LIKE
        )


# -- review --------------------------------------------------------------------


async def test_recipient_accepts_like(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    result = await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    assert result.request.id == req.id
    assert result.request.status == STATUS_ACCEPT
    assert result.counterpart.id == alice.id
    assert result.counterpart.first_name == "Alice"
    assert result.counterpart.about == "Горы и поезда"


async def test_review_result_never_exposes_contacts(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    result = await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_REJECT
    )

    dumped = result.counterpart.model_dump()
    assert set(dumped) == {"id", "first_name", "last_name", "age", "gender", "image", "about"}


async def test_review_refreshes_updated_at(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    created_at = req.created_at

    result = await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    assert result.request.updated_at >= created_at


async def test_rejected_request_cannot_be_reviewed_again(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_REJECT
    )

    with pytest.raises(RequestNotFound):
        await review_connection_request(
            db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
        )


async def test_sender_cannot_review_own_like(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    with pytest.raises(RequestNotFound):
        await review_connection_request(
            db, actor_id=alice.id, request_id=req.id, decision=STATUS_ACCEPT
        )


async def test_third_party_cannot_review(db, trio):
    alice, bob, carl = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    with pytest.raises(RequestNotFound):
        await review_connection_request(
            db, actor_id=carl.id, request_id=req.id, decision=STATUS_ACCEPT
        )


async def test_pass_record_is_not_reviewable(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_PASS
    )

    with pytest.raises(RequestNotFound):
        await review_connection_request(
            db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
        )


async def test_review_missing_request(db, trio):
    _, bob, _ = trio

    with pytest.raises(RequestNotFound):
        await review_connection_request(
            db, actor_id=bob.id, request_id=12345, decision=STATUS_ACCEPT
        )


@pytest.mark.parametrize("decision", [STATUS_LIKE, STATUS_PASS, "maybe"])
async def test_review_rejects_unknown_decision(db, trio, decision):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    with pytest.raises(InvalidAction):
        await review_connection_request(
            db, actor_id=bob.id, request_id=req.id, decision=decision
        )


async def test_lost_status_race_is_a_conflict(db, trio, monkeypatch):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    async def _someone_was_faster(session, **kwargs):
        return None

    monkeypatch.setattr(ledger, "update_connection_request_status", _someone_was_faster)

    with pytest.raises(ConflictError) as exc_info:
        await review_connection_request(
            db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
        )

    assert exc_info.value.code == "CONFLICT"


# -- pending / connections -----------------------------------------------------


async def test_pending_lists_incoming_likes_with_sender(db, trio):
    alice, bob, carl = trio
    like = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    # pass не попадает во входящие
    await send_connection_request(
        db, actor_id=carl.id, target_id=bob.id, action=STATUS_PASS
    )

    pending = await get_pending_requests(db, user_id=bob.id)

    assert [p.request.id for p in pending] == [like.id]
    assert pending[0].sender.id == alice.id
    assert pending[0].sender.first_name == "Alice"


async def test_pending_is_empty_for_sender(db, trio):
    alice, bob, _ = trio
    await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )

    assert await get_pending_requests(db, user_id=alice.id) == []


async def test_reviewed_request_leaves_pending(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    assert await get_pending_requests(db, user_id=bob.id) == []


async def test_connections_are_symmetric_and_exclude_self(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    alice_connections = await get_connections(db, user_id=alice.id)
    bob_connections = await get_connections(db, user_id=bob.id)

    assert [p.id for p in alice_connections] == [bob.id]
    assert [p.id for p in bob_connections] == [alice.id]


async def test_rejected_and_pending_are_not_connections(db, trio):
    alice, bob, carl = trio
    rejected = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=rejected.id, decision=STATUS_REJECT
    )
    await send_connection_request(
        db, actor_id=carl.id, target_id=alice.id, action=STATUS_LIKE
    )

    assert await get_connections(db, user_id=alice.id) == []
    assert await get_connections(db, user_id=bob.id) == []


async def test_read_queries_are_idempotent(db, trio):
    alice, bob, carl = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )
    await send_connection_request(
        db, actor_id=carl.id, target_id=bob.id, action=STATUS_LIKE
    )

    assert await get_pending_requests(db, user_id=bob.id) == await get_pending_requests(
        db, user_id=bob.id
    )
    assert await get_connections(db, user_id=bob.id) == await get_connections(
        db, user_id=bob.id
    )


# -- contacts ------------------------------------------------------------------


async def test_contact_is_revealed_after_accept(db, trio):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=bob.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    assert await get_connection_contact(db, user_id=bob.id, other_user_id=alice.id) == (
        f"@{alice.username}"
    )
    assert await get_connection_contact(db, user_id=alice.id, other_user_id=bob.id) == (
        f"@{bob.username}"
    )


async def test_contact_without_username_is_none(db, make_user):
    alice = await make_user("Alice")
    ghost = await make_user("Ghost", username=None)
    req = await send_connection_request(
        db, actor_id=ghost.id, target_id=alice.id, action=STATUS_LIKE
    )
    await review_connection_request(
        db, actor_id=alice.id, request_id=req.id, decision=STATUS_ACCEPT
    )

    assert await get_connection_contact(db, user_id=alice.id, other_user_id=ghost.id) is None


@pytest.mark.parametrize("decision", [None, STATUS_REJECT])
async def test_contact_is_hidden_without_match(db, trio, decision):
    alice, bob, _ = trio
    req = await send_connection_request(
        db, actor_id=alice.id, target_id=bob.id, action=STATUS_LIKE
    )
    if decision:
        await review_connection_request(
            db, actor_id=bob.id, request_id=req.id, decision=decision
        )

    with pytest.raises(RequestNotFound):
        await get_connection_contact(db, user_id=alice.id, other_user_id=bob.id)


async def test_contact_of_stranger_is_hidden(db, trio):
    alice, _, carl = trio

    with pytest.raises(RequestNotFound):
        await get_connection_contact(db, user_id=alice.id, other_user_id=carl.id)


# -- сценарий целиком ----------------------------------------------------------


async def test_like_pass_accept_scenario(db, trio, make_user):
    alice, bob, carl = trio
    dave = await make_user("Dave")
    assert (alice.id, bob.id, carl.id) == (1, 2, 3)

    r1 = await send_connection_request(db, actor_id=1, target_id=2, action=STATUS_LIKE)
    r2 = await send_connection_request(db, actor_id=1, target_id=3, action=STATUS_PASS)
    assert (r1.status, r2.status) == (STATUS_LIKE, STATUS_PASS)

    feed = await get_feed(db, user_id=1)
    assert [p.id for p in feed.items] == [dave.id]

    result = await review_connection_request(
        db, actor_id=2, request_id=r1.id, decision=STATUS_ACCEPT
    )
    assert result.request.status == STATUS_ACCEPT

    assert [p.id for p in await get_connections(db, user_id=1)] == [2]
    assert [p.id for p in await get_connections(db, user_id=2)] == [1]
    assert await get_pending_requests(db, user_id=1) == []
