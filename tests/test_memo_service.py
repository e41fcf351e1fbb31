"""Tests for MemoService."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from memobot.repositories.memo_repo import MemoRepo
from memobot.services.errors import (
    InvalidContent,
    InvalidSchedule,
    NotFound,
    NotFoundOrForbidden,
    StorageFailure,
)
from memobot.services.memo_service import MemoService
from memobot.utils.dates import now_utc


def in_(minutes: int) -> datetime:
    return now_utc() + timedelta(minutes=minutes)


class TestCreate:
    async def test_round_trip(self, service, parser, session_factory):
        remind_at = parser.parse("in 2 hours", "UTC", now_utc())
        memo = await service.create_memo(1, 100, "Call mom", remind_at)

        async with session_factory() as s:
            fetched = await MemoService(s).get_memo(memo.id)
        assert fetched.content == "Call mom"
        assert fetched.remind_at == remind_at
        assert fetched.owner_id == 1
        assert fetched.delivery_target == 100
        assert fetched.sent is False
        assert fetched.sent_at is None

    async def test_content_is_stripped(self, service):
        memo = await service.create_memo(1, 100, "  water plants \n", in_(10))
        assert memo.content == "water plants"

    async def test_empty_content_rejected(self, service):
        with pytest.raises(InvalidContent):
            await service.create_memo(1, 100, "   ", in_(10))
        assert await service.list_all_pending_in_target(100) == []

    async def test_past_time_rejected_and_not_persisted(self, service):
        with pytest.raises(InvalidSchedule):
            await service.create_memo(1, 100, "too late", in_(-5))
        assert await service.list_all_pending_in_target(100) == []

    async def test_time_equal_to_now_rejected(self, session):
        fixed = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        svc = MemoService(session, clock=lambda: fixed)
        with pytest.raises(InvalidSchedule):
            await svc.create_memo(1, 100, "now", fixed)

    async def test_naive_time_is_utc(self, service):
        naive = (now_utc() + timedelta(hours=1)).replace(tzinfo=None, microsecond=0)
        memo = await service.create_memo(1, 100, "naive", naive)
        assert memo.remind_at == naive.replace(tzinfo=timezone.utc)

    async def test_check_constraint_maps_to_invalid_schedule(self, session):
        # validation clock lags behind: the store-level check must still reject
        lagging = MemoService(session, clock=lambda: now_utc() - timedelta(hours=1))
        with pytest.raises(InvalidSchedule):
            await lagging.create_memo(1, 100, "race", in_(-1))
        assert await lagging.list_all_pending_in_target(100) == []

    async def test_storage_error_is_wrapped(self, session):
        class BrokenRepo(MemoRepo):
            async def create(self, **kwargs):
                raise OperationalError("INSERT INTO memos", {}, Exception("disk I/O error"))

        svc = MemoService(session, memos=BrokenRepo(session))
        with pytest.raises(StorageFailure) as exc:
            await svc.create_memo(1, 100, "x", in_(10))
        assert "disk I/O" not in exc.value.user_message
        assert isinstance(exc.value.cause, OperationalError)


class TestListing:
    async def test_list_pending_filters_and_orders(self, service, insert_memo):
        late = await service.create_memo(1, 100, "late", in_(300))
        soon = await service.create_memo(1, 100, "soon", in_(10))
        middle = await service.create_memo(1, 100, "middle", in_(60))
        await service.create_memo(1, 200, "other chat", in_(20))
        await service.create_memo(2, 100, "other user", in_(30))
        await insert_memo(owner_id=1, delivery_target=100, content="done", sent=True)

        memos = await service.list_pending(1, 100)
        assert [m.id for m in memos] == [soon.id, middle.id, late.id]
        assert all(not m.sent for m in memos)

    async def test_sent_memo_leaves_pending_list(self, service):
        memo = await service.create_memo(1, 100, "x", in_(10))
        await service.mark_sent(memo.id)
        assert await service.list_pending(1, 100) == []

    async def test_list_all_pending_in_target(self, service):
        a = await service.create_memo(1, 100, "a", in_(50))
        b = await service.create_memo(2, 100, "b", in_(5))
        await service.create_memo(1, 200, "elsewhere", in_(5))

        memos = await service.list_all_pending_in_target(100)
        assert [m.id for m in memos] == [b.id, a.id]

    async def test_counts_by_target(self, service):
        await service.create_memo(1, 100, "a", in_(10))
        await service.create_memo(1, 100, "b", in_(20))
        sent = await service.create_memo(1, 100, "c", in_(30))
        await service.create_memo(1, 200, "d", in_(10))
        await service.create_memo(2, 300, "not mine", in_(10))
        await service.mark_sent(sent.id)

        assert await service.counts_by_target(1) == {100: 2, 200: 1}
        assert await service.counts_by_target(42) == {}


class TestGetDelete:
    async def test_get_missing(self, service):
        with pytest.raises(NotFound):
            await service.get_memo(999)

    async def test_delete_own(self, service):
        memo = await service.create_memo(1, 100, "x", in_(10))
        await service.delete_memo(memo.id, 1)
        with pytest.raises(NotFound):
            await service.get_memo(memo.id)

    async def test_delete_foreign_memo_fails_and_keeps_it(self, service, session_factory):
        memo = await service.create_memo(222, 100, "B's memo", in_(10))

        with pytest.raises(NotFoundOrForbidden) as exc:
            await service.delete_memo(memo.id, 111)
        # owner is not revealed
        assert "222" not in exc.value.user_message

        async with session_factory() as s:
            still_there = await MemoService(s).get_memo(memo.id)
        assert still_there.content == "B's memo"

    async def test_delete_missing_and_foreign_look_the_same(self, service):
        memo = await service.create_memo(2, 100, "x", in_(10))
        with pytest.raises(NotFoundOrForbidden) as foreign:
            await service.delete_memo(memo.id, 1)
        with pytest.raises(NotFoundOrForbidden) as missing:
            await service.delete_memo(memo.id + 1000, 1)
        assert foreign.value.user_message.replace(str(memo.id), "N") == \
            missing.value.user_message.replace(str(memo.id + 1000), "N")


class TestDueAndMarkSent:
    async def test_due_iff_time_reached_and_unsent(self, service):
        memo = await service.create_memo(1, 100, "x", in_(60))
        t = memo.remind_at

        assert memo.id not in [m.id for m in await service.due_memos(t - timedelta(seconds=1))]
        assert memo.id in [m.id for m in await service.due_memos(t)]
        assert memo.id in [m.id for m in await service.due_memos(t + timedelta(hours=1))]

        await service.mark_sent(memo.id)
        assert await service.due_memos(t + timedelta(hours=1)) == []

    async def test_due_order_and_limit(self, service):
        b = await service.create_memo(1, 100, "b", in_(20))
        a = await service.create_memo(2, 200, "a", in_(10))
        c = await service.create_memo(3, 300, "c", in_(30))
        as_of = in_(60)

        assert [m.id for m in await service.due_memos(as_of)] == [a.id, b.id, c.id]
        assert [m.id for m in await service.due_memos(as_of, limit=2)] == [a.id, b.id]

    async def test_mark_sent_is_idempotent(self, service, session_factory):
        memo = await service.create_memo(1, 100, "x", in_(10))
        await service.mark_sent(memo.id)

        async with session_factory() as s:
            first = await MemoRepo(s).get(memo.id)
        assert first.sent is True
        assert first.sent_at is not None

        await service.mark_sent(memo.id)
        async with session_factory() as s:
            second = await MemoRepo(s).get(memo.id)
        assert second.sent is True
        assert second.sent_at == first.sent_at

    async def test_mark_sent_unknown_id_is_noop(self, service):
        await service.mark_sent(12345)


class TestUserPreferences:
    async def test_default_target_roundtrip(self, service):
        assert await service.get_default_target(7) is None

        await service.register_user(7, "alice")
        assert await service.get_default_target(7) is None

        await service.set_default_target(7, -100500)
        assert await service.get_default_target(7) == -100500

        await service.set_default_target(7, -100600)
        assert await service.get_default_target(7) == -100600

    async def test_register_keeps_target(self, service):
        await service.set_default_target(8, 555)
        await service.register_user(8, "bob")
        user = await service.users.get(8)
        assert user.username == "bob"
        assert user.delivery_target == 555
