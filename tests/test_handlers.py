"""Tests for the Telegram command handlers."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from memobot.handlers.memos import (
    LIST_LIMIT,
    cmd_delete,
    cmd_list,
    cmd_memo,
    render_list,
    shorten,
    split_memo_args,
)
from memobot.handlers.settings import cmd_setchannel
from memobot.handlers.start import HELP_TEXT, cmd_help
from memobot.models.memo import Memo
from memobot.utils.dates import now_utc


class FakeMessage:
    def __init__(self, user_id: int = 1, chat_id: int = 100, full_name: str = "Alice", username: str = "alice"):
        self.from_user = SimpleNamespace(id=user_id, full_name=full_name, username=username)
        self.chat = SimpleNamespace(id=chat_id)
        self.answers: list[str] = []

    async def answer(self, text: str, **kwargs):
        self.answers.append(text)
        return text


class FakeBot:
    def __init__(self, titles: dict[int, str] | None = None):
        self.titles = titles or {}

    async def get_chat(self, chat_id: int):
        return SimpleNamespace(title=self.titles.get(chat_id), full_name=None)


def command(args: str | None):
    return SimpleNamespace(args=args)


def memo(id: int, owner_id: int = 1, target: int = 100, content: str = "text") -> Memo:
    return Memo(
        id=id,
        owner_id=owner_id,
        delivery_target=target,
        content=content,
        remind_at=now_utc() + timedelta(hours=id),
    )


class TestSplitMemoArgs:
    def test_splits_on_last_pipe(self):
        assert split_memo_args("a | b | tomorrow") == ("a | b", "tomorrow")

    @pytest.mark.parametrize("args", [None, "", "no pipe here", "| tomorrow", "text |", "  |  "])
    def test_invalid(self, args):
        assert split_memo_args(args) is None


class TestShorten:
    def test_short_unchanged(self):
        assert shorten("hello") == "hello"

    def test_long_truncated(self):
        result = shorten("x" * 80)
        assert len(result) == 50
        assert result.endswith("...")


class TestRenderList:
    def test_empty(self):
        text = render_list(user_id=1, chat_id=100, own=[], in_chat=[], counts={}, tz="UTC")
        assert "You have no memos in this chat." in text
        assert "0 memo(s) from all users" in text
        assert "Total personal memos across all chats: 0" in text

    def test_sections(self):
        mine = memo(1, content="buy <milk>")
        theirs = memo(2, owner_id=2)
        text = render_list(
            user_id=1,
            chat_id=100,
            own=[mine],
            in_chat=[mine, theirs],
            counts={100: 1, 200: 3, 300: 2},
            tz="UTC",
            chat_titles={200: "Team"},
        )
        assert "Memo #1" in text
        assert "buy &lt;milk&gt;" in text
        assert "Others' memos in this chat" in text
        assert 'href="tg://user?id=2"' in text
        assert "• Team: 3 memo(s)" in text
        assert "• chat 300: 2 memo(s)" in text
        assert "Total personal memos across all chats: 6" in text

    def test_no_others_section_when_only_own(self):
        mine = memo(1)
        text = render_list(user_id=1, chat_id=100, own=[mine], in_chat=[mine], counts={100: 1}, tz="UTC")
        assert "Others' memos" not in text
        assert "other chats" not in text

    def test_long_list_is_cut(self):
        many = [memo(i, content="y" * 200) for i in range(1, 60)]
        text = render_list(user_id=1, chat_id=100, own=many, in_chat=many, counts={100: 59}, tz="UTC")
        assert len(text) < LIST_LIMIT + 200
        assert "more" in text


class TestMemoCommand:
    async def test_creates_memo(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("Call mom | in 2 hours"), service, parser, "UTC")

        assert msg.answers[0].startswith("✅")
        assert "Call mom" in msg.answers[0]
        memos = await service.list_pending(1, 100)
        assert [m.content for m in memos] == ["Call mom"]

    async def test_usage(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("no time given"), service, parser, "UTC")
        assert "Usage" in msg.answers[0]

    async def test_unparseable_time(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("Call | tomorrow at blah"), service, parser, "UTC")
        assert msg.answers[0].startswith("❌")
        assert "in 2 hours" in msg.answers[0]
        assert await service.list_pending(1, 100) == []

    async def test_out_of_range_time(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("Call | in 99999999999 days"), service, parser, "UTC")
        assert msg.answers[0].startswith("❌ Could not understand the time.")
        assert await service.list_pending(1, 100) == []

    async def test_past_time(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("Call | 2001-01-01 10:00"), service, parser, "UTC")
        assert msg.answers[0] == "❌ Memo time must be in the future."

    async def test_content_is_escaped(self, service, parser):
        msg = FakeMessage()
        await cmd_memo(msg, command("<script> | in 1 hour"), service, parser, "UTC")
        assert "&lt;script&gt;" in msg.answers[0]


class TestListCommand:
    async def test_lists_own_and_others(self, service):
        await service.create_memo(1, 100, "mine", now_utc() + timedelta(hours=1))
        await service.create_memo(2, 100, "theirs", now_utc() + timedelta(hours=2))
        await service.create_memo(1, 200, "elsewhere", now_utc() + timedelta(hours=3))

        msg = FakeMessage()
        await cmd_list(msg, FakeBot({200: "Family"}), service, "UTC")

        text = msg.answers[0]
        assert "mine" in text
        assert "theirs" in text
        assert "• Family: 1 memo(s)" in text
        assert "Total personal memos across all chats: 2" in text


class TestDeleteCommand:
    async def test_usage(self, service):
        msg = FakeMessage()
        await cmd_delete(msg, command("abc"), service)
        assert "Usage" in msg.answers[0]

    async def test_deletes_own(self, service):
        m = await service.create_memo(1, 100, "x", now_utc() + timedelta(hours=1))
        msg = FakeMessage()
        await cmd_delete(msg, command(f"#{m.id}"), service)
        assert msg.answers[0] == f"✅ Memo #{m.id} deleted."
        assert await service.list_pending(1, 100) == []

    async def test_foreign_memo(self, service):
        m = await service.create_memo(2, 100, "x", now_utc() + timedelta(hours=1))
        msg = FakeMessage(user_id=1)
        await cmd_delete(msg, command(str(m.id)), service)
        assert msg.answers[0] == f"❌ Memo #{m.id} not found or it is not yours."
        assert len(await service.list_pending(2, 100)) == 1


class TestSetChannel:
    async def test_sets_default_target(self, service):
        msg = FakeMessage(user_id=5, chat_id=-1001)
        await cmd_setchannel(msg, service)
        assert msg.answers[0].startswith("✅")
        assert await service.get_default_target(5) == -1001


class TestHelp:
    async def test_help(self):
        msg = FakeMessage()
        await cmd_help(msg)
        assert msg.answers == [HELP_TEXT]
