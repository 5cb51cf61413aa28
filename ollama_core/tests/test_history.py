import pytest

from ollama_core.domain.history import MessagesHistory
from ollama_core.domain.models import ChatMessage


def test_append_creates_and_orders():
    history = MessagesHistory()
    history.append("c1", ChatMessage.user("a"))
    history.append("c1", ChatMessage.assistant("b"))
    assert history.snapshot("c1") == [ChatMessage.user("a"), ChatMessage.assistant("b")]
    assert "c1" in history
    assert len(history) == 1


def test_snapshot_is_a_copy():
    history = MessagesHistory()
    history.append("c1", ChatMessage.user("a"))
    snap = history.snapshot("c1")
    snap.append(ChatMessage.user("injected"))
    assert history.snapshot("c1") == [ChatMessage.user("a")]
    assert history.snapshot("missing") == []


def test_rollback_last_removes_only_latest():
    history = MessagesHistory()
    history.append("c1", ChatMessage.user("a"))
    history.append("c1", ChatMessage.assistant("b"))
    history.rollback_last("c1")
    assert history.snapshot("c1") == [ChatMessage.user("a")]


def test_rollback_without_history_is_noop():
    history = MessagesHistory()
    history.rollback_last("missing")
    history.append("c1", ChatMessage.user("a"))
    history.rollback_last("c1")
    history.rollback_last("c1")
    assert history.snapshot("c1") == []
    assert history.snapshot("missing") == []


def test_conversations_do_not_share_storage():
    history = MessagesHistory()
    history.append("c1", ChatMessage.user("a"))
    history.append("c2", ChatMessage.user("b"))
    history.rollback_last("c2")
    assert history.snapshot("c1") == [ChatMessage.user("a")]
    assert sorted(history.ids()) == ["c1", "c2"]


def test_clear_and_clear_all():
    history = MessagesHistory()
    history.append("c1", ChatMessage.user("a"))
    history.append("c1", ChatMessage.assistant("b"))
    history.append("c2", ChatMessage.user("x"))
    history.clear("c1")
    assert "c1" not in history
    history.clear_all()
    assert len(history) == 0


def test_messages_limit_keeps_leading_system_message():
    history = MessagesHistory(messages_limit=3)
    history.append("c1", ChatMessage.system("sys"))
    history.append("c1", ChatMessage.user("1"))
    history.append("c1", ChatMessage.assistant("2"))
    history.append("c1", ChatMessage.user("3"))
    assert [m.content for m in history.snapshot("c1")] == ["sys", "2", "3"]


def test_messages_limit_drops_oldest():
    history = MessagesHistory(messages_limit=2)
    for i in range(4):
        history.append("c1", ChatMessage.user(str(i)))
    assert [m.content for m in history.snapshot("c1")] == ["2", "3"]


def test_messages_limit_must_be_positive():
    with pytest.raises(ValueError):
        MessagesHistory(messages_limit=0)


def test_untrimmed_append_rolls_back_exactly_at_capacity():
    history = MessagesHistory(messages_limit=2)
    history.append("c1", ChatMessage.user("u1"))
    history.append("c1", ChatMessage.assistant("r1"))
    history.append("c1", ChatMessage.user("u2"), trim=False)
    assert len(history.snapshot("c1")) == 3
    history.rollback_last("c1")
    assert history.snapshot("c1") == [ChatMessage.user("u1"), ChatMessage.assistant("r1")]


def test_trimmed_append_catches_up_after_untrimmed_one():
    history = MessagesHistory(messages_limit=2)
    history.append("c1", ChatMessage.user("u1"))
    history.append("c1", ChatMessage.assistant("r1"))
    history.append("c1", ChatMessage.user("u2"), trim=False)
    history.append("c1", ChatMessage.assistant("r2"))
    assert history.snapshot("c1") == [ChatMessage.user("u2"), ChatMessage.assistant("r2")]


def test_limit_of_one_keeps_newest_even_after_system():
    history = MessagesHistory(messages_limit=1)
    history.append("c1", ChatMessage.system("sys"))
    history.append("c1", ChatMessage.user("hi"))
    assert history.snapshot("c1") == [ChatMessage.user("hi")]
