from dataclasses import fields

import pytest

from ollama_core.domain.exceptions import DecodeError
from ollama_core.domain.models import (
    ChatMessage,
    ChatMessageRequest,
    ChatMessageResponse,
    Image,
    MessageRole,
)


def test_message_helpers_fix_role():
    assert ChatMessage.user("hi").role == MessageRole.USER
    assert ChatMessage.assistant("hello").role == MessageRole.ASSISTANT
    assert ChatMessage.system("be brief").role == MessageRole.SYSTEM
    assert ChatMessage.user("hi").images is None


def test_message_images_return_new_values():
    msg = ChatMessage.user("look")
    with_img = msg.add_image(Image.from_base64("aGk="))
    assert msg.images is None
    assert with_img.images == (Image(base64="aGk="),)
    both = with_img.add_image(Image.from_bytes(b"hi"))
    assert [i.base64 for i in both.images] == ["aGk=", "aGk="]
    assert msg.with_images([]).images == ()


def test_message_is_immutable_and_comparable():
    msg = ChatMessage.user("hi")
    with pytest.raises(AttributeError):
        msg.content = "changed"
    assert msg == ChatMessage(role=MessageRole.USER, content="hi")


def test_message_payload():
    msg = ChatMessage.user("look", images=[Image.from_base64("abc")])
    assert msg.to_payload() == {"role": "user", "content": "look", "images": ["abc"]}
    assert ChatMessage.from_payload({"role": "assistant", "content": "ok"}) == ChatMessage.assistant("ok")


@pytest.mark.parametrize(
    "payload",
    [
        "not-an-object",
        {"role": "robot", "content": "x"},
        {"role": "user"},
        {"role": "user", "content": "x", "images": [1]},
    ],
)
def test_message_from_payload_rejects_bad_shape(payload):
    with pytest.raises(DecodeError):
        ChatMessage.from_payload(payload)


def test_request_payload_only_includes_set_fields():
    req = ChatMessageRequest(model_name="llama3", messages=[ChatMessage.user("hi")])
    assert req.to_payload() == {
        "model": "llama3",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }
    req.with_options({"temperature": 0.2}).with_format("json").with_keep_alive("5m").with_template("{{ .Prompt }}")
    payload = req.to_payload()
    assert payload["options"] == {"temperature": 0.2}
    assert payload["format"] == "json"
    assert payload["keep_alive"] == "5m"
    assert payload["template"] == "{{ .Prompt }}"


def test_response_final_data_only_when_done():
    stats = {
        "total_duration": 10,
        "prompt_eval_count": 2,
        "prompt_eval_duration": 3,
        "eval_count": 4,
        "eval_duration": 5,
    }
    partial = ChatMessageResponse.from_payload(
        {"model": "llama3", "created_at": "2023-08-04T08:52:19Z", "message": {"role": "assistant", "content": "a"}, "done": False, **stats}
    )
    assert partial.final_data is None
    final = ChatMessageResponse.from_payload(
        {"model": "llama3", "created_at": "2023-08-04T08:52:19Z", "done": True, **stats}
    )
    assert final.message is None
    assert final.final_data.eval_count == 4
    assert final.final_data.total_duration == 10


def test_response_done_without_stats_has_no_final_data():
    res = ChatMessageResponse.from_payload({"model": "m", "created_at": "t", "done": True})
    assert res.done is True
    assert res.final_data is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"created_at": "t", "done": True},
        {"model": "m", "created_at": "t"},
        {"model": "m", "created_at": "t", "done": "yes"},
        {"model": "m", "created_at": "t", "done": False, "message": {"role": "user"}},
    ],
)
def test_response_from_payload_rejects_bad_shape(payload):
    with pytest.raises(DecodeError):
        ChatMessageResponse.from_payload(payload)


def test_response_carries_only_typed_fields():
    res = ChatMessageResponse.from_payload({"model": "m", "created_at": "t", "done": False, "extra": "ignored"})
    assert [f.name for f in fields(res)] == ["model", "created_at", "message", "done", "final_data"]
    assert res == ChatMessageResponse(model="m", created_at="t")
