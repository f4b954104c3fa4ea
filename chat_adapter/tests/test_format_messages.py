from chat_adapter.domain.exceptions import ImageError
from chat_adapter.domain.models import ChatMessage
from chat_adapter.infrastructure.images import Image, ImageBuffer
from chat_adapter.providers.openai.processor import format_messages
from chat_adapter.tools.definitions import FunctionCall, ToolCall


class ResolverStub:
    """把包含 "broken" 的地址视为解析失败。"""

    def __init__(self):
        self.calls = []

    def resolve(self, url):
        self.calls.append(url)
        if "broken" in url:
            raise ImageError(code="IMAGE_FETCH_ERROR", message="404 not found")
        return Image(url=url, mime_type="image/png", width=1, height=1, size=10)


def _conversation():
    return [
        ChatMessage(role="system", content="you are helpful"),
        ChatMessage(role="user", content="look ![cat](https://a.example/cat.png) and https://b.example/dog.jpg"),
        ChatMessage(
            role="assistant",
            content="",
            tool_calls=[ToolCall(id="t1", name="search", arguments={"q": "cats"})],
        ),
        ChatMessage(role="tool", content="result", tool_call_id="t1"),
    ]


def test_non_vision_model_passes_text_through():
    resolver = ResolverStub()
    messages = _conversation()
    formatted = format_messages(messages, "gpt-3.5-turbo", ImageBuffer(), resolver)
    assert [m["content"] for m in formatted] == [m.content for m in messages]
    assert [m["role"] for m in formatted] == ["system", "user", "assistant", "tool"]
    assert resolver.calls == []


def test_non_vision_keeps_tool_fields():
    formatted = format_messages(_conversation(), "gpt-3.5-turbo", resolver=ResolverStub())
    call = formatted[2]["tool_calls"][0]
    assert call == {
        "id": "t1",
        "type": "function",
        "function": {"name": "search", "arguments": '{"q": "cats"}'},
    }
    assert formatted[3]["tool_call_id"] == "t1"


def test_vision_model_splits_images_before_text():
    buffer = ImageBuffer()
    formatted = format_messages(_conversation(), "gpt-4o", buffer, ResolverStub())
    user = formatted[1]
    assert user["content"] == [
        {"type": "image_url", "image_url": {"url": "https://a.example/cat.png"}},
        {"type": "image_url", "image_url": {"url": "https://b.example/dog.jpg"}},
        {"type": "text", "text": "look and"},
    ]
    assert len(buffer) == 2


def test_vision_model_non_user_roles_are_single_text_segment():
    formatted = format_messages(_conversation(), "gpt-4o-2024-08-06", ImageBuffer(), ResolverStub())
    assert formatted[0]["content"] == [{"type": "text", "text": "you are helpful"}]
    assert formatted[2]["content"] == [{"type": "text", "text": ""}]
    assert formatted[2]["tool_calls"][0]["id"] == "t1"
    assert formatted[3]["content"] == [{"type": "text", "text": "result"}]


def test_vision_model_skips_failed_images(caplog):
    buffer = ImageBuffer()
    resolver = ResolverStub()
    messages = [
        ChatMessage(
            role="user",
            content="![x](https://broken.example/very/long/path/image.png) ![y](https://ok.example/y.png) hi",
        )
    ]
    with caplog.at_level("WARNING", logger="chat_adapter"):
        formatted = format_messages(messages, "gpt-4o", buffer, resolver)
    assert formatted[0]["content"] == [
        {"type": "image_url", "image_url": {"url": "https://ok.example/y.png"}},
        {"type": "text", "text": "hi"},
    ]
    assert [img.url for img in buffer] == ["https://ok.example/y.png"]
    assert len(resolver.calls) == 2
    warning = caplog.records[-1].getMessage()
    assert "cannot process image: 404 not found" in warning
    assert "(source: https://broken.example/v...)" in warning


def test_vision_model_text_only_user_message():
    formatted = format_messages([ChatMessage(role="user", content="just text")], "gpt-4o", None, ResolverStub())
    assert formatted[0]["content"] == [{"type": "text", "text": "just text"}]


def test_function_call_and_name_are_forwarded():
    message = ChatMessage(
        role="assistant",
        content="",
        name="helper",
        function_call=FunctionCall(name="lookup", arguments='{"id": 1}'),
    )
    formatted = format_messages([message], "gpt-3.5-turbo")
    assert formatted[0]["name"] == "helper"
    assert formatted[0]["function_call"] == {"name": "lookup", "arguments": '{"id": 1}'}


def test_extra_vision_models_from_settings(monkeypatch):
    class DummySettings:
        vision_models = ["my-vl-model"]
        completion_models = []

    monkeypatch.setattr("chat_adapter.providers.registry.settings", DummySettings())
    messages = [ChatMessage(role="user", content="![a](https://x.example/a.png)")]
    formatted = format_messages(messages, "my-vl-model", ImageBuffer(), ResolverStub())
    assert formatted[0]["content"][0]["type"] == "image_url"
