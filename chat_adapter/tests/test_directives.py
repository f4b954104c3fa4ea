from chat_adapter.domain.directives import (
    apply_directive,
    extract_directive,
    extract_directive_from_messages,
)
from chat_adapter.domain.models import ChatMessage


def test_extract_think_only():
    content, directive = extract_directive("/think")
    assert content == ""
    assert directive is True


def test_extract_no_think_with_text():
    content, directive = extract_directive("/no_think hello")
    assert content == "hello"
    assert directive is False


def test_extract_without_directive():
    content, directive = extract_directive("hello")
    assert content == "hello"
    assert directive is None


def test_extract_empty_content():
    assert extract_directive("") == ("", None)


def test_extract_variants_case_insensitive():
    assert extract_directive("/No-Think please")[1] is False
    assert extract_directive("/NOTHINK")[1] is False
    assert extract_directive("/THINK about it") == ("about it", True)
    assert extract_directive("answer briefly no_think") == ("answer briefly", False)


def test_extract_last_occurrence_wins():
    content, directive = extract_directive("/no_think first /think second")
    assert directive is True
    assert "/think" not in content and "/no_think" not in content

    _, directive = extract_directive("/think a /no-think")
    assert directive is False


def test_plain_words_are_not_directives():
    content, directive = extract_directive("I think /thinking is fine")
    assert content == "I think /thinking is fine"
    assert directive is None


def test_extract_from_messages_later_message_overrides():
    messages = [
        ChatMessage(role="system", content="be nice /think"),
        ChatMessage(role="user", content="/no_think hi"),
        ChatMessage(role="assistant", content="hello"),
    ]
    result, directive = extract_directive_from_messages(messages)
    assert directive is False
    assert [m.content for m in result] == ["be nice", "hi", "hello"]


def test_extract_from_messages_absent_does_not_reset():
    messages = [
        ChatMessage(role="user", content="/think q1"),
        ChatMessage(role="user", content="q2"),
    ]
    _, directive = extract_directive_from_messages(messages)
    assert directive is True


def test_apply_enabled_to_user():
    messages = [ChatMessage(role="user", content="hi")]
    apply_directive(messages, True)
    assert messages[0].content == "hi\n/think"


def test_apply_disabled_to_empty_content():
    messages = [ChatMessage(role="user", content="   ")]
    apply_directive(messages, False)
    assert messages[0].content == "/no_think"


def test_apply_targets_last_user_or_system():
    messages = [
        ChatMessage(role="user", content="first"),
        ChatMessage(role="system", content="rules"),
        ChatMessage(role="assistant", content="ok"),
    ]
    apply_directive(messages, True)
    assert messages[0].content == "first"
    assert messages[1].content == "rules\n/think"
    assert messages[2].content == "ok"


def test_apply_without_target_is_noop():
    messages = [ChatMessage(role="assistant", content="x")]
    apply_directive(messages, True)
    assert messages[0].content == "x"


def test_apply_none_directive_is_noop():
    messages = [ChatMessage(role="user", content="hi")]
    apply_directive(messages, None)
    assert messages[0].content == "hi"
    assert apply_directive([], True) == []


def test_apply_then_extract_round_trip():
    for value in (True, False):
        messages = [ChatMessage(role="user", content="explain recursion")]
        apply_directive(messages, value)
        content, directive = extract_directive(messages[0].content)
        assert directive is value
        assert content == "explain recursion"
