import pytest

from structured_agent.provider_ir import (
    Message,
    OutputMessage,
    Response,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    message_from_dict,
    normalize_messages,
    output_message_from_dict,
    output_message_to_dict,
    validate_tool_correlation,
)


def test_message_accepts_string_or_blocks():
    assert Message(role="user", content="hi").content == "hi"
    msg = Message(role="assistant", content=[TextBlock("a"), ToolUseBlock(id="t1", name="x", input={})])
    assert [block.type for block in msg.content] == ["text", "tool_use"]


def test_role_is_immutable():
    msg = Message(role="user", content="hi")
    with pytest.raises(AttributeError):
        msg.role = "assistant"


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        Message(role="system", content="hi")


def test_tool_use_only_in_assistant_messages():
    with pytest.raises(ValueError):
        Message(role="user", content=[ToolUseBlock(id="t1", name="x")])


def test_tool_result_only_in_user_messages_and_alone():
    with pytest.raises(ValueError):
        Message(role="assistant", content=[ToolResultBlock(tool_use_id="t1", content="ok")])
    with pytest.raises(ValueError):
        Message(role="user", content=[ToolResultBlock(tool_use_id="t1", content="ok"), TextBlock("extra")])


def test_unknown_block_type_raises_type_error():
    with pytest.raises(TypeError):
        Message(role="user", content=[{"type": "text", "text": "raw dict"}])


def test_output_message_tokens_non_negative():
    with pytest.raises(ValueError):
        OutputMessage(role="assistant", content="x", tokens_used=-1)


def test_output_message_dict_roundtrip_shape():
    msg = OutputMessage(
        role="assistant",
        content=[TextBlock("Checking"), ToolUseBlock(id="call-1", name="lookup", input={"q": "tokyo"})],
        tokens_used=42,
    )
    payload = output_message_to_dict(msg)
    assert payload == {
        "role": "assistant",
        "content": [
            {"type": "text", "text": "Checking"},
            {"type": "tool_use", "id": "call-1", "name": "lookup", "input": {"q": "tokyo"}},
        ],
        "type": "message",
        "tokens_used": 42,
    }
    assert output_message_from_dict(payload) == msg


def test_normalize_messages_accepts_dicts_and_output_messages():
    out = OutputMessage(role="assistant", content="done", tokens_used=3)
    normalized = normalize_messages(
        [
            {"role": "user", "content": "hi"},
            out,
            {"role": "user", "content": [{"type": "text", "text": "again"}]},
        ]
    )
    assert all(type(message) is Message for message in normalized)
    assert normalized[1].content == "done"
    assert normalized[2].content == [TextBlock("again")]


def test_message_from_dict_unknown_block_type():
    with pytest.raises(TypeError):
        message_from_dict({"role": "user", "content": [{"type": "image"}]})


def test_validate_tool_correlation():
    good = [
        Message(role="assistant", content=[ToolUseBlock(id="t1", name="x")]),
        Message(role="user", content=[ToolResultBlock(tool_use_id="t1", content="ok")]),
    ]
    validate_tool_correlation(good)

    with pytest.raises(ValueError):
        validate_tool_correlation(list(reversed(good)))


def test_response_output_text_prefers_json_text():
    output = [
        OutputMessage(role="assistant", content="first"),
        OutputMessage(role="user", content="ignored"),
        OutputMessage(role="assistant", content=[TextBlock("a"), TextBlock("b")]),
    ]
    assert Response(output=output, tokens_used=0).output_text == "first\n\na\n\nb"
    assert Response(output=output, tokens_used=0, json_text='{"x":1}').output_text == '{"x":1}'
