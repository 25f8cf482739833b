import pytest

from structured_agent.provider_ir import Message, OutputMessage, TextBlock, ToolResultBlock, ToolUseBlock
from structured_agent.utils import (
    canonical_json,
    get_ordered_hash,
    is_valid_json,
    select_all_text,
    select_json_in_text,
    select_last_text,
    select_message_text,
    select_tool_use_block,
    select_tool_use_blocks,
    use_cache_if_present,
)


SCHEMA = {
    "type": "object",
    "properties": {"fizz": {"type": "string"}, "count": {"type": "integer"}},
    "required": ["fizz"],
}


def test_select_json_in_text_picks_first_object():
    assert select_json_in_text('{"foo": "bar"} {"baz": "qux"}') == '{"foo": "bar"}'


def test_select_json_in_text_with_commentary():
    text = 'Sure! Here it is: {"foo": {"nested": [1, 2]}} Hope that helps.'
    assert select_json_in_text(text) == '{"foo": {"nested": [1, 2]}}'


def test_select_json_in_text_ignores_braces_in_strings():
    text = 'Result: {"msg": "use } and { freely", "ok": true} trailing }'
    assert select_json_in_text(text) == '{"msg": "use } and { freely", "ok": true}'


def test_select_json_in_text_unbalanced_returns_empty():
    assert select_json_in_text('This is your JSON: {"foo": "bar"') == ""
    assert select_json_in_text("no json here") == ""
    assert select_json_in_text("") == ""


def test_is_valid_json_accepts_valid_payload():
    assert is_valid_json('{"fizz": "buzz"}', SCHEMA) == (True, [])


def test_is_valid_json_reports_parse_error_as_single_error():
    valid, errors = is_valid_json('{"fizz": ', SCHEMA)
    assert valid is False
    assert len(errors) == 1


def test_is_valid_json_reports_schema_errors_with_path():
    valid, errors = is_valid_json('{"count": "three"}', SCHEMA)
    assert valid is False
    assert len(errors) == 2
    assert any(error.startswith("count: ") for error in errors)
    assert any("'fizz' is a required property" in error for error in errors)


def test_strict_schema_rejects_additional_properties():
    schema = dict(SCHEMA, strict=True)
    valid, errors = is_valid_json('{"fizz": "buzz", "extra": 1}', schema)
    assert valid is False
    assert "extra" in errors[0]
    assert is_valid_json('{"fizz": "buzz", "extra": 1}', SCHEMA)[0] is True


def test_canonical_json_is_compact():
    assert canonical_json({"fizz": "buzz", "n": [1, 2]}) == '{"fizz":"buzz","n":[1,2]}'


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_is_valid_json_rejects_non_standard_constants(constant):
    schema = {"type": "object", "properties": {"score": {"type": "number"}}}
    valid, errors = is_valid_json(f'{{"score": {constant}}}', schema)
    assert valid is False
    assert errors == [f"non-standard constant {constant}"]


def test_canonical_json_refuses_nan():
    with pytest.raises(ValueError):
        canonical_json({"score": float("nan")})


def test_get_ordered_hash_ignores_top_level_order():
    assert get_ordered_hash({"a": 1, "b": 2}) == get_ordered_hash({"b": 2, "a": 1})
    assert get_ordered_hash({"a": 1}) != get_ordered_hash({"a": 2})
    assert len(get_ordered_hash({"a": 1})) == 64


def test_selectors():
    tool_msg = Message(
        role="assistant",
        content=[TextBlock("Let me check"), ToolUseBlock(id="1", name="a"), ToolUseBlock(id="2", name="b")],
    )
    assert [block.id for block in select_tool_use_blocks(tool_msg.content)] == ["1", "2"]
    assert select_tool_use_block(tool_msg.content).id == "1"
    assert select_tool_use_blocks("plain text") == []
    assert select_tool_use_block("plain text") is None
    assert select_message_text(tool_msg) == "Let me check"

    with pytest.raises(ValueError):
        select_message_text(Message(role="user", content=[ToolResultBlock(tool_use_id="1", content="x")]))


def test_select_last_text_walks_backwards():
    messages = [
        Message(role="assistant", content=[TextBlock("first"), TextBlock("second")]),
        Message(role="user", content=[ToolResultBlock(tool_use_id="1", content="result")]),
    ]
    assert select_last_text(messages) == "second"
    assert select_last_text([]) == ""


def test_select_all_text_only_assistant_messages():
    messages = [
        OutputMessage(role="assistant", content=[TextBlock("one"), ToolUseBlock(id="1", name="a")]),
        OutputMessage(role="user", content=[ToolResultBlock(tool_use_id="1", content="ignored")]),
        OutputMessage(role="assistant", content="two"),
    ]
    assert select_all_text(messages) == "one\n\ntwo"


class _DictCache:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(get_ordered_hash(key))

    def set(self, key, value):
        self.data[get_ordered_hash(key)] = value


def test_use_cache_if_present_short_circuits():
    calls = []

    def add(a, b):
        calls.append((a, b))
        return a + b

    cached_add = use_cache_if_present(add, _DictCache())
    assert cached_add(1, 2) == 3
    assert cached_add(1, 2) == 3
    assert calls == [(1, 2)]

    assert use_cache_if_present(add, None) is add
