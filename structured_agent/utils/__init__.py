from .hashing import get_ordered_hash, use_cache_if_present
from .json_text import canonical_json, is_valid_json, schema_errors, select_json_in_text
from .selectors import (
    select_all_text,
    select_last_text,
    select_message_text,
    select_tool_use_block,
    select_tool_use_blocks,
)

__all__ = [
    "canonical_json",
    "get_ordered_hash",
    "is_valid_json",
    "schema_errors",
    "select_all_text",
    "select_json_in_text",
    "select_last_text",
    "select_message_text",
    "select_tool_use_block",
    "select_tool_use_blocks",
    "use_cache_if_present",
]
