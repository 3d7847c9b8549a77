"""
JSON Utilities for LLM Response Parsing.

LLM output may contain malformed JSON (single quotes, trailing commas,
unquoted keys, prose around the payload). This module extracts and repairs
it, using the json-repair library when standard json.loads() fails.

Both object payloads (narratives) and array payloads (question lists) are
supported.
"""

import json
import re
from typing import Any, Dict, List, Union

from json_repair import repair_json

JsonPayload = Union[Dict[str, Any], List[Any]]


def message_text(response: Any) -> str:
    """
    Text of a chat model response.

    Content may be a plain string or a list of content blocks
    ({"type": "text", "text": ...} or bare strings); blocks are concatenated.
    """
    content = getattr(response, "content", response)
    if isinstance(content, list):
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content)


def parse_llm_json(text: str) -> JsonPayload:
    """
    Parse JSON from LLM response with robust error recovery.

    Handles common LLM output issues:
    - Markdown code blocks (```json ... ```)
    - JSON embedded in surrounding text
    - Single quotes instead of double quotes
    - Trailing commas

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed dict or list

    Raises:
        ValueError: If no valid JSON can be extracted or repaired

    Example:
        >>> parse_llm_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("[{'id': 'ff-dig-1',}]")
        [{'id': 'ff-dig-1'}]
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _strip_markdown_blocks(text.strip())
    json_str = _extract_json_payload(json_str)

    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        pass  # Fall through to repair

    try:
        repaired = repair_json(json_str, return_objects=True)
    except Exception as e:
        raise ValueError(
            f"Failed to repair JSON: {e}\n"
            f"Original text (first 500 chars): {text[:500]}"
        )

    # repair_json hands back "" when there is nothing salvageable
    if isinstance(repaired, (dict, list)) and repaired:
        return repaired

    raise ValueError(f"No JSON payload could be recovered from: {text[:500]}")


def parse_llm_json_object(text: str) -> Dict[str, Any]:
    """
    Parse an LLM response that must be a single JSON object.

    A lone object wrapped in brackets ([{...}]) is unwrapped.

    Raises:
        ValueError: If the payload is not an object
    """
    parsed = parse_llm_json(text)
    if isinstance(parsed, list) and len(parsed) == 1 and isinstance(parsed[0], dict):
        return parsed[0]
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed


def _strip_markdown_blocks(text: str) -> str:
    """
    Remove markdown code block wrappers from text.

    Handles:
    - ```json ... ```
    - ``` ... ```
    """
    result = text

    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]

    if result.endswith("```"):
        result = result[:-3]

    return result.strip()


def _extract_json_payload(text: str) -> str:
    """
    Extract the JSON object or array from text that may contain prose.

    Whichever of '{' or '[' opens first decides the payload type.

    Raises:
        ValueError: If no JSON pattern is found
    """
    text = text.strip()

    if text.startswith("{") or text.startswith("["):
        return text

    first_obj = text.find("{")
    first_arr = text.find("[")

    if first_arr != -1 and (first_obj == -1 or first_arr < first_obj):
        match = re.search(r'\[.*\]', text, re.DOTALL)
    else:
        match = re.search(r'\{.*\}', text, re.DOTALL)

    if match:
        return match.group(0)

    raise ValueError(f"No JSON payload found in text: {text[:200]}")
