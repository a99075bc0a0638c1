"""Extract JSON objects from model responses.

Handles:
- Already-parsed dict responses
- Raw JSON text
- JSON in a markdown code block (```json ... ```)
- JSON surrounded by prose
"""

import json
import re
from typing import Any, Optional

from loguru import logger

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json_object(response: Any) -> Optional[dict]:
    """
    Return the first JSON object found in an inference response.

    Args:
        response: dict or text returned by an InferenceClient

    Returns:
        Parsed dict, or None if no object could be parsed
    """
    if isinstance(response, dict):
        return response
    if not isinstance(response, str):
        return None

    text = response.strip()
    if not text:
        return None

    fence = _FENCE.search(text)
    if fence:
        text = fence.group(1).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            logger.debug("No JSON object in response", preview=text[:120])
            return None
        try:
            parsed = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            logger.debug(f"JSON parse error: {e}")
            return None

    if isinstance(parsed, list):
        # Some models wrap the object in a single-item array
        parsed = parsed[0] if len(parsed) == 1 and isinstance(parsed[0], dict) else {"items": parsed}

    return parsed if isinstance(parsed, dict) else None
