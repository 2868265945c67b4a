"""Prompt & JSON extraction utilities for food photo analysis."""

from __future__ import annotations

from typing import Any, Dict, List
import json
import re

from domain.errors import NoJsonFoundError

TEMPERATURE = 0.2
MAX_TOKENS = 4000

SYSTEM_PROMPT = (
    "You are an expert clinical nutritionist and food scientist specialized in "
    "recognizing dishes from photos, including Indonesian and Asian cuisine. "
    "MUST: reply with ONLY one valid JSON object. "
    "DO_NOT: add explanations, markdown, code fences or any text outside the JSON."
)

_SCHEMA_HINT = (
    '{"image_meta":{"width":<int>,"height":<int>,'
    '"orientation":"portrait|landscape|square"},'
    '"composition":[{"label":"string","confidence":<0-1>,'
    '"serving_est_g":<num>,'
    '"bbox_norm":{"x":<0-1>,"y":<0-1>,"w":<0-1>,"h":<0-1>},'
    '"nutrition":{"calories_kcal":<num>,'
    '"macros":{"protein_g":<num>,"carbs_g":<num>,"fat_g":<num>,'
    '"fiber_g":<num>,"sugar_g":<num>},'
    '"micros":{"sodium_mg":<num>,"potassium_mg":<num>,"calcium_mg":<num>,'
    '"iron_mg":<num>,"vitamin_a_mcg":<num>,"vitamin_c_mg":<num>,'
    '"cholesterol_mg":<num>},'
    '"allergens":["string"]}}],'
    '"totals":{"serving_total_g":<num>,"calories_kcal":<num>,'
    '"macros":{...same keys...},"micros":{...same keys...},'
    '"allergens":["string"]},'
    '"notes":"string"}'
)

USER_PROMPT = (
    "TASK: analyze the food in this photo."
    " 1. Itemize every distinct food or drink visible, one entry per item in composition."
    " 2. Estimate the serving weight in grams of each item (serving_est_g)."
    " 3. Estimate per-item nutrition: calories, macros, micros and common allergens."
    " 4. Give a bounding box per item normalized to 0-1 of image width/height."
    " 5. Sum all items into totals (serving_total_g is the sum of serving_est_g)."
    " 6. Use numbers only for numeric fields, no units inside values."
    " Reply with exactly this JSON schema: " + _SCHEMA_HINT + "."
    ' If no food is visible return "composition": [] and explain in notes.'
)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def build_vision_messages(data_url: str) -> List[Dict[str, Any]]:
    """Chat messages for one analysis: fixed instructions plus the image."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": USER_PROMPT},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        },
    ]


def _strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def extract_json(text: str) -> Any:
    """Recover the JSON value embedded in a model reply.

    Tries, first success wins: the whole text, the text without markdown
    code fences, then the span from the first '{' to the last '}'.

    Raises:
        NoJsonFoundError: if none of the strategies yields valid JSON
    """
    if not isinstance(text, str):
        raise NoJsonFoundError("NO_JSON_OBJECT: reply is not text")
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass
    cleaned = _strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError):
        pass
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        try:
            return json.loads(cleaned[first : last + 1])
        except (ValueError, RecursionError):
            pass
    raise NoJsonFoundError("NO_JSON_OBJECT: no valid JSON found in model reply")


__all__ = [
    "TEMPERATURE",
    "MAX_TOKENS",
    "SYSTEM_PROMPT",
    "USER_PROMPT",
    "build_vision_messages",
    "extract_json",
]
