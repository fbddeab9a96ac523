"""
Turns untrusted model text into validated actions.

Each stage takes text and returns a ParseAttempt: either validated actions or
the reason it gave up. `parse_actions` runs the stages in order and stops at
the first non-empty result:

  extract -> strict parse -> repaired parse -> per-object salvage
"""
import json
import logging
import re
from typing import Any, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import DEFAULT_LLM_CONFIDENCE
from .models import ACTION_TYPES
from .utils import clamp

logger = logging.getLogger(__name__)


class LlmAction(BaseModel):
    """One action as emitted by the model, after coercion."""

    model_config = ConfigDict(populate_by_name=True)

    selector: str
    type: str
    field_label: str = Field("", alias="fieldLabel")
    value: str = ""
    reasoning: str = ""
    confidence: float = DEFAULT_LLM_CONFIDENCE

    @field_validator("selector", mode="before")
    @classmethod
    def selector_present(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("selector must be a non-empty string")
        return v.strip()

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in ACTION_TYPES:
            raise ValueError(f"unknown action type {v!r}")
        return v

    @field_validator("field_label", "value", "reasoning", mode="before")
    @classmethod
    def as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float, str)):
            return str(v)
        raise ValueError("expected a scalar")

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        try:
            return clamp(float(v))
        except (TypeError, ValueError):
            return DEFAULT_LLM_CONFIDENCE


class ParseAttempt(NamedTuple):
    actions: Optional[List[LlmAction]]
    reason: str = ""

    @property
    def ok(self) -> bool:
        return bool(self.actions)


def validate_items(items: List[Any]) -> List[LlmAction]:
    valid = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            valid.append(LlmAction.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping invalid action {item!r}: {e.errors()[0]['msg']}")
    return valid


def _action_items(data: Any) -> Optional[List[Any]]:
    if isinstance(data, dict):
        if isinstance(data.get("actions"), list):
            return data["actions"]
        if "selector" in data:
            return [data]
        return None
    if isinstance(data, list):
        return data
    return None


# ---------- stage 1: locate JSON ----------

def extract_json_block(raw: str) -> str:
    fence = re.search(r"```(?:json)?\s*([\s\S]*?)```", raw or "", re.I)
    if fence and fence.group(1).strip():
        return fence.group(1).strip()
    text = (raw or "").strip()
    first, last = text.find("["), text.rfind("]")
    if first >= 0 and last > first:
        return text[first:last + 1]
    return text


# ---------- stage 2: strict ----------

def parse_strict(text: str) -> ParseAttempt:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseAttempt(None, f"invalid JSON ({e.msg})")
    items = _action_items(data)
    if items is None:
        return ParseAttempt(None, "JSON has no actions list")
    actions = validate_items(items)
    if not actions:
        return ParseAttempt(None, "no schema-valid actions")
    return ParseAttempt(actions)


# ---------- stage 3: repair ----------

_STRING = re.compile(r'"(?:\\.|[^"\\])*"')


def _requote_single(text: str) -> str:
    """Rewrite 'single-quoted' strings as JSON strings, leaving double-quoted ones alone."""
    out, i, n = [], 0, len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            m = _STRING.match(text, i)
            if not m:
                out.append(text[i:])
                break
            out.append(m.group(0))
            i = m.end()
        elif ch == "'":
            j, buf = i + 1, []
            while j < n and text[j] != "'":
                if text[j] == "\\" and j + 1 < n:
                    buf.append(text[j:j + 2])
                    j += 2
                    continue
                buf.append('\\"' if text[j] == '"' else text[j])
                j += 1
            out.append('"' + "".join(buf) + '"')
            i = j + 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _balance(text: str) -> str:
    stack, in_str, escaped = [], False, False
    for ch in text:
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch in "[{":
            stack.append("]" if ch == "[" else "}")
        elif ch in "]}" and stack and stack[-1] == ch:
            stack.pop()
    if in_str:
        text += '"'
    return text + "".join(reversed(stack))


def _fix_outside_strings(text: str) -> str:
    pieces, last = [], 0
    for m in _STRING.finditer(text):
        pieces.append(_fix_segment(text[last:m.start()]))
        pieces.append(m.group(0))
        last = m.end()
    pieces.append(_fix_segment(text[last:]))
    return "".join(pieces)


def _fix_segment(seg: str) -> str:
    seg = re.sub(r",\s*(?=[\]}])", "", seg)
    return re.sub(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:", r'\1"\2":', seg)


def repair_json(text: str) -> str:
    """Best-effort salvage of near-JSON. Not a grammar; anything odd just fails to parse."""
    fixed = _balance(_requote_single((text or "").strip()))
    return _fix_outside_strings(fixed)


def parse_repaired(text: str) -> ParseAttempt:
    attempt = parse_strict(repair_json(text))
    if attempt.ok:
        return attempt
    return ParseAttempt(None, f"repair failed: {attempt.reason}")


# ---------- stage 4: salvage objects ----------

_OBJECT_WITH_SELECTOR = re.compile(r"\{[^{}]*?[\"']?selector[\"']?\s*:[^{}]*\}", re.S)


def parse_fragments(raw: str) -> ParseAttempt:
    salvaged = []
    for m in _OBJECT_WITH_SELECTOR.finditer(raw or ""):
        for candidate in (m.group(0), repair_json(m.group(0))):
            try:
                obj = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            salvaged.extend(validate_items([obj]))
            break
    if not salvaged:
        return ParseAttempt(None, "no salvageable action objects")
    return ParseAttempt(salvaged)


def parse_with_reasons(raw: str) -> ParseAttempt:
    if not (raw or "").strip():
        return ParseAttempt(None, "empty response")
    block = extract_json_block(raw)
    reasons = []
    for stage in (parse_strict, parse_repaired):
        attempt = stage(block)
        if attempt.ok:
            return attempt
        reasons.append(attempt.reason)
    attempt = parse_fragments(raw)
    if attempt.ok:
        logger.info(f"Salvaged {len(attempt.actions)} action(s) from malformed output")
        return attempt
    reasons.append(attempt.reason)
    return ParseAttempt(None, "; ".join(reasons))


def parse_actions(raw: str) -> Optional[List[LlmAction]]:
    return parse_with_reasons(raw).actions
