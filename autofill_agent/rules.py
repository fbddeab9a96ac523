"""
Deterministic baseline plan: profile hints + option matching, no model involved.
"""
import random
from typing import List, Optional

from .config import (
    NAVIGATION_CONFIDENCE, PRE_RESOLVED_CONFIDENCE,
    RULE_CONFIDENCE, RULE_CONFIDENCE_SPREAD,
)
from .generative import is_generative_field
from .models import AgentAction, AgentContext, ExtractedField, FormSnapshot
from .options import resolve_option
from .profile import find_profile_value
from .utils import clamp, normalize

CHECKED_TOKENS = ("yes", "true", "1", "required")


def has_meaningful_value(field: ExtractedField) -> bool:
    if field.kind in ("checkbox", "radio"):
        return field.current_value == "true"
    return bool(field.current_value.strip())


def jittered_confidence(rng: random.Random, center: float = RULE_CONFIDENCE,
                        spread: float = RULE_CONFIDENCE_SPREAD) -> float:
    # breaks ties between otherwise identical rule-based scores
    return clamp(center + (rng.random() - 0.5) * spread)


def convert_field_to_action(field: ExtractedField, raw_value: str, source: str,
                            confidence: float, reasoning: str = "") -> Optional[AgentAction]:
    """Turn a resolved value into the action matching the field's kind, or None."""
    if not raw_value:
        return None
    label = field.display_label

    if field.kind == "select":
        selected = resolve_option(field, raw_value)
        if not selected:
            return None
        return AgentAction(type="setSelect", selector=field.selector, field_label=label, value=selected,
                           reasoning=reasoning or f"Select option matched from {source} plan.",
                           confidence=confidence)

    if field.kind == "checkbox":
        target = normalize(raw_value)
        checked = any(tok in target for tok in CHECKED_TOKENS)
        return AgentAction(type="setCheckbox", selector=field.selector, field_label=label,
                           value="true" if checked else "false",
                           reasoning=reasoning or f"Checkbox decision from {source} plan.",
                           confidence=confidence)

    if field.kind == "radio":
        selected = resolve_option(field, raw_value) or raw_value
        return AgentAction(type="setRadio", selector=field.selector, field_label=label, value=selected,
                           reasoning=reasoning or f"Radio option from {source} plan.",
                           confidence=confidence)

    return AgentAction(type="setValue", selector=field.selector, field_label=label, value=raw_value,
                       reasoning=reasoning or f"Field matched from {source} plan.",
                       confidence=confidence)


def navigation_action(snapshot: FormSnapshot) -> Optional[AgentAction]:
    if not snapshot.navigation_targets:
        return None
    target = snapshot.navigation_targets[0]
    return AgentAction(type="clickNext", selector=target.selector, field_label=target.text or "Next button",
                       value="", reasoning="Detected likely navigation control.",
                       confidence=NAVIGATION_CONFIDENCE)


def build_rule_based_fill_actions(snapshot: FormSnapshot, context: AgentContext,
                                  rng: Optional[random.Random] = None) -> List[AgentAction]:
    rng = rng or random.Random()
    actions = []
    for field in snapshot.fields:
        if has_meaningful_value(field) or is_generative_field(field.label, field.kind):
            continue
        raw = find_profile_value(field, context)
        action = convert_field_to_action(field, raw, "rule-based", jittered_confidence(rng))
        if action:
            actions.append(action)
    return actions


def build_rule_based_plan(snapshot: FormSnapshot, context: AgentContext,
                          rng: Optional[random.Random] = None) -> List[AgentAction]:
    actions = build_rule_based_fill_actions(snapshot, context, rng)
    nav = navigation_action(snapshot)
    if nav:
        actions.append(nav)
    return actions


def pre_resolve_select_fields(snapshot: FormSnapshot, context: AgentContext) -> List[AgentAction]:
    """Resolve empty selects up front so the model reviews them instead of guessing."""
    actions = []
    for field in snapshot.fields:
        if field.kind != "select" or has_meaningful_value(field):
            continue
        raw = find_profile_value(field, context)
        action = convert_field_to_action(field, raw, "pre-resolved", PRE_RESOLVED_CONFIDENCE,
                                         reasoning="Pre-resolved select option from profile.")
        if action:
            actions.append(action)
    return actions
