"""
Action planning: rule-based baseline, pre-resolved selects, generated prose and
up to two model refinement attempts, merged into one plan keyed by selector.

    rules + pre-resolution -> prose -> attempt 1 (hybrid prompt)
                                          | transient failure
                                          v
                                       attempt 2 (retry prompt) -> finalize

Later writes win for a selector: rule-based < pre-resolved < generated < refined.
A hard backend failure skips straight to finalize. `build_action_plan` never raises.
"""
import logging
import random
from dataclasses import replace
from typing import Awaitable, Callable, Dict, List, NamedTuple, Optional

from .config import GENERATED_CONFIDENCE
from .generative import generate_field_content, generative_targets
from .job import resolve_job_context
from .llm import BackendUnavailableError, GenerativeBackend, get_backend
from .models import AgentAction, AgentContext, ExtractedField, FormSnapshot, PlanResult
from .parser import LlmAction, parse_with_reasons
from .prompts import (
    ACTION_LIST_SCHEMA, HYBRID_SYSTEM_PROMPT, RETRY_SYSTEM_PROMPT,
    build_hybrid_user_prompt, build_retry_user_prompt,
)
from .rules import (
    build_rule_based_fill_actions, build_rule_based_plan, convert_field_to_action,
    has_meaningful_value, navigation_action, pre_resolve_select_fields,
)

logger = logging.getLogger(__name__)

ProseGenerator = Callable[[str, AgentContext], Awaitable[str]]


class Attempt(NamedTuple):
    actions: Optional[List[LlmAction]]
    reason: str = ""
    hard: bool = False


class PlanState:
    """Selector-keyed working plan for one call."""

    def __init__(self, snapshot: FormSnapshot):
        self.snapshot = snapshot
        # duplicate selectors: the later field wins, like the actions do
        self.fields: Dict[str, ExtractedField] = {f.selector: f for f in snapshot.fields}
        self.nav_selectors = {t.selector for t in snapshot.navigation_targets}
        self.allowed = set(self.fields) | self.nav_selectors
        self.actions: Dict[str, AgentAction] = {}
        self.origins: Dict[str, str] = {}
        self.failures: List[str] = []
        self.generated = 0

    def put(self, action: AgentAction, origin: str):
        self.actions[action.selector] = action
        self.origins[action.selector] = origin

    def prefilled(self) -> List[ExtractedField]:
        return [f for sel, f in self.fields.items()
                if self.origins.get(sel) in ("rule-based", "pre-resolved")]

    def unfilled(self) -> List[ExtractedField]:
        return [f for sel, f in self.fields.items()
                if sel not in self.actions and not has_meaningful_value(f)]


def sort_actions(actions: List[AgentAction]) -> List[AgentAction]:
    """Fill actions first, then navigation; order is otherwise kept."""
    return sorted(actions, key=lambda a: 0 if a.is_fill else 1)


def _finish(state: PlanState, source: str, detail: str) -> PlanResult:
    actions = list(state.actions.values())
    nav = navigation_action(state.snapshot)
    if nav:
        actions = [a for a in actions if a.type != "clickNext"] + [nav]
    return PlanResult(source=source, actions=sort_actions(actions), detail=detail)


async def fill_generative_fields(state: PlanState, context: AgentContext,
                                 generate_prose: ProseGenerator):
    for field in generative_targets(state.snapshot, has_meaningful_value):
        try:
            text = (await generate_prose(field.label, context) or "").strip()
        except Exception as e:
            logger.warning(f"Skipping prose for '{field.display_label}': {e}")
            continue
        if not text:
            continue
        state.put(AgentAction(type="setValue", selector=field.selector, field_label=field.display_label,
                              value=text, reasoning="Generated from resume and job context.",
                              confidence=GENERATED_CONFIDENCE), "generated")
        state.generated += 1


async def run_attempt(backend: GenerativeBackend, system_prompt: str, user_prompt: str) -> Attempt:
    try:
        raw = await backend.run_prompt(system_prompt, user_prompt, ACTION_LIST_SCHEMA)
    except BackendUnavailableError as e:
        return Attempt(None, str(e) or "backend unavailable", hard=True)
    except Exception as e:
        return Attempt(None, f"backend error: {e}")
    parsed = parse_with_reasons(raw)
    if not parsed.ok:
        return Attempt(None, f"unparseable response: {parsed.reason}")
    return Attempt(parsed.actions)


def merge_refinement(state: PlanState, proposed: List[LlmAction], unfilled: List[ExtractedField]) -> int:
    """
    Merge model actions over the plan. Returns how many previously unfilled
    fields received one. Foreign selectors, fill actions aimed at navigation
    controls, model clickNext actions and fields the user already filled are dropped.
    """
    targets = {f.selector for f in unfilled}
    refined = set()
    for la in proposed:
        if la.selector not in state.allowed:
            logger.warning(f"Dropping action for unknown selector {la.selector!r}")
            continue
        field = state.fields.get(la.selector)
        if la.type == "clickNext" or field is None or has_meaningful_value(field):
            continue
        action = convert_field_to_action(field, la.value, "model", la.confidence,
                                         reasoning=la.reasoning)
        if action is None:
            continue
        state.put(action, "refined")
        if field.selector in targets:
            refined.add(field.selector)
    return len(refined)


def _prose_note(state: PlanState) -> str:
    return f" Generated {state.generated} open-ended answer(s)." if state.generated else ""


def _fallback_source(state: PlanState) -> str:
    return "hybrid" if state.generated else "rule-based"


async def _plan(snapshot: FormSnapshot, context: AgentContext, backend: GenerativeBackend,
                generate_prose: ProseGenerator, rng: Optional[random.Random]) -> PlanResult:
    context = replace(context, job_context=resolve_job_context(snapshot, context))
    state = PlanState(snapshot)

    for action in build_rule_based_fill_actions(snapshot, context, rng):
        state.put(action, "rule-based")
    for action in pre_resolve_select_fields(snapshot, context):
        state.put(action, "pre-resolved")
    logger.info(f"Rule-based pass planned {len(state.actions)} fill action(s)")

    await fill_generative_fields(state, context, generate_prose)

    prefilled, unfilled = state.prefilled(), state.unfilled()
    if not prefilled and not unfilled:
        state.failures.append("no fields left for model refinement")
        return _finish(state, _fallback_source(state), "Deterministic plan: " + "; ".join(state.failures) + "."
                       + _prose_note(state))

    logger.info(f"Refinement attempt 1: {len(prefilled)} pre-filled, {len(unfilled)} unfilled")
    user_prompt = build_hybrid_user_prompt(snapshot, context, context.job_context,
                                           prefilled, unfilled, state.actions, state.origins)
    attempt = await run_attempt(backend, HYBRID_SYSTEM_PROMPT, user_prompt)

    if attempt.hard:
        logger.warning(f"Backend unavailable, skipping refinement: {attempt.reason}")
        return _finish(state, _fallback_source(state),
                       f"Model refinement skipped, backend unavailable: {attempt.reason}." + _prose_note(state))

    if attempt.actions:
        n = merge_refinement(state, attempt.actions, unfilled)
        return _finish(state, "hybrid",
                       f"Model refined {n} of {len(unfilled)} unfilled field(s)." + _prose_note(state))

    logger.warning(f"Refinement attempt 1 failed: {attempt.reason}")
    state.failures.append(f"attempt 1 {attempt.reason}")

    remaining = state.unfilled()
    if not remaining:
        state.failures.append("retry skipped, no unfilled fields")
    else:
        logger.info(f"Refinement attempt 2 on {len(remaining)} unfilled field(s)")
        retry = await run_attempt(backend, RETRY_SYSTEM_PROMPT, build_retry_user_prompt(snapshot, context, remaining))
        if retry.actions:
            n = merge_refinement(state, retry.actions, remaining)
            return _finish(state, "hybrid",
                           f"Retry refined {n} of {len(remaining)} unfilled field(s) after attempt 1 failed "
                           f"({attempt.reason})." + _prose_note(state))
        logger.warning(f"Refinement attempt 2 failed: {retry.reason}")
        state.failures.append(f"attempt 2 {retry.reason}")

    return _finish(state, _fallback_source(state),
                   "Deterministic plan: " + "; ".join(state.failures) + "." + _prose_note(state))


async def build_action_plan(snapshot: FormSnapshot, context: AgentContext,
                            backend: Optional[GenerativeBackend] = None,
                            generate_prose: Optional[ProseGenerator] = None,
                            rng: Optional[random.Random] = None) -> PlanResult:
    """
    Plan fill actions for `snapshot`. Always returns a PlanResult.

    `backend` defaults to the process-wide Gemini handle; `generate_prose`
    defaults to the built-in generator on that backend. Pass a seeded `rng`
    for reproducible rule-based confidences.
    """
    backend = backend or get_backend()
    if generate_prose is None:
        async def generate_prose(label: str, ctx: AgentContext) -> str:
            return await generate_field_content(label, ctx, backend)
    try:
        return await _plan(snapshot, context, backend, generate_prose, rng)
    except Exception as e:
        logger.exception("Planning failed; falling back to rule-based plan")
        error = e
    try:
        return PlanResult(source="rule-based",
                          actions=sort_actions(build_rule_based_plan(snapshot, context, rng)),
                          detail=f"Planner error, rule-based plan only: {error}")
    except Exception as e:
        logger.exception("Rule-based fallback failed; returning an empty plan")
        return PlanResult(source="rule-based", actions=[],
                          detail=f"Planner error, no plan: {error}; fallback failed: {e}")
