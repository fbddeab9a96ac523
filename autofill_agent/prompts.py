"""
Prompt text for the refinement pass.

Attempt 1 ("hybrid") sends the full picture: profile, resume highlights, job
line, PRE-FILLED fields for review and UNFILLED fields to answer.
Attempt 2 ("retry") is shorter and lists only the fields still unfilled.
Only data already in the snapshot/context goes into a prompt.
"""
import json
from typing import Dict, List

from .config import MAX_PROMPT_OPTIONS, MAX_RESUME_HIGHLIGHTS
from .models import ACTION_TYPES, AgentAction, AgentContext, ExtractedField, FormSnapshot, JobContext

ACTION_LIST_SCHEMA = json.dumps({
    "type": "object",
    "properties": {
        "actions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "selector": {"type": "string"},
                    "type": {"type": "string", "enum": list(ACTION_TYPES)},
                    "fieldLabel": {"type": "string"},
                    "value": {"type": "string"},
                    "reasoning": {"type": "string"},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                },
                "required": ["selector", "type", "value"],
            },
        }
    },
    "required": ["actions"],
})

HYBRID_SYSTEM_PROMPT = """
You are a browser form automation planner filling a job application for the candidate.
Output STRICT JSON only, shaped as {"actions": [ ... ]} where each action is:
{"selector": string, "type": "setValue" | "setSelect" | "setCheckbox" | "setRadio" | "clickNext",
 "fieldLabel": string, "value": string, "reasoning": string, "confidence": number}

RULES
* Copy every selector EXACTLY as given. Never invent or edit a selector.
* For SELECT and RADIO fields the value MUST be one of the listed options (use the option value).
* CHECKBOX values are "true" or "false".
* Keep city and country apart: a City field gets only the city, a Country field only the country.
* If the profile or resume does not support an answer, leave the field out.
* Use low confidence (below 0.5) for guesses; confidence is always between 0 and 1.
* PRE-FILLED fields were filled by rules. Return an action for one ONLY if its value is wrong.
* UNFILLED fields have no value yet; answer the ones you can support.
* Put all fill actions first and at most one clickNext action last, using a NAVIGATION selector.
* Never click Apply, Submit or any control that sends the application.
""".strip()

RETRY_SYSTEM_PROMPT = """
You fill web form fields. Reply with JSON only: {"actions": [{"selector": "...", "type": "setValue", "value": "...", "confidence": 0.6}]}
Use the exact selectors given. For SELECT or RADIO use one listed option. Skip fields you cannot answer.
""".strip()

SUBMIT_WORDS = ("apply", "submit", "send application")


def type_hint(field: ExtractedField) -> str:
    if field.kind in ("select", "radio"):
        opts = field.options[:MAX_PROMPT_OPTIONS]
        listed = ", ".join(f"\"{o.label}\"={o.value}" if o.value and o.value != o.label else f"\"{o.label}\""
                           for o in opts)
        more = f" (+{len(field.options) - len(opts)} more)" if len(field.options) > len(opts) else ""
        return f"{field.kind.upper()} options: {listed}{more}"
    if field.kind == "checkbox":
        return "CHECKBOX true|false"
    if field.kind == "textarea":
        return "TEXTAREA"
    return f"TEXT({field.kind})" if field.kind not in ("text", "unknown") else "TEXT"


def field_line(field: ExtractedField, status: str) -> str:
    name = f" (name=\"{field.name}\")" if field.name else ""
    return f"{field.selector} | {field.display_label}{name} | {type_hint(field)} | {status}"


def _unfilled_status(field: ExtractedField) -> str:
    return "empty, required" if field.required else "empty"


def navigation_line(snapshot: FormSnapshot) -> str:
    selectors = [t.selector for t in snapshot.navigation_targets
                 if not any(w in t.text.lower() for w in SUBMIT_WORDS)]
    if not selectors:
        return "NAVIGATION: none"
    return "NAVIGATION (clickNext only): " + ", ".join(selectors)


def profile_block(context: AgentContext) -> str:
    lines = [f"- {k}: {v}" for k, v in context.profile.items() if v]
    return "\n".join(lines) if lines else "- (empty)"


def job_line(job: JobContext) -> str:
    parts = [p for p in (job.job_title, job.company_name) if p]
    line = " at ".join(parts)
    if job.description_snippet:
        snippet = " ".join(job.description_snippet.split())[:240]
        line = f"{line}: {snippet}" if line else snippet
    return line


def build_hybrid_user_prompt(snapshot: FormSnapshot, context: AgentContext, job: JobContext,
                             prefilled: List[ExtractedField], unfilled: List[ExtractedField],
                             planned: Dict[str, AgentAction], origins: Dict[str, str]) -> str:
    out = ["PROFILE:", profile_block(context)]
    highlights = context.resume.highlights[:MAX_RESUME_HIGHLIGHTS]
    if highlights:
        out += ["", "RESUME HIGHLIGHTS:"] + [f"- {h}" for h in highlights]
    jl = job_line(job)
    if jl:
        out += ["", f"JOB: {jl}"]

    out += ["", "PRE-FILLED (review; correct only if wrong):"]
    if prefilled:
        for f in prefilled:
            action = planned[f.selector]
            out.append(field_line(f, f"pre-filled \"{action.value}\" ({origins.get(f.selector, 'rule-based')})"))
    else:
        out.append("(none)")

    out += ["", "UNFILLED:"]
    out += [field_line(f, _unfilled_status(f)) for f in unfilled] or ["(none)"]
    out += ["", navigation_line(snapshot)]
    out += ["", "Return {\"actions\": [...]} now."]
    return "\n".join(out)


def build_retry_user_prompt(snapshot: FormSnapshot, context: AgentContext,
                            unfilled: List[ExtractedField]) -> str:
    out = ["PROFILE:", profile_block(context), "", "FIELDS:"]
    out += [field_line(f, _unfilled_status(f)) for f in unfilled] or ["(none)"]
    out += ["", navigation_line(snapshot)]
    return "\n".join(out)
