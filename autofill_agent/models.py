"""
Data model shared by the planner: the captured form, the user's context and
the actions handed to the executor.

Everything here is created fresh per planning call. Snapshot types are frozen;
the planner only reads them and echoes their selectors back.
"""
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

FIELD_KINDS = (
    "text", "textarea", "email", "tel", "url", "number",
    "checkbox", "radio", "select", "date", "unknown",
)
FILL_ACTION_TYPES = ("setValue", "setSelect", "setCheckbox", "setRadio")
ACTION_TYPES = FILL_ACTION_TYPES + ("clickNext",)

_KIND_ALIASES = {
    "input": "text", "shorttext": "text", "string": "text",
    "longtext": "textarea",
    "dropdown": "select", "combo": "select", "combobox": "select",
    "radiogroup": "radio", "choice": "radio",
    "phone": "tel", "telephone": "tel",
}


def _get(raw: Dict[str, Any], *keys, default=None):
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


def _text(val) -> str:
    if val is None:
        return ""
    if isinstance(val, bool):
        return "true" if val else "false"
    return str(val)


def _timestamp(val) -> float:
    """Epoch seconds from a number or an ISO-8601 string; now when unreadable."""
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return float(val)
    if isinstance(val, str) and val.strip():
        s = val.strip()
        try:
            return float(s)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(s.replace("Z", "+00:00")).timestamp()
        except ValueError:
            pass
    return time.time()


@dataclass(frozen=True)
class FieldOption:
    label: str
    value: str


@dataclass(frozen=True)
class ExtractedField:
    id: str
    selector: str
    kind: str = "unknown"
    label: str = ""
    name: str = ""
    placeholder: str = ""
    required: bool = False
    options: Tuple[FieldOption, ...] = ()
    current_value: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.name or self.placeholder or f"{self.kind} field"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ExtractedField":
        """
        Accepts the capture JSON in camelCase or snake_case.
        Unknown kinds become "unknown"; checkbox/radio states become "true"/"false".
        """
        kind = str(_get(raw, "kind", "type", default="unknown")).strip().lower()
        kind = _KIND_ALIASES.get(kind, kind)
        if kind not in FIELD_KINDS:
            kind = "unknown"

        options = []
        for opt in _get(raw, "options", "choices", default=[]) or []:
            if isinstance(opt, dict):
                value = _text(_get(opt, "value", default=""))
                label = _text(_get(opt, "label", "text", default="")) or value
            else:
                value = label = _text(opt)
            if label or value:
                options.append(FieldOption(label=label.strip(), value=value))

        current = _get(raw, "currentValue", "current_value", "value", default="")
        selector = _text(_get(raw, "selector", default="")).strip()
        return cls(
            id=_text(_get(raw, "id", default="")) or selector,
            selector=selector,
            kind=kind,
            label=_text(_get(raw, "label", "question", default="")).strip(),
            name=_text(_get(raw, "name", default="")).strip(),
            placeholder=_text(_get(raw, "placeholder", default="")).strip(),
            required=bool(_get(raw, "required", default=False)),
            options=tuple(options),
            current_value=_text(current),
        )


@dataclass(frozen=True)
class NavigationTarget:
    id: str
    selector: str
    text: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NavigationTarget":
        selector = _text(_get(raw, "selector", default="")).strip()
        return cls(
            id=_text(_get(raw, "id", default="")) or selector,
            selector=selector,
            text=_text(_get(raw, "text", "label", default="")).strip(),
        )


@dataclass(frozen=True)
class JobContext:
    job_title: str = ""
    company_name: str = ""
    description_snippet: str = ""

    def is_empty(self) -> bool:
        return not (self.job_title or self.company_name or self.description_snippet)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "JobContext":
        raw = raw or {}
        return cls(
            job_title=_text(_get(raw, "jobTitle", "job_title", "title", default="")).strip(),
            company_name=_text(_get(raw, "companyName", "company_name", "company", default="")).strip(),
            description_snippet=_text(
                _get(raw, "descriptionSnippet", "description_snippet", "description", default="")
            ).strip(),
        )


@dataclass(frozen=True)
class FormSnapshot:
    url: str
    title: str
    captured_at: float
    fields: Tuple[ExtractedField, ...] = ()
    navigation_targets: Tuple[NavigationTarget, ...] = ()
    job_context: Optional[JobContext] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FormSnapshot":
        fields = [ExtractedField.from_dict(f) for f in _get(raw, "fields", default=[]) if isinstance(f, dict)]
        targets = [
            NavigationTarget.from_dict(t)
            for t in _get(raw, "navigationTargets", "navigation_targets", default=[])
            if isinstance(t, dict)
        ]
        job = _get(raw, "jobContext", "job_context")
        return cls(
            url=_text(_get(raw, "url", default="")),
            title=_text(_get(raw, "title", default="")),
            captured_at=_timestamp(_get(raw, "capturedAt", "captured_at")),
            fields=tuple(f for f in fields if f.selector),
            navigation_targets=tuple(t for t in targets if t.selector),
            job_context=JobContext.from_dict(job) if isinstance(job, dict) else None,
        )


@dataclass(frozen=True)
class ResumeSection:
    heading: str
    content: str


@dataclass
class ResumeData:
    raw_text: str = ""
    highlights: List[str] = field(default_factory=list)
    sections: List[ResumeSection] = field(default_factory=list)


@dataclass
class AgentContext:
    profile: Dict[str, str] = field(default_factory=dict)
    resume: ResumeData = field(default_factory=ResumeData)
    job_context: JobContext = field(default_factory=JobContext)


def new_action_id() -> str:
    return str(uuid.uuid4())


@dataclass
class AgentAction:
    type: str
    selector: str
    field_label: str
    value: str
    reasoning: str
    confidence: float
    id: str = field(default_factory=new_action_id)

    @property
    def is_fill(self) -> bool:
        return self.type in FILL_ACTION_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "selector": self.selector,
            "fieldLabel": self.field_label,
            "value": self.value,
            "reasoning": self.reasoning,
            "confidence": round(self.confidence, 4),
        }


@dataclass
class PlanResult:
    source: str
    actions: List[AgentAction] = field(default_factory=list)
    detail: str = ""

    @property
    def fill_actions(self) -> List[AgentAction]:
        return [a for a in self.actions if a.is_fill]

    @property
    def navigation_actions(self) -> List[AgentAction]:
        return [a for a in self.actions if a.type == "clickNext"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "detail": self.detail,
            "actions": [a.to_dict() for a in self.actions],
        }
