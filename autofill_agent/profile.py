import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import LOCATION_HINTS, PROFILE_HINTS
from .models import AgentContext, ExtractedField, JobContext, ResumeData, ResumeSection

RESUME_HEADINGS = {
    "summary", "professional summary", "profile", "objective", "about",
    "experience", "work experience", "professional experience", "employment", "work history",
    "education", "skills", "technical skills", "core competencies", "projects",
    "certifications", "awards", "publications", "languages", "volunteering",
}


def _snake(key: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key).lower()


def _split_location(location: str) -> Dict[str, str]:
    parts = [p.strip() for p in re.split(r",\s*", location) if p.strip()]
    if len(parts) == 1:
        return {"country": parts[0]}
    if len(parts) == 2:
        return {"city": parts[0], "country": parts[1]}
    if len(parts) >= 3:
        return {"city": parts[0], "state": parts[1], "country": ", ".join(parts[2:])}
    return {}


def normalize_profile(raw: Dict[str, Any]) -> Dict[str, str]:
    """
    Flatten a stored profile into snake_case string values.
    A legacy single `location` is split into city/state/country when none is set.
    """
    profile: Dict[str, str] = {}
    for k, v in (raw or {}).items():
        if v is None or isinstance(v, (dict, list)):
            continue
        profile[_snake(str(k))] = str(v).strip()

    location = profile.pop("location", "")
    if location and not any(profile.get(k) for k in ("city", "state", "country")):
        profile.update(_split_location(location))
    return profile


def load_profile(path: str) -> Dict[str, str]:
    if not Path(path).exists():
        raise FileNotFoundError(f"profile JSON not found: {path}")
    return normalize_profile(json.loads(Path(path).read_text(encoding="utf-8")))


def profile_value(profile: Dict[str, str], key: str) -> str:
    val = (profile.get(key) or "").strip()
    if val:
        return val
    parts = (profile.get("full_name") or "").split()
    if key == "first_name" and parts:
        return parts[0]
    if key == "last_name" and len(parts) > 1:
        return parts[-1]
    return ""


def read_resume_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Resume not found: {path}")
    if p.suffix.lower() == ".pdf":
        from pypdf import PdfReader
        reader = PdfReader(str(p))
        return "\n".join((page.extract_text() or "") for page in reader.pages).strip()
    return p.read_text(encoding="utf-8", errors="ignore")


def parse_resume_highlights(raw_text: str) -> List[str]:
    lines = [line.strip() for line in (raw_text or "").splitlines()]
    return [line for line in lines if len(line) >= 12][:8]


def _is_heading(line: str) -> bool:
    bare = line.strip().rstrip(":").strip()
    if not bare or len(bare) > 40:
        return False
    if bare.lower() in RESUME_HEADINGS:
        return True
    letters = [c for c in bare if c.isalpha()]
    if len(letters) >= 3 and bare.isupper() and len(bare.split()) <= 4:
        return True
    return line.strip().endswith(":") and len(bare.split()) <= 4


def parse_resume_sections(raw_text: str) -> List[ResumeSection]:
    sections: List[ResumeSection] = []
    heading, buf = "Summary", []
    for line in (raw_text or "").splitlines():
        if _is_heading(line):
            if any(b.strip() for b in buf):
                sections.append(ResumeSection(heading=heading, content="\n".join(buf).strip()))
            heading, buf = line.strip().rstrip(":").strip().title(), []
        else:
            buf.append(line.rstrip())
    if any(b.strip() for b in buf):
        sections.append(ResumeSection(heading=heading, content="\n".join(buf).strip()))
    return sections


def build_resume(raw_text: str) -> ResumeData:
    return ResumeData(
        raw_text=raw_text or "",
        highlights=parse_resume_highlights(raw_text),
        sections=parse_resume_sections(raw_text),
    )


def load_context(profile_path: str, resume_path: Optional[str] = None,
                 job_context: Optional[JobContext] = None) -> AgentContext:
    resume_text = read_resume_text(resume_path) if resume_path else ""
    return AgentContext(
        profile=load_profile(profile_path),
        resume=build_resume(resume_text),
        job_context=job_context or JobContext(),
    )


# ---------- field -> profile value ----------

def _words(s: str, split_camel: bool = True) -> str:
    s = s or ""
    if split_camel:
        s = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", s)
    s = re.sub(r"[-_/]+", " ", s)
    return re.sub(r"\s+", " ", s).strip().lower()


def _has_hint(hay: str, hint: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(_words(hint))}(?![a-z0-9])", hay) is not None


def field_description(field: ExtractedField) -> str:
    # both spellings: "firstName" needs splitting, "LinkedIn" must stay whole
    raw = " ".join(x for x in [field.label, field.name, field.placeholder] if x)
    plain, split = _words(raw, split_camel=False), _words(raw)
    return plain if plain == split else f"{plain} {split}"


def find_profile_value(field: ExtractedField, context: AgentContext) -> str:
    hay = field_description(field)
    if not hay:
        return ""

    for key, hints in PROFILE_HINTS:
        if any(_has_hint(hay, h) for h in hints):
            val = profile_value(context.profile, key)
            if val:
                return val
            if key == "summary" and context.resume.highlights:
                return " ".join(context.resume.highlights)

    if any(_has_hint(hay, h) for h in LOCATION_HINTS):
        parts = [profile_value(context.profile, k) for k in ("city", "state", "country")]
        return ", ".join(p for p in parts if p)
    return ""
