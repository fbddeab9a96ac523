import re
from typing import Tuple
from urllib.parse import urlparse

from .models import AgentContext, FormSnapshot, JobContext


def _first_path_segment(url) -> str:
    m = re.match(r"^/([^/]+)", url.path or "")
    return m.group(1) if m else ""


def _host_label(url) -> str:
    return (url.hostname or "").split(".")[0]


# job board host -> how to read the company out of the URL
JOB_BOARD_COMPANY = [
    (r"(^|\.)greenhouse\.io$", _first_path_segment),
    (r"(^|\.)lever\.co$", _first_path_segment),
    (r"\.myworkdayjobs\.com$", _host_label),
    (r"(^|\.)ashbyhq\.com$", _first_path_segment),
    (r"\.icims\.com$", lambda url: ""),
]

TITLE_AT_COMPANY = re.compile(r"^(.+?)\s+(?:at|@)\s+(.+?)(?:\s*\|.*|\s+[-–—]\s+.*)?$", re.I)


def _title_case(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in s.split())


def company_from_url(url: str) -> str:
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return ""
    host = (parsed.hostname or "").lower()
    for pattern, extract in JOB_BOARD_COMPANY:
        if re.search(pattern, host):
            name = re.sub(r"[-_]+", " ", extract(parsed) or "")
            return _title_case(name) if name else ""
    return ""


def split_title(title: str) -> Tuple[str, str]:
    """'Backend Engineer at Acme | Greenhouse' -> ('Backend Engineer', 'Acme')."""
    title = re.sub(r"^job application for\s+", "", (title or "").strip(), flags=re.I)
    m = TITLE_AT_COMPANY.match(title)
    if m:
        return m.group(1).strip(), m.group(2).strip()
    parts = [p for p in re.split(r"\s*\|\s*|\s+[-–—]\s+", title) if p]
    if len(parts) >= 2:
        return parts[0].strip(), parts[1].strip()
    return title, ""


def job_context_from_page(url: str, title: str) -> JobContext:
    job_title, title_company = split_title(title)
    return JobContext(job_title=job_title, company_name=company_from_url(url) or title_company)


def resolve_job_context(snapshot: FormSnapshot, context: AgentContext) -> JobContext:
    if context.job_context and not context.job_context.is_empty():
        return context.job_context
    if snapshot.job_context and not snapshot.job_context.is_empty():
        return snapshot.job_context
    return job_context_from_page(snapshot.url, snapshot.title)
