"""
Free-form prose for open-ended fields: cover letters, summaries and
"why this role"-style questions.

Detection is a label heuristic. Generation asks the backend for plain text
and falls back to a template built from the profile and resume when the
backend fails or answers with too little.
"""
import logging
import math
import re
from typing import List, Optional

from .llm import GenerativeBackend
from .models import AgentContext, ExtractedField, FormSnapshot, JobContext, ResumeData, ResumeSection

logger = logging.getLogger(__name__)

GENERATIVE_PATTERNS = [
    r"cover\s*letter",
    r"why\s+(?:do\s+)?(?:you|are\s+you)\s+(?:want|interested|apply|looking)",
    r"why\s+(?:this|our|the)\s+(?:company|role|position|team|job)",
    r"describe\s+(?:your|a\s+time|a\s+situation|yourself)",
    r"tell\s+us\s+(?:about|why)",
    r"what\s+makes\s+you",
    r"about\s+(?:you|yourself)",
    r"motivation",
    r"interest\s+in\s+(?:this|the|our)",
    r"additional\s+(?:information|comments|notes)",
    r"anything\s+(?:else|you.*(?:like|want).*(?:share|add|mention))",
    r"how\s+did\s+you\s+hear",
    r"what\s+(?:excites|interests|attracts)\s+you",
]

# kinds that can hold prose; option-bearing controls never get generated text
PROSE_KINDS = ("text", "textarea", "unknown")

STOP_WORDS = {
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "am", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "shall", "can", "this", "that",
    "these", "those", "i", "me", "my", "we", "our", "you", "your", "it",
    "its", "they", "them", "their", "what", "which", "who", "whom",
    "how", "when", "where", "why", "not", "no", "so", "if", "as", "from",
}

MIN_LENGTH = {"cover-letter": 50, "summary": 20, "open-ended": 15}


def is_generative_field(label: str, kind: str) -> bool:
    if not label:
        return False
    combined = label.lower()
    if any(re.search(p, combined) for p in GENERATIVE_PATTERNS):
        return True
    return kind == "textarea" and len(combined) > 15


def classify_generative_field(label: str) -> str:
    lower = (label or "").lower()
    if re.search(r"cover\s*letter", lower):
        return "cover-letter"
    if re.search(r"\b(?:summary|about\s+(?:you|yourself)|professional\s+summary|objective)\b", lower):
        return "summary"
    return "open-ended"


def generative_targets(snapshot: FormSnapshot, has_value) -> List[ExtractedField]:
    """Empty free-text fields whose label asks for prose."""
    return [
        f for f in snapshot.fields
        if f.kind in PROSE_KINDS and not has_value(f) and is_generative_field(f.label, f.kind)
    ]


# ---------- resume snippets ----------

def tokenize(text: str) -> List[str]:
    words = re.sub(r"[^a-z0-9\s]", " ", (text or "").lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def find_relevant_snippets(sections: List[ResumeSection], query: str,
                           max_snippets: int = 3, max_chars: int = 600) -> str:
    if not sections:
        return ""
    query_tokens = set(tokenize(query))
    if not query_tokens:
        return "\n".join(s.content for s in sections[:max_snippets])[:max_chars]

    scored = []
    for section in sections:
        tokens = tokenize(f"{section.heading} {section.content}")
        overlap = sum(1 for t in tokens if t in query_tokens)
        scored.append((overlap / math.sqrt(len(tokens)) if tokens else 0.0, section))
    scored.sort(key=lambda pair: pair[0], reverse=True)

    chunks = []
    for _, section in scored[:max_snippets]:
        if sum(len(c) for c in chunks) >= max_chars:
            break
        chunks.append(f"[{section.heading}]\n{section.content}")
    return "\n\n".join(chunks)[:max_chars]


def _section(resume: ResumeData, pattern: str) -> Optional[ResumeSection]:
    return next((s for s in resume.sections if re.search(pattern, s.heading, re.I)), None)


def _job_line(job: JobContext) -> str:
    parts = []
    if job.job_title:
        parts.append(f"Role: {job.job_title}")
    if job.company_name:
        parts.append(f"Company: {job.company_name}")
    return ". ".join(parts)


def _applicant_line(profile) -> str:
    parts = [profile.get("full_name", ""), profile.get("current_title", "")]
    if profile.get("years_experience"):
        parts.append(f"{profile['years_experience']} years experience")
    return ", ".join(p for p in parts if p)


# ---------- fallbacks ----------

def fallback_cover_letter(context: AgentContext) -> str:
    profile, resume, job = context.profile, context.resume, context.job_context
    name = profile.get("full_name") or "the applicant"
    title = profile.get("current_title") or "professional"
    company = job.company_name or "your organization"
    role = job.job_title or "this position"

    experience = _section(resume, r"experience|work|history")
    skills = _section(resume, r"skills|competenc|technical")
    if experience:
        lines = [l.strip() for l in experience.content.splitlines() if len(l.strip()) > 10]
        highlights = ". ".join(lines[:3])
    else:
        highlights = ". ".join(resume.highlights[:3])

    letter = (f"Dear Hiring Manager,\n\nI am writing to express my interest in the {role} position at {company}. "
              f"As a {title}, I bring a strong background that aligns well with this opportunity.")
    if highlights:
        letter += f"\n\n{highlights}."
    if skills:
        letter += f" My key skills include {skills.content[:150]}."
    letter += (f"\n\nI would welcome the opportunity to discuss how my experience can contribute to "
               f"{company}'s success.\n\nSincerely,\n{name}")
    return letter


def fallback_summary(context: AgentContext) -> str:
    profile, job = context.profile, context.job_context
    title = profile.get("current_title") or "professional"
    experience = f"with {profile['years_experience']} years of experience" if profile.get("years_experience") else ""
    role = f" seeking a {job.job_title} role" if job.job_title else ""
    skills = _section(context.resume, r"skills|competenc|technical")
    brief = ""
    if skills:
        lines = [l for l in skills.content.splitlines() if l.strip()]
        brief = f", skilled in {', '.join(lines[:2])[:100]}"
    lead = " ".join(p for p in (profile.get("full_name") or "Experienced", title, experience) if p)
    return re.sub(r"\s+", " ", f"{lead}{role}{brief}.").strip()


def fallback_answer(question: str, context: AgentContext) -> str:
    profile, resume, job = context.profile, context.resume, context.job_context
    snippets = find_relevant_snippets(resume.sections, question, 2, 300)
    lines = [l.strip() for l in snippets.splitlines() if len(l.strip()) > 10 and not l.startswith("[")]

    if re.search(r"why .*(want|interested|apply|join)", question, re.I):
        role = job.job_title or "this role"
        company = job.company_name or "this company"
        answer = (f"I am drawn to {role} at {company} because it aligns with my background as a "
                  f"{profile.get('current_title') or 'professional'}.")
        if lines:
            answer += " " + ". ".join(lines[:2]) + "."
        return answer
    if lines:
        return ". ".join(lines[:4])[:500]
    return profile.get("summary") or ". ".join(resume.highlights)


# ---------- generation ----------

COVER_LETTER_SYSTEM = ("You write concise, professional cover letters. Output ONLY the letter text, "
                       "no commentary. Keep it to 3 short paragraphs. Be specific and authentic, not generic.")
SUMMARY_SYSTEM = ("You write professional summaries for job applications. Output ONLY the summary text, "
                  "2-3 sentences. Be specific and compelling.")
ANSWER_SYSTEM = ("You answer job application questions on behalf of the applicant. Write in first person. "
                 "Be specific, drawing on the resume details provided. Output ONLY the answer, 2-4 sentences. "
                 "Do not include the question in your response.")


def build_prose_prompt(kind: str, label: str, context: AgentContext):
    """Returns (system_prompt, user_prompt, resume_context) for one prose field."""
    profile, resume, job = context.profile, context.resume, context.job_context
    if kind == "cover-letter":
        snippets = find_relevant_snippets(resume.sections, f"{job.job_title} {job.description_snippet}", 4, 800)
        ctx = snippets or resume.raw_text[:600]
        details = f"Job details: {job.description_snippet[:300]}\n" if job.description_snippet else ""
        user = (f"Write a cover letter.\n{_job_line(job)}\nApplicant: {_applicant_line(profile)}\n{details}\n"
                f"Resume highlights:\n{ctx}\n\n"
                "Write a 3-paragraph cover letter. Paragraph 1: express interest and fit. "
                "Paragraph 2: highlight 2-3 specific qualifications from the resume. "
                "Paragraph 3: enthusiasm and call to action. Start with \"Dear Hiring Manager,\" and end with "
                f"\"Sincerely, {profile.get('full_name') or 'the applicant'}\".")
        return COVER_LETTER_SYSTEM, user, snippets
    if kind == "summary":
        snippets = find_relevant_snippets(resume.sections, f"{job.job_title} summary skills experience", 3, 400)
        user = (f"Write a professional summary.\n{_job_line(job)}\nApplicant: {_applicant_line(profile)}\n\n"
                f"Resume context:\n{snippets or resume.raw_text[:400]}\n\n"
                "Write a 2-3 sentence professional summary highlighting relevant skills and experience for this role.")
        return SUMMARY_SYSTEM, user, snippets
    snippets = find_relevant_snippets(resume.sections, f"{label} {job.job_title}", 3, 500)
    user = (f"Answer this application question: \"{label}\"\n{_job_line(job)}\n"
            f"Applicant: {_applicant_line(profile)}\n\n"
            f"Resume context:\n{snippets or resume.raw_text[:500]}\n\n"
            "Answer in 2-4 sentences, first person, drawing on specific details from the resume.")
    return ANSWER_SYSTEM, user, snippets


def _fallback(kind: str, label: str, context: AgentContext) -> str:
    if kind == "cover-letter":
        return fallback_cover_letter(context)
    if kind == "summary":
        return fallback_summary(context)
    return fallback_answer(label, context)


async def generate_field_content(label: str, context: AgentContext,
                                 backend: Optional[GenerativeBackend] = None) -> str:
    kind = classify_generative_field(label)
    system_prompt, user_prompt, snippets = build_prose_prompt(kind, label, context)
    if backend is None or (not snippets and not context.resume.raw_text):
        return _fallback(kind, label, context)
    try:
        result = (await backend.run_prompt(system_prompt, user_prompt) or "").strip()
        if len(result) > MIN_LENGTH[kind]:
            return result
        logger.info(f"Generated {kind} for '{label}' too short; using template")
    except Exception as e:
        logger.warning(f"Prose generation for '{label}' failed: {e}")
    return _fallback(kind, label, context)
