import random

import pytest

from autofill_agent.llm import BackendUnavailableError
from autofill_agent.models import AgentContext, FormSnapshot, JobContext
from autofill_agent.profile import build_resume

RESUME_TEXT = """Jane Doe
Senior Software Engineer with 7 years building data platforms

Experience
Acme Corp - Senior Software Engineer, 2019-2024
Led migration of batch pipelines to streaming with Kafka and Flink
Built internal Python SDK used by 40 engineering teams

Skills
Python, Go, Kafka, PostgreSQL, Kubernetes

Education
B.S. Computer Science, State University
"""


class ScriptedBackend:
    """
    Stands in for GenerativeBackend. Each run_prompt call pops the next scripted
    response; a response that is an exception instance is raised instead.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def run_prompt(self, system_prompt, user_prompt, json_schema=None):
        self.calls.append((system_prompt, user_prompt, json_schema))
        if not self.responses:
            raise AssertionError("backend called more often than scripted")
        nxt = self.responses.pop(0)
        if isinstance(nxt, BaseException):
            raise nxt
        return nxt


class HardDown(ScriptedBackend):
    async def run_prompt(self, system_prompt, user_prompt, json_schema=None):
        self.calls.append((system_prompt, user_prompt, json_schema))
        raise BackendUnavailableError("engine cannot start here")


SNAPSHOT = {
    "url": "https://boards.greenhouse.io/acme/jobs/123",
    "title": "Job Application for Backend Engineer at Acme",
    "capturedAt": 1700000000,
    "fields": [
        {"id": "f1", "selector": "#first", "kind": "text", "label": "First Name"},
        {"id": "f2", "selector": "#email", "kind": "email", "label": "Email Address"},
        {"id": "f3", "selector": "#country", "kind": "select", "label": "Country",
         "options": [{"label": "Select...", "value": ""},
                     {"label": "United States", "value": "US"},
                     {"label": "Canada", "value": "CA"}]},
        {"id": "f4", "selector": "#phone", "kind": "tel", "label": "Phone", "currentValue": "555-0100"},
        {"id": "f5", "selector": "#pronouns", "kind": "text", "label": "Pronouns"},
        {"id": "f6", "selector": "#why", "kind": "textarea", "label": "Why do you want to work here?"},
    ],
    "navigationTargets": [
        {"id": "n1", "selector": "#next", "text": "Next"},
        {"id": "n2", "selector": "#submit", "text": "Submit application"},
    ],
}


@pytest.fixture
def snapshot():
    return FormSnapshot.from_dict(SNAPSHOT)


@pytest.fixture
def profile():
    return {
        "full_name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "city": "Austin",
        "state": "TX",
        "country": "USA",
        "current_title": "Senior Software Engineer",
        "years_experience": "7",
    }


@pytest.fixture
def context(profile):
    return AgentContext(profile=profile, resume=build_resume(RESUME_TEXT), job_context=JobContext())


@pytest.fixture
def rng():
    return random.Random(7)
