from autofill_agent.job import company_from_url, job_context_from_page, resolve_job_context, split_title
from autofill_agent.models import AgentContext, FormSnapshot, JobContext


def test_company_from_job_boards():
    assert company_from_url("https://boards.greenhouse.io/acme-robotics/jobs/42") == "Acme Robotics"
    assert company_from_url("https://jobs.lever.co/stripe/abc-123") == "Stripe"
    assert company_from_url("https://initech.wd5.myworkdayjobs.com/en-US/careers") == "Initech"
    assert company_from_url("https://jobs.ashbyhq.com/linear/123") == "Linear"
    assert company_from_url("https://careers-foo.icims.com/jobs/1") == ""
    assert company_from_url("https://example.com/careers") == ""
    assert company_from_url("") == ""


def test_split_title():
    assert split_title("Backend Engineer at Acme | Greenhouse") == ("Backend Engineer", "Acme")
    assert split_title("Full-Stack Developer - Globex") == ("Full-Stack Developer", "Globex")
    assert split_title("Job Application for Data Analyst at Initech") == ("Data Analyst", "Initech")
    assert split_title("Careers") == ("Careers", "")


def test_url_company_beats_title_company():
    job = job_context_from_page("https://jobs.lever.co/stripe/1", "Engineer at Somewhere Else")
    assert (job.job_title, job.company_name) == ("Engineer", "Stripe")


def test_resolution_order():
    snap = FormSnapshot(url="https://jobs.lever.co/stripe/1", title="Engineer at Stripe", captured_at=0.0,
                        job_context=JobContext(job_title="From snapshot"))
    explicit = AgentContext(job_context=JobContext(job_title="From context"))
    assert resolve_job_context(snap, explicit).job_title == "From context"
    assert resolve_job_context(snap, AgentContext()).job_title == "From snapshot"

    bare = FormSnapshot(url=snap.url, title=snap.title, captured_at=0.0)
    assert resolve_job_context(bare, AgentContext()) == JobContext(job_title="Engineer", company_name="Stripe")
