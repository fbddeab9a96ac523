import time

from autofill_agent.models import FormSnapshot


def _snapshot(captured_at):
    return FormSnapshot.from_dict({"url": "https://jobs.lever.co/acme/1", "capturedAt": captured_at, "fields": []})


def test_captured_at_accepts_epoch_numbers():
    assert _snapshot(1700000000).captured_at == 1700000000.0
    assert _snapshot("1700000000.5").captured_at == 1700000000.5


def test_captured_at_accepts_iso_strings():
    assert _snapshot("2024-01-01T00:00:00Z").captured_at == 1704067200.0
    assert _snapshot("2024-01-01T01:00:00+01:00").captured_at == 1704067200.0


def test_unreadable_captured_at_defaults_to_now():
    before = time.time()
    snap = _snapshot("yesterday-ish")
    assert before <= snap.captured_at <= time.time()
    assert FormSnapshot.from_dict({"url": "u"}).captured_at >= before
