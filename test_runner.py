import json

import pytest

from autofill_agent.runner import main, run_once
from conftest import SNAPSHOT


def _inputs(tmp_path):
    snap = tmp_path / "snapshot.json"
    snap.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    profile = tmp_path / "profile.json"
    profile.write_text(json.dumps({"fullName": "Jane Doe", "email": "jane@example.com",
                                   "location": "Austin, TX, United States"}), encoding="utf-8")
    return str(snap), str(profile)


def test_no_llm_run_writes_plan(tmp_path, capsys):
    snap, profile = _inputs(tmp_path)
    out = tmp_path / "out" / "plan.json"

    plan = run_once(use_llm=False, snapshot_path=snap, profile_path=profile,
                    resume_path=str(tmp_path / "missing.txt"), out_path=str(out))

    saved = json.loads(out.read_text(encoding="utf-8"))
    assert saved["source"] == plan.source == "hybrid"
    assert "disabled with --no-llm" in saved["detail"]
    assert saved["actions"][-1]["type"] == "clickNext"
    by_selector = {a["selector"]: a for a in saved["actions"]}
    assert by_selector["#first"]["value"] == "Jane"
    assert by_selector["#country"]["value"] == "US"
    assert by_selector["#why"]["value"].startswith("I am drawn to Backend Engineer at Acme")
    assert "SOURCE: hybrid" in capsys.readouterr().out


def test_missing_snapshot_exits(tmp_path, monkeypatch):
    monkeypatch.setattr("autofill_agent.runner.SNAPSHOT_JSON", str(tmp_path / "none.json"))
    with pytest.raises(SystemExit):
        main(["--no-llm"])
