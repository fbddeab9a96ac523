"""
runner.py - plan actions for one captured form and save the plan (no execution).

Reads SNAPSHOT_JSON, PROFILE_JSON and RESUME_FILE (optional), writes PLAN_OUT.
Pass --no-llm to skip the model and get the deterministic plan.
"""
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import PLAN_OUT, PROFILE_JSON, RESUME_FILE, SNAPSHOT_JSON
from .engine import build_action_plan
from .llm import get_backend, unavailable_backend
from .models import FormSnapshot, PlanResult
from .profile import load_context

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def load_snapshot(path: str) -> FormSnapshot:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"snapshot JSON not found: {path}")
    return FormSnapshot.from_dict(json.loads(p.read_text(encoding="utf-8")))


def print_review(snapshot: FormSnapshot, plan: PlanResult):
    print("\n" + "=" * 80)
    print(f"FORM: {snapshot.title or snapshot.url}")
    print(f"SOURCE: {plan.source}")
    print(f"DETAIL: {plan.detail}")
    print("=" * 80)
    for a in plan.actions:
        value = a.value if len(a.value) <= 60 else a.value[:57] + "..."
        print(f" {a.type:<11} {a.confidence:.2f}  {a.field_label[:30]:<30}  {value}")
    print("=" * 80)


def save_plan(plan: PlanResult, path: str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    return out


def run_once(use_llm: bool = True, snapshot_path: Optional[str] = None, profile_path: Optional[str] = None,
             resume_path: Optional[str] = None, out_path: Optional[str] = None) -> PlanResult:
    snapshot = load_snapshot(snapshot_path or SNAPSHOT_JSON)
    profile_path = profile_path or PROFILE_JSON
    resume_path = resume_path or RESUME_FILE
    if resume_path and not Path(resume_path).exists():
        logger.warning(f"Resume not found at {resume_path}; continuing without it")
        resume_path = None
    context = load_context(profile_path, resume_path)
    logger.info(f"Loaded {len(snapshot.fields)} field(s), {len(snapshot.navigation_targets)} navigation target(s)")

    backend = get_backend() if use_llm else unavailable_backend("disabled with --no-llm")
    plan = asyncio.run(build_action_plan(snapshot, context, backend=backend))

    print_review(snapshot, plan)
    out = save_plan(plan, out_path or PLAN_OUT)
    logger.info(f"Saved {len(plan.fill_actions)} fill and {len(plan.navigation_actions)} navigation action(s) to {out}")
    return plan


def main(argv: Optional[List[str]] = None):
    args = sys.argv[1:] if argv is None else argv
    try:
        run_once(use_llm="--no-llm" not in args)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
