#!/usr/bin/env python3
"""
main.py
=======
CLI entry point for the chargeback review workflow.

Examples:
  python main.py --list
  python main.py --scenario fraud_linked_history
  python main.py --scenario merchandise_quality --explain
  python main.py --scenario merchandise_quality \
      --feedback "This customer seems suspicious and the evidence is weak"
  python main.py --scenario duplicate_charge --decision approve

Without --feedback or --decision the case is analyzed only: the explanation
is re-derived and the case itself is not modified.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from config import get_settings
from graph.workflow import build_workflow, run_request
from sample_cases import SCENARIOS, load_case
from scoring_engine import render_explanation
from scoring_engine.case import HUMAN_DECISIONS


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chargeback review workflow")
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), help="sample case to run")
    parser.add_argument("--list", action="store_true", help="list sample cases and exit")
    parser.add_argument("--feedback", help="analyst feedback; triggers a re-analysis")
    parser.add_argument("--decision", choices=HUMAN_DECISIONS, help="record a human decision")
    parser.add_argument("--explain", action="store_true", help="print the full score breakdown")
    parser.add_argument("--log-dir", default=None, help="audit log directory (default: AUDIT_LOG_DIR)")
    parser.add_argument("--json", action="store_true", help="print the resulting case as JSON")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)

    if args.list or not args.scenario:
        for name, payload in SCENARIOS.items():
            print(f"  {name:<24} {payload['caseNumber']}  {payload.get('category') or 'UNCATEGORIZED'}")
        return 0

    if args.feedback is not None and args.decision:
        print("Use either --feedback or --decision, not both.", file=sys.stderr)
        return 2

    case = load_case(args.scenario)
    workflow = build_workflow(log_dir=args.log_dir, settings=settings)

    if args.decision:
        state = run_request("decide", case, decision=args.decision, workflow=workflow)
    elif args.feedback is not None:
        state = run_request("reanalyze", case, feedback=args.feedback, workflow=workflow)
    else:
        state = run_request("analyze", case, workflow=workflow)

    if args.explain and state.case is not None:
        print(render_explanation(state.case))
    elif state.result is not None:
        print(state.result.analysis)

    if args.json and state.case is not None:
        print(json.dumps(state.case.to_payload(), indent=2))

    return 1 if state.terminal_status == "REJECTED" else 0


if __name__ == "__main__":
    sys.exit(main())
