#!/usr/bin/env python3
"""
Dark review-console Streamlit UI for the chargeback review workflow.
"""

from __future__ import annotations

import io
import os
import json
import html
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import streamlit as st

from graph.nodes.hitl import DECISION_LABELS
from graph.session import ReviewSession
from graph.state import CaseWorkflowState
from graph.workflow import build_workflow
from middleware.pii import mask_customer_id
from sample_cases import SCENARIOS, load_case
from scoring_engine.exceptions import ReviewEngineError
from scoring_engine.model import TIERS, WEIGHTS, FACTOR_LABELS, risk_tier
from scoring_engine.recommendation import RECOMMENDATION_LABELS, displayed_recommendation


st.set_page_config(
    page_title="Chargeback Review Console",
    page_icon=":credit_card:",
    layout="wide",
    initial_sidebar_state="collapsed",
)

PIPELINE_STEPS = [
    ("intake", "Intake"),
    ("pii_middleware", "PII Mask"),
    ("moderation_middleware", "Moderation"),
    ("rescoring", "Re-score"),
    ("scoring", "Scoring"),
    ("router", "Router"),
    ("hitl", "Decision"),
    ("output", "Output"),
]


def inject_css() -> None:
    st.markdown(
        """
        <style>
        :root {
          --bg:#020a14;
          --line:#10324f;
          --txt:#a8d4ff;
          --muted:#5f8caf;
        }
        .stApp { background: radial-gradient(1200px 500px at 60% -20%, #0a2741 0%, var(--bg) 55%); color: var(--txt);}
        .main .block-container {padding-top: 0.6rem; padding-bottom: 0.7rem; max-width: 100%;}
        [data-testid="stSidebar"] {display:none;}
        .console-head {
          border:1px solid var(--line); background:#03101f; padding:8px 12px; margin-bottom:8px;
          display:flex; justify-content:space-between; align-items:center;
          font-family: "Consolas", "Courier New", monospace; color:var(--txt);
        }
        .brand {letter-spacing:3px; color:#d2ebff; font-weight:700;}
        .brand small {color:var(--muted); letter-spacing:1px; margin-left:8px;}
        .run-meta {font-size:12px; color:var(--muted);}
        .pane {
          border:1px solid var(--line); background:linear-gradient(180deg, #051221 0%, #030b16 100%);
          min-height: clamp(180px, 28vh, 240px); padding:14px;
        }
        .pane-title{
          font-family:"Consolas","Courier New",monospace; color:#7fb4de; letter-spacing:2px; font-size:12px; text-transform:uppercase;
          margin-bottom:10px;
        }
        .pill-row {display:flex; gap:10px; flex-wrap:wrap; margin-bottom:12px;}
        .pill {border:1px solid #194466; background:#071b30; color:#7ea6c6; padding:8px 14px; border-radius:4px; font-family:monospace; font-size:12px;}
        .pill.on {border-color:#2df594; color:#2df594; background:#08261a;}
        .pill.warn {border-color:#ffb341; color:#ffb341; background:#2a1a03;}
        .panel {border:1px solid #17334b; background:#051526; padding:12px; margin-bottom:10px;}
        .risk-big{font-family:monospace; font-size:58px; color:#ff9ca4; line-height:1;}
        .status-big{font-family:monospace; letter-spacing:4px; font-size:34px; font-weight:700;}
        .status-ok{color:#36ff96;} .status-warn{color:#ffcd63;} .status-bad{color:#ff7884;}
        .mini {font-family:monospace; color:#6fa1c5; font-size:12px;}
        .narrative {
          border:1px solid #1f5f37; background:#062313; padding:10px; color:#74e7a5;
          font-family:monospace; font-size:12px; white-space:pre-wrap;
        }
        .closed-head {
          border-top:1px solid #4b161c; border-bottom:1px solid #4b161c; background:#160a0c; color:#ff8a95;
          padding:10px; margin:8px 0 10px 0; font-family:monospace; letter-spacing:2px; font-weight:700;
        }
        .audit-pane, .audit-pane * { color:#ffffff !important; }
        .audit-feed .audit-row {
          color:#ffffff !important; border-bottom:1px dotted #245071; font-family:monospace;
          font-size:11px; padding:2px 0; white-space:pre-wrap; word-break:break-word;
        }
        .stSelectbox label, .stTextArea label, .stTextInput label { color:#ffffff !important; opacity:1 !important; }
        div[data-testid="stTextInput"] input, textarea, select {
          background:#051326 !important; color:#a8d4ff !important; border:1px solid #214460 !important;
          font-family:monospace !important;
        }
        button[kind="primary"] {background:#0c3f22 !important; border:1px solid #24dc82 !important; color:#85f7ba !important;}
        button[kind="secondary"] {background:#051a2d !important; border:1px solid #1f4e75 !important; color:#8dc3ee !important;}
        </style>
        """,
        unsafe_allow_html=True,
    )


def now_utc_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def normalize_state(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if is_dataclass(value):
        return asdict(value)
    return {"errors": [f"Unexpected state type: {type(value).__name__}"]}


def score_bar(value: float) -> str:
    pct = max(0.0, min(100.0, value))
    return (
        "<div style='height:6px;background:#0a2238;border-radius:4px;'>"
        f"<div style='height:6px;width:{pct}%;background:#41d7ff;border-radius:4px;'></div></div>"
    )


def status_css(status: Optional[str]) -> str:
    if status in ("ANALYZED", "RESCORED", "DECIDED"):
        return "status-ok"
    if status == "DEGRADED":
        return "status-warn"
    return "status-bad"


@st.cache_resource
def get_workflow(log_dir: str):
    return build_workflow(log_dir=log_dir)


def get_session(scenario_name: str, log_dir: str) -> ReviewSession:
    sessions = st.session_state.sessions
    if scenario_name not in sessions:
        sessions[scenario_name] = ReviewSession(load_case(scenario_name), workflow=get_workflow(log_dir))
    return sessions[scenario_name]


def record_run(scenario_name: str, action: str, run: Optional[CaseWorkflowState], stdout: str, error: str = "") -> None:
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "scenario": scenario_name,
        "action": action,
        "result": normalize_state(run) if run is not None else {"errors": [error]},
        "stdout": stdout,
    }
    st.session_state.latest_run = entry
    st.session_state.run_history.insert(0, entry)


def run_action(scenario_name: str, action: str, fn) -> Optional[CaseWorkflowState]:
    captured_stdout = io.StringIO()
    captured_stderr = io.StringIO()
    run = None
    error = ""
    try:
        with redirect_stdout(captured_stdout), redirect_stderr(captured_stderr):
            run = fn()
    except ReviewEngineError as exc:
        error = str(exc)
        st.session_state.flash = ("error", error)
    record_run(scenario_name, action, run, captured_stdout.getvalue(), error)
    return run


# ── Button callbacks (run before the next script pass) ────────────────────────

def on_reanalyze(scenario_name: str, log_dir: str) -> None:
    session = get_session(scenario_name, log_dir)
    session.feedback_input = st.session_state.get("feedback_text", "")
    run = run_action(scenario_name, "reanalyze", session.submit_feedback)
    if run is None:
        return
    if run.terminal_status == "REJECTED":
        st.session_state.flash = ("warning", "Please enter your feedback before re-analyzing.")
        return
    st.session_state.feedback_text = ""
    st.session_state.flash = ("success", "Re-analysis complete. Risk assessment updated.")


def on_analyze(scenario_name: str, log_dir: str) -> None:
    session = get_session(scenario_name, log_dir)

    def analyze() -> Optional[CaseWorkflowState]:
        session.analyze()
        return session.last_run

    run_action(scenario_name, "analyze", analyze)


def on_decide(scenario_name: str, log_dir: str, decision: str) -> None:
    session = get_session(scenario_name, log_dir)
    notes = st.session_state.get("feedback_text", "")
    run = run_action(scenario_name, "decide", lambda: session.decide(decision, notes=notes))
    if run is not None:
        st.session_state.flash = ("success", f"{DECISION_LABELS[decision]} recorded.")


inject_css()
for key, default in (("sessions", {}), ("latest_run", None), ("run_history", []), ("flash", None)):
    if key not in st.session_state:
        st.session_state[key] = default

latest = st.session_state.latest_run
run_id = latest["result"].get("run_id", "DEMO") if latest else "DEMO"
st.markdown(
    f"""
    <div class="console-head">
      <div class="brand">CHARGEBACK REVIEW CONSOLE <small>risk scoring | analyst feedback | decisions</small></div>
      <div class="run-meta">RUN: <b>{run_id}</b> &nbsp;&nbsp; {now_utc_str()}</div>
    </div>
    """,
    unsafe_allow_html=True,
)

left, center, right = st.columns([1.4, 4.6, 1.3], gap="small")

with left:
    st.markdown("<div class='pane'><div class='pane-title'>Case Queue</div>", unsafe_allow_html=True)
    scenario_name = st.selectbox("Load Case", list(SCENARIOS.keys()), key="scenario_name")
    log_dir = st.text_input("Log Dir", value="logs")
    session = get_session(scenario_name, log_dir)
    case = session.case

    st.markdown("<div class='panel'><div class='mini'>CASE DETAIL</div>", unsafe_allow_html=True)
    for label, value in (
        ("Case", case.case_number),
        ("Customer", mask_customer_id(case.customer.id)),
        ("Category", case.category.value),
        ("Merchant", f"{case.transaction.merchant_name} ({case.transaction.merchant_category})"),
        ("Amount", f"{case.transaction.amount} {case.transaction.currency}"),
        ("Reason", case.dispute_reason),
        ("Evidence", f"{len(case.evidence)} item(s)"),
        ("Status", case.status),
        ("Priority", case.priority),
    ):
        st.markdown(f"<div class='mini'>{label}: <b>{html.escape(str(value))}</b></div>", unsafe_allow_html=True)
    st.markdown("</div>", unsafe_allow_html=True)

    st.markdown("<div class='panel'><div class='mini'>THRESHOLD TRANSPARENCY</div>", unsafe_allow_html=True)
    threshold_text = " | ".join([f"{label} >= {threshold}" for threshold, label in TIERS])
    st.markdown(f"<div class='mini'>Tier rules: {threshold_text}</div>", unsafe_allow_html=True)
    for key, weight in WEIGHTS.items():
        st.markdown(f"<div class='mini'>{FACTOR_LABELS[key]}: {float(weight):.0%}</div>", unsafe_allow_html=True)
    st.markdown("</div>", unsafe_allow_html=True)

    st.button(
        "REFRESH ANALYSIS",
        use_container_width=True,
        on_click=on_analyze,
        args=(scenario_name, log_dir),
    )
    st.markdown("</div>", unsafe_allow_html=True)

latest = st.session_state.latest_run
result = latest["result"] if latest and latest["scenario"] == scenario_name else {}
node_path = result.get("node_path", [])
status = result.get("terminal_status")
recommendation = displayed_recommendation(case)

with center:
    st.markdown("<div class='pane'><div class='pane-title'>Execution Pipeline</div>", unsafe_allow_html=True)

    pills_html = ["<div class='pill-row'>"]
    for key, label in PIPELINE_STEPS:
        cls = "pill"
        if key in node_path:
            cls = "pill on"
        if key == "rescoring" and status == "DEGRADED":
            cls = "pill warn"
        pills_html.append(f"<div class='{cls}'>{label}</div>")
    pills_html.append("</div>")
    st.markdown("".join(pills_html), unsafe_allow_html=True)

    flash = st.session_state.flash
    if flash:
        kind, message = flash
        getattr(st, kind)(message)
        st.session_state.flash = None

    top_a, top_b, top_c = st.columns([1.2, 1.7, 1.8], gap="small")
    with top_a:
        st.markdown("<div class='panel'>", unsafe_allow_html=True)
        st.markdown("<div class='mini'>RISK SCORE</div>", unsafe_allow_html=True)
        st.markdown(
            f"<div class='risk-big'>{case.risk_score}</div><div class='mini'>/ 100</div>",
            unsafe_allow_html=True,
        )
        st.markdown(f"<div class='mini'>Tier: <b>{risk_tier(case.risk_score)}</b></div>", unsafe_allow_html=True)
        st.markdown(f"<div class='mini'>Confidence: <b>{case.ai_confidence}%</b></div>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)
    with top_b:
        st.markdown("<div class='panel'>", unsafe_allow_html=True)
        st.markdown("<div class='mini'>RECOMMENDATION</div>", unsafe_allow_html=True)
        st.markdown(
            f"<div class='status-big {status_css(status)}'>{RECOMMENDATION_LABELS[recommendation]}</div>",
            unsafe_allow_html=True,
        )
        st.markdown(f"<div class='mini'>Last run: {status or 'N/A'}</div>", unsafe_allow_html=True)
        st.markdown(f"<div class='mini'>Route: {result.get('route_taken') or 'N/A'}</div>", unsafe_allow_html=True)
        st.markdown(f"<div class='mini'>Path: {' -> '.join(node_path) if node_path else 'N/A'}</div>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)
    with top_c:
        st.markdown("<div class='panel'><div class='mini'>SCORE BREAKDOWN</div>", unsafe_allow_html=True)
        breakdown = result.get("score_breakdown") or {}
        if breakdown:
            for values in breakdown.values():
                st.markdown(
                    f"<div class='mini'>{values['label']}: {values['score']} "
                    f"(impact {float(values['weighted_impact']):.2f})</div>{score_bar(values['score'])}",
                    unsafe_allow_html=True,
                )
        else:
            st.markdown("<div class='mini'>Refresh the analysis to see the breakdown.</div>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)

    factors_col, flags_col = st.columns(2, gap="small")
    analysis = result.get("result") or {}
    with factors_col:
        st.markdown("<div class='panel'><div class='mini'>KEY FACTORS</div>", unsafe_allow_html=True)
        for item in analysis.get("key_factors") or ["No analysis yet."]:
            st.markdown(f"<div class='mini'>+ {html.escape(item)}</div>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)
    with flags_col:
        st.markdown("<div class='panel'><div class='mini'>WARNING FLAGS</div>", unsafe_allow_html=True)
        for item in analysis.get("warning_flags") or ["None."]:
            st.markdown(f"<div class='mini'>! {html.escape(item)}</div>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)

    st.markdown("<div class='mini'>AI ANALYSIS</div>", unsafe_allow_html=True)
    narrative = analysis.get("analysis") or case.ai_analysis or "No analysis available."
    st.markdown(f"<div class='narrative'>{html.escape(narrative)}</div>", unsafe_allow_html=True)

    if case.is_closed:
        st.markdown(
            f"<div class='closed-head'>CASE CLOSED - {DECISION_LABELS[case.human_decision].upper()}</div>",
            unsafe_allow_html=True,
        )
        if case.analyst_feedback:
            st.markdown(f"<div class='mini'>Analyst notes: {html.escape(case.analyst_feedback)}</div>", unsafe_allow_html=True)
    else:
        st.text_area(
            "Analyst feedback",
            key="feedback_text",
            height=90,
            max_chars=700,
            help="Describe what the model missed. Use factual and non-PII language.",
            disabled=session.is_reanalyzing,
        )
        st.button(
            "Re-analyzing..." if session.is_reanalyzing else "RE-ANALYZE WITH FEEDBACK",
            type="primary",
            use_container_width=True,
            disabled=session.is_reanalyzing,
            on_click=on_reanalyze,
            args=(scenario_name, log_dir),
        )
        if case.analyst_feedback:
            st.markdown(f"<div class='mini'>Last feedback: {html.escape(case.analyst_feedback)}</div>", unsafe_allow_html=True)

        st.markdown("<div class='mini'>FINAL DECISION</div>", unsafe_allow_html=True)
        buttons = st.columns(len(DECISION_LABELS))
        for column, (decision, label) in zip(buttons, DECISION_LABELS.items()):
            column.button(
                label,
                key=f"decide_{decision}",
                use_container_width=True,
                disabled=session.is_reanalyzing,
                on_click=on_decide,
                args=(scenario_name, log_dir, decision),
            )

    st.markdown("</div>", unsafe_allow_html=True)

with right:
    st.markdown("<div class='pane audit-pane'><div class='pane-title'>Audit Trail</div>", unsafe_allow_html=True)
    if latest:
        lines = [ln.strip() for ln in latest.get("stdout", "").splitlines() if ln.strip()]
        rendered_rows = [f"<div class='audit-row'>{html.escape(line[:180])}</div>" for line in lines[-35:]]
        st.markdown(f"<div class='audit-feed'>{''.join(rendered_rows)}</div>", unsafe_allow_html=True)
    else:
        st.markdown("<div class='audit-feed'><div class='audit-row'>No run yet.</div></div>", unsafe_allow_html=True)

    audit_path = latest["result"].get("audit_log_path") if latest else None
    if audit_path and os.path.exists(audit_path):
        with open(audit_path) as f:
            audit_record = json.load(f)
        package = {
            "run_timestamp": latest["ts"],
            "scenario": latest["scenario"],
            "action": latest["action"],
            "audit": audit_record,
        }
        st.download_button(
            "Download Audit JSON",
            data=json.dumps(package, indent=2, default=str),
            file_name=f"audit_{case.case_number}_{datetime.now(timezone.utc).strftime('%Y%m%d')}.json",
            mime="application/json",
            use_container_width=True,
        )
    st.markdown("</div>", unsafe_allow_html=True)
