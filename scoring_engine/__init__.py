from scoring_engine.case import CaseRecord, Category, Customer, Evidence, Flag, Transaction
from scoring_engine.explain import AnalysisResult, derive_analysis, render_explanation
from scoring_engine.factors import FactorSet, extract_factors
from scoring_engine.feedback import adjust_for_feedback
from scoring_engine.legitimacy import legitimacy_score, strategy_for
from scoring_engine.model import TIERS, WEIGHTS, ScoringResult, compute_score
from scoring_engine.recommendation import resolve_recommendation

__all__ = [
    "AnalysisResult",
    "CaseRecord",
    "Category",
    "Customer",
    "Evidence",
    "FactorSet",
    "Flag",
    "ScoringResult",
    "TIERS",
    "Transaction",
    "WEIGHTS",
    "adjust_for_feedback",
    "compute_score",
    "derive_analysis",
    "extract_factors",
    "legitimacy_score",
    "render_explanation",
    "resolve_recommendation",
    "strategy_for",
]
