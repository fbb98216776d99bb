"""
Risk Engine
===========

Combines the rule library and a legal context evaluator into one analysis
call.  ``RiskEngine.analyze`` runs a fixed, synchronous pipeline:

1. infer Likelihood/Impact (or accept the manual values)
2. compute the base score and level
3. evaluate UU PDP compliance and the NIST CSF mapping
4. generate recommendations
5. consult the legal context evaluator
6. reconcile the final risk level, applying the residual-risk floor for
   services verified in a government registry

Nothing is kept between calls.  The evaluator is injected at construction
and never looked up globally.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from risk_modules.legal_context import LegalContextEvaluator, NullLegalContextEvaluator
from risk_modules.rules import (
    RATING_MAX,
    RATING_MIN,
    categorize_risk,
    clamp_rating,
    coerce_rating,
    evaluate_compliance,
    generate_recommendations,
    infer_likelihood_impact,
    map_framework,
    risk_score,
)
from risk_modules.scenario import (
    AnalysisResult,
    AutoInferenceResult,
    DataType,
    FinalRisk,
    LegalContext,
    LegalStatus,
    LIMode,
    RiskLevel,
    ScenarioInput,
)

logger = logging.getLogger(__name__)

DATA_TYPE_CATEGORIES: Dict[DataType, FrozenSet[str]] = {
    DataType.IDENTITAS: frozenset({"ktp", "sim"}),
    DataType.BIOMETRIK: frozenset({"wajah", "suara"}),
    DataType.UMUM: frozenset({"nama"}),
}

RESIDUAL_RATING = 1


def derive_data_categories(params: ScenarioInput) -> FrozenSet[str]:
    """Declared categories, or the defaults implied by the data type."""
    if params.data_categories:
        return frozenset(params.data_categories)
    return DATA_TYPE_CATEGORIES.get(params.data_type, frozenset())


def resolve_likelihood_impact(params: ScenarioInput) -> Tuple[int, int, Optional[AutoInferenceResult]]:
    """Return (likelihood, impact, inference detail) for a scenario.

    Manual values are used only when the mode is manual and both values can
    be read as numbers; they are clamped, never rejected.  Otherwise the
    rule-based inference runs and its detail is returned alongside.
    """
    if params.mode_li is LIMode.MANUAL:
        likelihood = coerce_rating(params.likelihood)
        impact = coerce_rating(params.impact)
        if likelihood is not None and impact is not None:
            return clamp_rating(likelihood), clamp_rating(impact), None
        logger.debug("Manual Likelihood/Impact unusable, falling back to inference")
    inferred = infer_likelihood_impact(params)
    return inferred.likelihood, inferred.impact, inferred


def build_risk_matrix(
    likelihood: Optional[int] = None, impact: Optional[int] = None
) -> List[List[Dict[str, object]]]:
    """Cells of the 5x5 risk matrix, highest impact first.

    Each row holds one impact value with likelihood increasing left to
    right; the cell at (``likelihood``, ``impact``) is flagged active.
    """
    rows = []
    for imp in range(RATING_MAX, RATING_MIN - 1, -1):
        row = []
        for lik in range(RATING_MIN, RATING_MAX + 1):
            score = risk_score(lik, imp)
            row.append({
                "likelihood": lik,
                "impact": imp,
                "score": score,
                "level": categorize_risk(score),
                "active": lik == likelihood and imp == impact,
            })
        rows.append(row)
    return rows


class RiskEngine:
    """Runs the full privacy risk analysis for one scenario at a time."""

    def __init__(self, legal_evaluator: Optional[LegalContextEvaluator] = None) -> None:
        self.legal_evaluator = legal_evaluator or NullLegalContextEvaluator()

    def analyze(self, params: ScenarioInput) -> AnalysisResult:
        likelihood, impact, auto_info = resolve_likelihood_impact(params)
        base_score = risk_score(likelihood, impact)
        base_level = categorize_risk(base_score)

        compliance = evaluate_compliance(params)
        framework = map_framework(params)
        recommendations = generate_recommendations(params, base_level, compliance, framework)

        legal_context = self._consult_legal_context(params, base_level)

        risk_level = base_level
        override_reason = None
        if legal_context is not None:
            final_level = RiskLevel.from_label(legal_context.final_risk.final_risk_level)
            if final_level is not None:
                risk_level = final_level
            override_reason = legal_context.final_risk.override_reason
            if legal_context.final_risk.from_government_registry:
                likelihood = impact = RESIDUAL_RATING

        logger.debug(
            "Analysed scenario %r: L=%d I=%d base=%s final=%s",
            params.display_name, likelihood, impact, base_level.value, risk_level.value,
        )
        return AnalysisResult(
            likelihood=likelihood,
            impact=impact,
            risk_score=risk_score(likelihood, impact),
            risk_level=risk_level,
            base_risk_level=base_level,
            auto_inference=auto_info,
            compliance=compliance,
            framework=framework,
            recommendations=recommendations,
            legal_context=legal_context,
            legal_override_reason=override_reason,
        )

    def _consult_legal_context(
        self, params: ScenarioInput, base_level: RiskLevel
    ) -> Optional[LegalContext]:
        try:
            context = self.legal_evaluator.evaluate(
                params.platform_type.value,
                params.service_name,
                derive_data_categories(params),
                base_level.value,
            )
        except Exception:
            logger.warning("Legal context evaluation failed; using matrix risk level", exc_info=True)
            return None
        if context is None:
            return None
        if not isinstance(context, LegalContext):
            logger.warning("Ignoring unusable legal context of type %s", type(context).__name__)
            return None
        if not isinstance(context.legal_status, LegalStatus) or not isinstance(context.final_risk, FinalRisk):
            logger.warning("Ignoring legal context with incomplete legal status or final risk")
            return None
        return context


def analyze(
    params: ScenarioInput, legal_evaluator: Optional[LegalContextEvaluator] = None
) -> AnalysisResult:
    """Convenience wrapper: analyse one scenario with an optional evaluator."""
    return RiskEngine(legal_evaluator).analyze(params)
