"""
Rule Library
============

Rule-based building blocks for privacy risk analysis of a processing
scenario:

- Likelihood/Impact inference from the scenario attributes
- Risk scoring on the 5x5 Likelihood x Impact matrix
- Compliance checks against the main principles of Indonesia's Personal
  Data Protection Law (UU No. 27 Tahun 2022, "UU PDP")
- A heuristic maturity mapping onto the NIST CSF 2.0 functions
- Recommendations derived from all of the above

Every function is pure and total: unknown enum values follow the default
branch of each rule instead of raising.
"""
from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

from risk_modules.scenario import (
    AccessControl,
    AutoInferenceResult,
    ComplianceAspect,
    ComplianceFinding,
    ComplianceStatus,
    ConsentType,
    DataType,
    Encryption,
    FrameworkFunction,
    FrameworkMapping,
    IncidentResponsePlan,
    MaturityLevel,
    ProcessingActivity,
    RiskLevel,
    ScenarioInput,
)

RATING_MIN = 1
RATING_MAX = 5
BASE_RATING = 3

# Upper score bound (inclusive) for each level; the matrix colours use the same cut-offs
LOW_MAX_SCORE = 6
MEDIUM_MAX_SCORE = 15

LEGAL_REFERENCES = {
    ComplianceAspect.PURPOSE_LIMITATION: "UU PDP Pasal 16 ayat (2)",
    ComplianceAspect.CONSENT: "UU PDP Pasal 20 dan Pasal 22",
    ComplianceAspect.SECURITY_MEASURES: "UU PDP Pasal 35 dan Pasal 39",
    ComplianceAspect.THIRD_PARTY_PROCESSING: "UU PDP Pasal 51",
    ComplianceAspect.INCIDENT_RESPONSE: "UU PDP Pasal 46",
}


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def clamp_rating(value: int) -> int:
    return max(RATING_MIN, min(RATING_MAX, int(value)))


def coerce_rating(value: Any) -> Optional[int]:
    """Turn a manual Likelihood/Impact entry into an integer.

    Integers and numeric strings are truncated towards zero the way a form
    parser would read them ("4.8" -> 4).  Returns ``None`` when nothing
    numeric can be read, which sends the caller back to auto inference.
    The result is *not* clamped.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if math.isfinite(number) else None


def risk_score(likelihood: int, impact: int) -> int:
    return likelihood * impact


def categorize_risk(score: int) -> RiskLevel:
    if score <= LOW_MAX_SCORE:
        return RiskLevel.LOW
    if score <= MEDIUM_MAX_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


# ---------------------------------------------------------------------------
# Likelihood / Impact inference
# ---------------------------------------------------------------------------

def infer_likelihood_impact(params: ScenarioInput) -> AutoInferenceResult:
    """Infer base Likelihood and Impact for a scenario.

    Both ratings start at 3 and are adjusted additively by data type,
    processing activity, third-party involvement, encryption and access
    control.  Every rule that fires appends one explanation to ``reasons``
    in evaluation order.  Results are clamped to 1..5.

    Args:
        params: The scenario to rate.

    Returns:
        An ``AutoInferenceResult`` with the clamped ratings and reasons.
    """
    likelihood = BASE_RATING
    impact = BASE_RATING
    reasons: List[str] = []

    # Data sensitivity
    if params.data_type.is_sensitive:
        impact += 2
        reasons.append("Sensitive data (biometric/financial) increases impact.")
    elif params.data_type is DataType.IDENTITAS:
        impact += 1
        reasons.append("Identity data moderately increases impact.")
    elif params.data_type in (DataType.LOKASI, DataType.PERILAKU):
        reasons.append("Location/behavioural data has a moderate, context-dependent impact.")
    else:
        reasons.append("General data: impact is assumed to be moderate.")

    # Processing activity
    activity = params.processing_activity
    if activity is ProcessingActivity.SHARING:
        likelihood += 1
        impact += 1
        reasons.append("Sharing data with other parties increases likelihood and impact.")
    elif activity is ProcessingActivity.STORAGE:
        impact += 1
        reasons.append("Long-term storage increases impact should a leak occur.")
    elif activity is ProcessingActivity.COLLECTION:
        reasons.append("Initial collection: risk depends on subsequent storage and sharing.")
    elif activity is ProcessingActivity.TRANSMISSION:
        likelihood += 1
        reasons.append("Transmitting data without strong controls increases likelihood.")
    elif activity is ProcessingActivity.DELETION:
        impact -= 1
        reasons.append("A focus on deletion lowers the impact of residual data.")

    if params.third_party:
        likelihood += 1
        impact += 1
        reasons.append("Third-party involvement widens the attack surface and weakens control certainty.")

    if params.encryption is Encryption.NONE:
        likelihood += 1
        impact += 1
        reasons.append("No encryption increases both the likelihood and impact of a leak.")
    elif params.encryption is Encryption.BOTH:
        likelihood -= 1
        impact -= 1
        reasons.append("Encryption at rest and in transit lowers likelihood and impact.")

    if params.access_control is AccessControl.NONE:
        likelihood += 1
        reasons.append("No formal access control increases the likelihood of unauthorised access.")
    elif params.access_control is AccessControl.ROLE_BASED:
        likelihood -= 1
        reasons.append("Role-based access control lowers the likelihood of unauthorised access.")

    return AutoInferenceResult(
        likelihood=clamp_rating(likelihood),
        impact=clamp_rating(impact),
        reasons=reasons,
    )


# ---------------------------------------------------------------------------
# UU PDP compliance
# ---------------------------------------------------------------------------

def _finding(aspect: ComplianceAspect, status: ComplianceStatus, note: str) -> ComplianceFinding:
    return ComplianceFinding(
        aspect=aspect,
        status=status,
        note=note,
        legal_reference=LEGAL_REFERENCES.get(aspect),
    )


def _purpose_limitation(params: ScenarioInput) -> ComplianceFinding:
    if params.purpose_specified:
        return _finding(
            ComplianceAspect.PURPOSE_LIMITATION,
            ComplianceStatus.COMPLIANT,
            "The processing purpose has been stated explicitly.",
        )
    return _finding(
        ComplianceAspect.PURPOSE_LIMITATION,
        ComplianceStatus.NON_COMPLIANT,
        "The processing purpose has not been clearly explained to the data subject.",
    )


def _consent(params: ScenarioInput) -> ComplianceFinding:
    if params.consent_type is ConsentType.EXPLICIT:
        return _finding(
            ComplianceAspect.CONSENT,
            ComplianceStatus.COMPLIANT,
            "Explicit consent is used, in line with best practice for personal data.",
        )
    if params.consent_type is ConsentType.IMPLICIT:
        if params.data_type.is_sensitive:
            return _finding(
                ComplianceAspect.CONSENT,
                ComplianceStatus.NON_COMPLIANT,
                "Sensitive data (biometric/financial) should rely on explicit consent.",
            )
        return _finding(
            ComplianceAspect.CONSENT,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            "Implicit consent may be acceptable for non-sensitive data but is not ideal.",
        )
    return _finding(
        ComplianceAspect.CONSENT,
        ComplianceStatus.NON_COMPLIANT,
        "There is no clear consent mechanism.",
    )


def _security_measures(params: ScenarioInput) -> ComplianceFinding:
    if params.encryption is Encryption.BOTH and params.access_control is AccessControl.ROLE_BASED:
        return _finding(
            ComplianceAspect.SECURITY_MEASURES,
            ComplianceStatus.COMPLIANT,
            "Encryption and access control are properly in place.",
        )
    if params.encryption is Encryption.NONE or params.access_control is AccessControl.NONE:
        return _finding(
            ComplianceAspect.SECURITY_MEASURES,
            ComplianceStatus.NON_COMPLIANT,
            "Encryption and/or access control are not adequate to protect personal data.",
        )
    return _finding(
        ComplianceAspect.SECURITY_MEASURES,
        ComplianceStatus.PARTIALLY_COMPLIANT,
        "Some security controls are in place but can still be improved.",
    )


def _third_party_processing(params: ScenarioInput) -> ComplianceFinding:
    if params.third_party:
        return _finding(
            ComplianceAspect.THIRD_PARTY_PROCESSING,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            "Third-party involvement requires a clear data processing agreement and due diligence.",
        )
    return _finding(
        ComplianceAspect.THIRD_PARTY_PROCESSING,
        ComplianceStatus.COMPLIANT,
        "Data is processed without third parties, reducing external risk.",
    )


def _incident_response(params: ScenarioInput) -> ComplianceFinding:
    if params.incident_response_plan is IncidentResponsePlan.TESTED_REGULARLY:
        return _finding(
            ComplianceAspect.INCIDENT_RESPONSE,
            ComplianceStatus.COMPLIANT,
            "An incident response plan exists and is tested regularly.",
        )
    if params.incident_response_plan is IncidentResponsePlan.DOCUMENTED:
        return _finding(
            ComplianceAspect.INCIDENT_RESPONSE,
            ComplianceStatus.PARTIALLY_COMPLIANT,
            "An incident response plan exists but is not tested routinely.",
        )
    return _finding(
        ComplianceAspect.INCIDENT_RESPONSE,
        ComplianceStatus.NON_COMPLIANT,
        "There is no clear incident response plan for personal data breaches.",
    )


COMPLIANCE_CHECKS = (
    _purpose_limitation,
    _consent,
    _security_measures,
    _third_party_processing,
    _incident_response,
)


def evaluate_compliance(params: ScenarioInput) -> List[ComplianceFinding]:
    """Evaluate the five UU PDP aspects, always in the same order."""
    return [check(params) for check in COMPLIANCE_CHECKS]


# ---------------------------------------------------------------------------
# NIST CSF 2.0 mapping
# ---------------------------------------------------------------------------

def _protect_level(params: ScenarioInput) -> MaturityLevel:
    if params.encryption is Encryption.NONE or params.access_control is AccessControl.NONE:
        return MaturityLevel.WEAK
    if params.encryption is Encryption.BOTH and params.access_control is AccessControl.ROLE_BASED:
        return MaturityLevel.STRONG
    return MaturityLevel.MEDIUM


def _respond_level(params: ScenarioInput) -> MaturityLevel:
    if params.incident_response_plan is IncidentResponsePlan.DOCUMENTED:
        return MaturityLevel.MEDIUM
    if params.incident_response_plan is IncidentResponsePlan.TESTED_REGULARLY:
        return MaturityLevel.STRONG
    return MaturityLevel.WEAK


def map_framework(params: ScenarioInput) -> List[FrameworkMapping]:
    """Heuristic mapping of the scenario onto the six NIST CSF 2.0 functions."""
    if params.purpose_specified:
        govern = FrameworkMapping(
            FrameworkFunction.GOVERN,
            MaturityLevel.MEDIUM_STRONG,
            "Governance is evidenced by a stated processing purpose.",
        )
    else:
        govern = FrameworkMapping(
            FrameworkFunction.GOVERN,
            MaturityLevel.WEAK,
            "Governance of the processing purpose is not yet clear.",
        )
    return [
        govern,
        FrameworkMapping(
            FrameworkFunction.IDENTIFY,
            MaturityLevel.MEDIUM,
            "Asset and data-type identification is assumed to be basic, via the data type mapping.",
        ),
        FrameworkMapping(
            FrameworkFunction.PROTECT,
            _protect_level(params),
            "Protection depends on encryption and access control.",
        ),
        FrameworkMapping(
            FrameworkFunction.DETECT,
            MaturityLevel.WEAK,
            "Detection is not modelled by these parameters and is assumed to be weak.",
        ),
        FrameworkMapping(
            FrameworkFunction.RESPOND,
            _respond_level(params),
            "Response readiness depends on the availability and testing of a response plan.",
        ),
        FrameworkMapping(
            FrameworkFunction.RECOVER,
            MaturityLevel.MEDIUM,
            "Recovery is assumed to be moderate; clarify it with backup and recovery policies.",
        ),
    ]


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

RISK_POSTURE_RECOMMENDATIONS = {
    RiskLevel.HIGH: "Prioritise this scenario as high risk and mitigate it in the short term.",
    RiskLevel.MEDIUM: "Manage this medium risk with additional controls and periodic monitoring.",
    RiskLevel.LOW: "The risk is low, but the scenario should still be reviewed periodically.",
}


def generate_recommendations(
    params: ScenarioInput,
    risk_level: RiskLevel,
    compliance: Sequence[ComplianceFinding],
    framework: Sequence[FrameworkMapping],
) -> List[str]:
    """Provide actionable recommendations for a scenario.

    The first entry always reflects the risk level.  Each further rule fires
    independently and appends at most one entry, so the list never repeats
    a trigger.
    """
    recs: List[str] = [RISK_POSTURE_RECOMMENDATIONS[risk_level]]

    if params.encryption is Encryption.NONE:
        recs.append(
            "Encrypt data at least at rest and in transit to prevent leaks."
        )
    if params.access_control is AccessControl.NONE:
        recs.append(
            "Implement formal access control, for example role-based access control (RBAC)."
        )
    if params.data_type.is_sensitive and params.consent_type is not ConsentType.EXPLICIT:
        recs.append(
            "Use an explicit consent mechanism for sensitive data such as biometric or financial data."
        )
    if params.third_party:
        recs.append(
            "Put a data processing agreement in place with the third party and perform security due diligence."
        )

    incident = next(
        (f for f in compliance if f.aspect is ComplianceAspect.INCIDENT_RESPONSE), None
    )
    if incident is not None and incident.status is ComplianceStatus.NON_COMPLIANT:
        recs.append(
            "Design and document an incident response procedure for personal data breaches, "
            "including notification of data subjects and the authority."
        )

    protect = next((m for m in framework if m.function is FrameworkFunction.PROTECT), None)
    if protect is not None and protect.level is MaturityLevel.WEAK:
        recs.append(
            "Strengthen the Protect function (NIST CSF) through system hardening, access control "
            "and data protection improvements."
        )

    return recs
