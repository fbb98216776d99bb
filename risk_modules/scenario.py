"""
Scenario and Result Types
=========================

Shared data structures for the privacy risk analyzer.  A ``ScenarioInput``
describes one personal-data processing activity (what data is handled,
how it is protected, who receives it and under which legal context).  The
remaining dataclasses carry the output of a single analysis: the inferred
Likelihood/Impact, the UU PDP compliance findings, the NIST CSF 2.0
maturity mapping, the legal-registry verdict and the final
``AnalysisResult``.

Form values arrive as loose strings.  Each field is parsed into a closed
enumeration that has an explicit fallback member, so an unrecognised value
never raises and instead follows the most conservative rule branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union


class _FallbackEnum(str, Enum):
    """String enum that maps unknown values onto a designated fallback member."""

    @classmethod
    def _fallback(cls) -> "_FallbackEnum":
        raise NotImplementedError

    @classmethod
    def _missing_(cls, value: object) -> "_FallbackEnum":
        if isinstance(value, str):
            normalised = value.strip().lower()
            for member in cls:
                if member.value == normalised:
                    return member
        return cls._fallback()

    @classmethod
    def parse(cls, value: Any):
        """Parse ``value`` into a member, using the fallback for blanks and unknowns."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls._fallback()
        return cls(str(value))


class PlatformType(_FallbackEnum):
    BANK = "bank"
    ECOMMERCE = "ecommerce"
    FINTECH = "fintech"
    BIOMETRIC = "biometric"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "PlatformType":
        return cls.OTHER


class DataType(_FallbackEnum):
    IDENTITAS = "identitas"
    BIOMETRIK = "biometrik"
    KEUANGAN = "keuangan"
    LOKASI = "lokasi"
    PERILAKU = "perilaku"
    UMUM = "umum"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "DataType":
        return cls.OTHER

    @property
    def is_sensitive(self) -> bool:
        return self in (DataType.BIOMETRIK, DataType.KEUANGAN)


class ProcessingActivity(_FallbackEnum):
    COLLECTION = "collection"
    STORAGE = "storage"
    SHARING = "sharing"
    TRANSMISSION = "transmission"
    DELETION = "deletion"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "ProcessingActivity":
        return cls.OTHER


class ConsentType(_FallbackEnum):
    EXPLICIT = "explicit"
    IMPLICIT = "implicit"
    NONE = "none"

    @classmethod
    def _fallback(cls) -> "ConsentType":
        return cls.NONE


class Encryption(_FallbackEnum):
    NONE = "none"
    AT_REST = "at_rest"
    IN_TRANSIT = "in_transit"
    BOTH = "both"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "Encryption":
        return cls.OTHER


class AccessControl(_FallbackEnum):
    NONE = "none"
    BASIC = "basic"
    ROLE_BASED = "role_based"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "AccessControl":
        return cls.OTHER


class IncidentResponsePlan(_FallbackEnum):
    NONE = "none"
    DOCUMENTED = "documented"
    TESTED_REGULARLY = "tested_regularly"

    @classmethod
    def _fallback(cls) -> "IncidentResponsePlan":
        return cls.NONE


class LIMode(_FallbackEnum):
    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def _fallback(cls) -> "LIMode":
        return cls.AUTO


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def label_id(self) -> str:
        """Indonesian label shown on the dashboard badge."""
        return _RISK_LABELS_ID[self]

    @property
    def badge(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, value: Any) -> Optional["RiskLevel"]:
        """Translate an English or Indonesian risk label; ``None`` if unrecognised."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.label_id.lower()):
                return member
        return None


_RISK_LABELS_ID = {
    RiskLevel.LOW: "Rendah",
    RiskLevel.MEDIUM: "Sedang",
    RiskLevel.HIGH: "Tinggi",
}


class ComplianceStatus(str, Enum):
    COMPLIANT = "Compliant"
    PARTIALLY_COMPLIANT = "Partially-Compliant"
    NON_COMPLIANT = "Non-Compliant"

    @property
    def severity_code(self) -> str:
        return {
            ComplianceStatus.COMPLIANT: "good",
            ComplianceStatus.PARTIALLY_COMPLIANT: "ok",
            ComplianceStatus.NON_COMPLIANT: "bad",
        }[self]


class MaturityLevel(str, Enum):
    WEAK = "Weak"
    MEDIUM = "Medium"
    MEDIUM_STRONG = "Medium-Strong"
    STRONG = "Strong"

    @property
    def severity_code(self) -> str:
        if self in (MaturityLevel.STRONG, MaturityLevel.MEDIUM_STRONG):
            return "good"
        if self is MaturityLevel.MEDIUM:
            return "ok"
        return "bad"


class ComplianceAspect(str, Enum):
    PURPOSE_LIMITATION = "Purpose Limitation"
    CONSENT = "Consent"
    SECURITY_MEASURES = "Security Measures"
    THIRD_PARTY_PROCESSING = "Third-Party Processing"
    INCIDENT_RESPONSE = "Incident Response"


class FrameworkFunction(str, Enum):
    GOVERN = "Govern"
    IDENTIFY = "Identify"
    PROTECT = "Protect"
    DETECT = "Detect"
    RESPOND = "Respond"
    RECOVER = "Recover"

    @property
    def code(self) -> str:
        """NIST CSF 2.0 function identifier, e.g. ``PR`` for Protect."""
        return {
            FrameworkFunction.GOVERN: "GV",
            FrameworkFunction.IDENTIFY: "ID",
            FrameworkFunction.PROTECT: "PR",
            FrameworkFunction.DETECT: "DE",
            FrameworkFunction.RESPOND: "RS",
            FrameworkFunction.RECOVER: "RC",
        }[self]

    @property
    def display_name(self) -> str:
        return f"{self.code} ({self.value})"


_TRUE_VALUES = {"yes", "y", "true", "1", "on", "ya"}


def parse_flag(value: Any) -> bool:
    """Interpret a yes/no style form value; anything unrecognised is ``False``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def parse_categories(value: Union[None, str, Iterable[str]]) -> FrozenSet[str]:
    """Normalise a comma-separated string or iterable of tags into a set."""
    if value is None:
        return frozenset()
    items = [value] if isinstance(value, str) else value
    tags = set()
    for item in items:
        for tag in str(item).split(","):
            if tag.strip():
                tags.add(tag.strip().lower())
    return frozenset(tags)


def _optional(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


@dataclass(frozen=True)
class ScenarioInput:
    """One described processing scenario, as supplied by the presentation layer."""
    scenario_name: str = ""
    platform_type: PlatformType = PlatformType.OTHER
    service_name: str = ""
    data_type: DataType = DataType.OTHER
    processing_activity: ProcessingActivity = ProcessingActivity.OTHER
    third_party: bool = False
    purpose_specified: bool = False
    consent_type: ConsentType = ConsentType.NONE
    encryption: Encryption = Encryption.OTHER
    access_control: AccessControl = AccessControl.OTHER
    incident_response_plan: IncidentResponsePlan = IncidentResponsePlan.NONE
    likelihood: Optional[Any] = None  # manual mode only; clamped, never rejected
    impact: Optional[Any] = None
    mode_li: LIMode = LIMode.AUTO
    data_categories: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def display_name(self) -> str:
        return self.scenario_name.strip() or "Untitled scenario"

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "ScenarioInput":
        """Build a scenario from form-style field names.

        Field names follow the dashboard form (``dataType``,
        ``processingActivity``, ``modeLI`` ...).  Unchecked radio buttons and
        empty selects fall back to the defaults documented on each field.
        """
        if hasattr(form, "getlist"):
            categories = form.getlist("dataCategories")
        else:
            categories = form.get("dataCategories")
        return cls(
            scenario_name=str(form.get("scenarioName") or "").strip(),
            platform_type=PlatformType.parse(form.get("platformType")),
            service_name=str(form.get("serviceName") or "").strip(),
            data_type=DataType.parse(form.get("dataType")),
            processing_activity=ProcessingActivity.parse(form.get("processingActivity")),
            third_party=parse_flag(form.get("thirdParty", "no")),
            purpose_specified=parse_flag(form.get("purposeSpecified", "no")),
            consent_type=ConsentType.parse(form.get("consentType")),
            encryption=Encryption.parse(form.get("encryption")),
            access_control=AccessControl.parse(form.get("accessControl")),
            incident_response_plan=IncidentResponsePlan.parse(form.get("incidentResponsePlan")),
            likelihood=_optional(form.get("likelihood")),
            impact=_optional(form.get("impact")),
            mode_li=LIMode.parse(form.get("modeLI")),
            data_categories=parse_categories(categories),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenarioName": self.scenario_name,
            "platformType": self.platform_type.value,
            "serviceName": self.service_name,
            "dataType": self.data_type.value,
            "processingActivity": self.processing_activity.value,
            "thirdParty": "yes" if self.third_party else "no",
            "purposeSpecified": "yes" if self.purpose_specified else "no",
            "consentType": self.consent_type.value,
            "encryption": self.encryption.value,
            "accessControl": self.access_control.value,
            "incidentResponsePlan": self.incident_response_plan.value,
            "likelihood": self.likelihood,
            "impact": self.impact,
            "modeLI": self.mode_li.value,
            "dataCategories": sorted(self.data_categories),
        }


@dataclass
class AutoInferenceResult:
    """Likelihood/Impact derived by the rule engine, with the rules that fired."""
    likelihood: int
    impact: int
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"likelihood": self.likelihood, "impact": self.impact, "reasons": list(self.reasons)}


@dataclass
class ComplianceFinding:
    aspect: ComplianceAspect
    status: ComplianceStatus
    note: str
    legal_reference: Optional[str] = None

    @property
    def severity_code(self) -> str:
        return self.status.severity_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspect": self.aspect.value,
            "status": self.status.value,
            "severityCode": self.severity_code,
            "legalReference": self.legal_reference,
            "note": self.note,
        }


@dataclass
class FrameworkMapping:
    function: FrameworkFunction
    level: MaturityLevel
    note: str

    @property
    def severity_code(self) -> str:
        return self.level.severity_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "function": self.function.value,
            "code": self.function.code,
            "level": self.level.value,
            "severityCode": self.severity_code,
            "note": self.note,
        }


@dataclass
class RegistryEntry:
    label: str


@dataclass
class LegalStatus:
    is_legal: bool
    reason: str
    registry: Optional[RegistryEntry] = None


@dataclass
class FinalRisk:
    final_risk_level: Optional[RiskLevel]
    override_reason: Optional[str] = None
    from_government_registry: bool = False


@dataclass
class LegalContext:
    """Verdict returned by a legal context evaluator."""
    legal_status: LegalStatus
    final_risk: FinalRisk

    def to_dict(self) -> Dict[str, Any]:
        registry = self.legal_status.registry
        level = self.final_risk.final_risk_level
        return {
            "legalStatus": {
                "isLegal": self.legal_status.is_legal,
                "registry": {"label": registry.label} if registry else None,
                "reason": self.legal_status.reason,
            },
            "finalRisk": {
                "finalRiskLevel": level.value if level else None,
                "overrideReason": self.final_risk.override_reason,
                "fromGovernmentRegistry": self.final_risk.from_government_registry,
            },
        }


@dataclass
class AnalysisResult:
    """Everything the dashboard renders for one analysed scenario."""
    likelihood: int
    impact: int
    risk_score: int
    risk_level: RiskLevel
    base_risk_level: RiskLevel
    auto_inference: Optional[AutoInferenceResult]
    compliance: List[ComplianceFinding]
    framework: List[FrameworkMapping]
    recommendations: List[str]
    legal_context: Optional[LegalContext] = None
    legal_override_reason: Optional[str] = None

    @property
    def residual_risk_floor_applied(self) -> bool:
        return bool(self.legal_context and self.legal_context.final_risk.from_government_registry)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "likelihood": self.likelihood,
            "impact": self.impact,
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level.value,
            "riskLevelLabel": self.risk_level.label_id,
            "baseRiskLevel": self.base_risk_level.value,
            "autoInference": self.auto_inference.to_dict() if self.auto_inference else None,
            "compliance": [f.to_dict() for f in self.compliance],
            "framework": [m.to_dict() for m in self.framework],
            "recommendations": list(self.recommendations),
            "legalContext": self.legal_context.to_dict() if self.legal_context else None,
            "legalOverrideReason": self.legal_override_reason,
        }
