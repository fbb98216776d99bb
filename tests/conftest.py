"""Shared fixtures for the privacy risk analyzer tests."""

import pandas as pd
import pytest

from risk_modules.legal_context import RegistryLegalContextEvaluator
from risk_modules.scenario import (
    AccessControl,
    ConsentType,
    DataType,
    Encryption,
    FinalRisk,
    IncidentResponsePlan,
    LegalContext,
    LegalStatus,
    LIMode,
    PlatformType,
    ProcessingActivity,
    RegistryEntry,
    RiskLevel,
    ScenarioInput,
)


@pytest.fixture
def high_risk_scenario() -> ScenarioInput:
    """Sensitive data shared with a third party and no controls at all."""
    return ScenarioInput(
        scenario_name="Face data sharing",
        platform_type=PlatformType.OTHER,
        data_type=DataType.BIOMETRIK,
        processing_activity=ProcessingActivity.SHARING,
        third_party=True,
        purpose_specified=False,
        consent_type=ConsentType.IMPLICIT,
        encryption=Encryption.NONE,
        access_control=AccessControl.NONE,
        incident_response_plan=IncidentResponsePlan.NONE,
        mode_li=LIMode.AUTO,
    )


@pytest.fixture
def well_controlled_scenario() -> ScenarioInput:
    """Same data type as the high-risk scenario but with every control in place."""
    return ScenarioInput(
        scenario_name="Face data collection",
        platform_type=PlatformType.OTHER,
        data_type=DataType.BIOMETRIK,
        processing_activity=ProcessingActivity.COLLECTION,
        third_party=False,
        purpose_specified=True,
        consent_type=ConsentType.EXPLICIT,
        encryption=Encryption.BOTH,
        access_control=AccessControl.ROLE_BASED,
        incident_response_plan=IncidentResponsePlan.NONE,
        mode_li=LIMode.AUTO,
    )


@pytest.fixture
def registry_frame() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"service_name": "BelanjaKita", "platform_type": "ecommerce",
             "registry": "Komdigi", "label": "PSE Lingkup Privat terdaftar"},
            {"service_name": "DanaCepat", "platform_type": "fintech",
             "registry": "OJK", "label": "Pinjaman Daring berizin"},
            {"service_name": "Identitas Digital Nasional", "platform_type": "any",
             "registry": "Dukcapil", "label": "Mitra akses data kependudukan"},
        ]
    )


@pytest.fixture
def registry_evaluator(registry_frame) -> RegistryLegalContextEvaluator:
    return RegistryLegalContextEvaluator(registry_frame)


class StubLegalEvaluator:
    """Deterministic evaluator that records its calls and returns a fixed verdict."""

    def __init__(self, context=None, error=None):
        self.context = context
        self.error = error
        self.calls = []

    def evaluate(self, platform_type, service_name, data_categories, matrix_risk_level):
        self.calls.append(
            {
                "platform_type": platform_type,
                "service_name": service_name,
                "data_categories": data_categories,
                "matrix_risk_level": matrix_risk_level,
            }
        )
        if self.error is not None:
            raise self.error
        return self.context


def make_context(level, from_registry=False, reason=None, is_legal=False) -> LegalContext:
    return LegalContext(
        legal_status=LegalStatus(
            is_legal=is_legal,
            reason="stub verdict",
            registry=RegistryEntry(label="OJK: Bank Umum") if is_legal else None,
        ),
        final_risk=FinalRisk(
            final_risk_level=level,
            override_reason=reason,
            from_government_registry=from_registry,
        ),
    )


@pytest.fixture
def registry_verified_context() -> LegalContext:
    return make_context(
        RiskLevel.LOW,
        from_registry=True,
        reason="Service verified in a government registry.",
        is_legal=True,
    )
