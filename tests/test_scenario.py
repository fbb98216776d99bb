"""Tests for scenario parsing and result serialisation."""

import pytest
from werkzeug.datastructures import MultiDict

from risk_modules.risk_engine import RiskEngine
from risk_modules.scenario import (
    AccessControl,
    ConsentType,
    DataType,
    Encryption,
    FrameworkFunction,
    IncidentResponsePlan,
    LIMode,
    MaturityLevel,
    PlatformType,
    ProcessingActivity,
    RiskLevel,
    ScenarioInput,
    parse_categories,
    parse_flag,
)


class TestEnumParsing:
    """Test cases for tolerant parsing of form values into enums."""

    def test_known_values_case_insensitive(self) -> None:
        assert DataType.parse(" Biometrik ") is DataType.BIOMETRIK
        assert Encryption.parse("BOTH") is Encryption.BOTH

    @pytest.mark.parametrize(
        "enum_cls,fallback",
        [
            (PlatformType, PlatformType.OTHER),
            (DataType, DataType.OTHER),
            (ProcessingActivity, ProcessingActivity.OTHER),
            (ConsentType, ConsentType.NONE),
            (Encryption, Encryption.OTHER),
            (AccessControl, AccessControl.OTHER),
            (IncidentResponsePlan, IncidentResponsePlan.NONE),
            (LIMode, LIMode.AUTO),
        ],
    )
    def test_unknown_and_missing_values_use_fallback(self, enum_cls, fallback) -> None:
        assert enum_cls.parse("something-else") is fallback
        assert enum_cls.parse(None) is fallback
        assert enum_cls.parse("") is fallback

    def test_members_pass_through(self) -> None:
        assert AccessControl.parse(AccessControl.ROLE_BASED) is AccessControl.ROLE_BASED


class TestRiskLevelLabels:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Low", RiskLevel.LOW),
            ("rendah", RiskLevel.LOW),
            ("Sedang", RiskLevel.MEDIUM),
            ("TINGGI", RiskLevel.HIGH),
            (RiskLevel.HIGH, RiskLevel.HIGH),
        ],
    )
    def test_from_label(self, label, expected) -> None:
        assert RiskLevel.from_label(label) is expected

    @pytest.mark.parametrize("label", ["Critical", "", None, 3])
    def test_from_label_unknown(self, label) -> None:
        assert RiskLevel.from_label(label) is None

    def test_labels_and_badges(self) -> None:
        assert [level.label_id for level in RiskLevel] == ["Rendah", "Sedang", "Tinggi"]
        assert [level.badge for level in RiskLevel] == ["low", "medium", "high"]


class TestParseHelpers:
    @pytest.mark.parametrize("value", ["yes", "Y", "true", "1", "on", "Ya", True])
    def test_truthy_flags(self, value) -> None:
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["no", "", None, "maybe", False, "0"])
    def test_falsy_flags(self, value) -> None:
        assert parse_flag(value) is False

    def test_categories_from_string(self) -> None:
        assert parse_categories(" KTP, wajah ,,") == frozenset({"ktp", "wajah"})

    def test_categories_from_list(self) -> None:
        assert parse_categories(["ktp,sim", "Wajah"]) == frozenset({"ktp", "sim", "wajah"})

    def test_categories_none(self) -> None:
        assert parse_categories(None) == frozenset()


class TestScenarioFromForm:
    """Test cases for building a scenario from dashboard form fields."""

    def test_full_form(self) -> None:
        scenario = ScenarioInput.from_form(
            {
                "scenarioName": "  Loan scoring ",
                "platformType": "fintech",
                "serviceName": "DanaCepat",
                "dataType": "keuangan",
                "processingActivity": "sharing",
                "thirdParty": "yes",
                "purposeSpecified": "no",
                "consentType": "implicit",
                "encryption": "in_transit",
                "accessControl": "basic",
                "incidentResponsePlan": "documented",
                "modeLI": "manual",
                "likelihood": "4",
                "impact": "5",
                "dataCategories": "npwp, rekening",
            }
        )

        assert scenario.scenario_name == "Loan scoring"
        assert scenario.platform_type is PlatformType.FINTECH
        assert scenario.data_type is DataType.KEUANGAN
        assert scenario.processing_activity is ProcessingActivity.SHARING
        assert scenario.third_party is True
        assert scenario.purpose_specified is False
        assert scenario.consent_type is ConsentType.IMPLICIT
        assert scenario.encryption is Encryption.IN_TRANSIT
        assert scenario.access_control is AccessControl.BASIC
        assert scenario.incident_response_plan is IncidentResponsePlan.DOCUMENTED
        assert scenario.mode_li is LIMode.MANUAL
        assert (scenario.likelihood, scenario.impact) == ("4", "5")
        assert scenario.data_categories == frozenset({"npwp", "rekening"})

    def test_empty_form_uses_defaults(self) -> None:
        scenario = ScenarioInput.from_form({})

        assert scenario == ScenarioInput()
        assert scenario.display_name == "Untitled scenario"

    def test_blank_manual_values_are_absent(self) -> None:
        scenario = ScenarioInput.from_form({"likelihood": " ", "impact": 0})

        assert scenario.likelihood is None
        assert scenario.impact == 0

    def test_multidict_categories(self) -> None:
        form = MultiDict([("dataCategories", "ktp"), ("dataCategories", "wajah, suara")])

        assert ScenarioInput.from_form(form).data_categories == frozenset({"ktp", "wajah", "suara"})

    def test_to_dict_round_trips_through_form(self) -> None:
        scenario = ScenarioInput(
            scenario_name="Onboarding",
            platform_type=PlatformType.BANK,
            service_name="Bank Nusantara Digital",
            data_type=DataType.IDENTITAS,
            third_party=True,
            data_categories=frozenset({"ktp"}),
        )

        assert ScenarioInput.from_form(scenario.to_dict()) == scenario


class TestAnalysisResultSerialisation:
    def test_to_dict_shape(self, high_risk_scenario) -> None:
        data = RiskEngine().analyze(high_risk_scenario).to_dict()

        assert data["riskScore"] == 25
        assert data["riskLevel"] == "High"
        assert data["riskLevelLabel"] == "Tinggi"
        assert data["baseRiskLevel"] == "High"
        assert data["legalContext"] is None
        assert len(data["autoInference"]["reasons"]) == 5
        assert data["compliance"][1] == {
            "aspect": "Consent",
            "status": "Non-Compliant",
            "severityCode": "bad",
            "legalReference": "UU PDP Pasal 20 dan Pasal 22",
            "note": "Sensitive data (biometric/financial) should rely on explicit consent.",
        }
        assert data["framework"][2]["code"] == "PR"
        assert data["framework"][2]["level"] == "Weak"

    def test_framework_display_names(self) -> None:
        assert FrameworkFunction.PROTECT.display_name == "PR (Protect)"
        assert MaturityLevel.MEDIUM_STRONG.severity_code == "good"
        assert MaturityLevel.MEDIUM.severity_code == "ok"
        assert MaturityLevel.WEAK.severity_code == "bad"
