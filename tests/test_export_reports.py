"""Tests for the PDF and Excel analysis reports."""

import io
from datetime import datetime

import pytest
from conftest import StubLegalEvaluator
from openpyxl import load_workbook

from risk_modules.export_reports import (
    SEVERITY_FILLS,
    _summary_rows,
    export_analysis_excel,
    export_analysis_pdf,
    result_to_dataframes,
)
from risk_modules.risk_engine import RiskEngine


@pytest.fixture
def high_risk_result(high_risk_scenario):
    return RiskEngine().analyze(high_risk_scenario)


class TestResultToDataframes:
    def test_sections(self, high_risk_result) -> None:
        frames = result_to_dataframes(high_risk_result)

        assert list(frames) == ["Compliance", "Framework", "Recommendations"]
        assert list(frames["Compliance"].columns) == ["Aspect", "Status", "Legal Reference", "Note"]
        assert len(frames["Compliance"]) == 5
        assert len(frames["Framework"]) == 6
        assert frames["Recommendations"]["#"].tolist() == list(range(1, 8))


class TestSummaryRows:
    def test_metadata_includes_generation_time(self, high_risk_result, high_risk_scenario) -> None:
        rows = dict(_summary_rows(high_risk_result, high_risk_scenario))

        assert rows["Scenario"] == "Face data sharing"
        assert datetime.strptime(rows["Generated"], "%Y-%m-%d %H:%M:%S")
        assert rows["Platform"] == "other"
        assert rows["Service"] == "-"


class TestPdfExport:
    def test_produces_pdf(self, high_risk_result, high_risk_scenario) -> None:
        data = export_analysis_pdf(high_risk_result, high_risk_scenario)

        assert data.startswith(b"%PDF")

    def test_markup_in_user_text_is_escaped(self, high_risk_scenario, registry_verified_context) -> None:
        result = RiskEngine(StubLegalEvaluator(registry_verified_context)).analyze(high_risk_scenario)
        result.legal_override_reason = "<b>unbalanced & odd"

        assert export_analysis_pdf(result, high_risk_scenario).startswith(b"%PDF")


class TestExcelExport:
    def test_workbook_layout(self, high_risk_result, high_risk_scenario) -> None:
        wb = load_workbook(io.BytesIO(export_analysis_excel(high_risk_result, high_risk_scenario)))

        assert wb.sheetnames == ["Summary", "Compliance", "Framework", "Recommendations"]
        summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(min_row=3, values_only=True)}
        assert summary["Scenario"] == "Face data sharing"
        assert summary["Risk Score"] == "25"
        assert summary["Risk Level"] == "High (Tinggi)"
        assert "Generated" in summary

    def test_status_cells_are_colour_coded(self, high_risk_result, high_risk_scenario) -> None:
        wb = load_workbook(io.BytesIO(export_analysis_excel(high_risk_result, high_risk_scenario)))
        ws = wb["Compliance"]

        assert ws.cell(row=3, column=2).value == "Non-Compliant"
        assert ws.cell(row=3, column=2).fill.start_color.rgb.endswith(SEVERITY_FILLS["bad"])

    def test_legal_rows_in_summary(self, high_risk_scenario, registry_verified_context) -> None:
        result = RiskEngine(StubLegalEvaluator(registry_verified_context)).analyze(high_risk_scenario)

        wb = load_workbook(io.BytesIO(export_analysis_excel(result, high_risk_scenario)))
        summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(min_row=3, values_only=True)}

        assert summary["Legal Status"] == "Registered"
        assert summary["Registry"] == "OJK: Bank Umum"
        assert summary["Override Reason"] == "Service verified in a government registry."
