"""
Export Reports module for the privacy risk analyzer.

Generates scenario analysis reports in PDF and Excel formats so that a
risk assessment can be filed with DPIA documentation or shared with
auditors.
"""
from __future__ import annotations
import io
import pandas as pd
from datetime import datetime
from typing import Dict, List, Optional
from xml.sax.saxutils import escape

# PDF generation
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY

# Excel generation
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils.dataframe import dataframe_to_rows

from risk_modules.scenario import AnalysisResult, ScenarioInput

SEVERITY_FILLS = {
    "good": "E6FFE6",
    "ok": "FFF2E6",
    "bad": "FFE6E6",
}
RISK_FILLS = {
    "Low": SEVERITY_FILLS["good"],
    "Medium": SEVERITY_FILLS["ok"],
    "High": SEVERITY_FILLS["bad"],
}


def result_to_dataframes(result: AnalysisResult) -> Dict[str, pd.DataFrame]:
    """Tabular views of an analysis, keyed by section name."""
    compliance = pd.DataFrame(
        [
            {
                "Aspect": f.aspect.value,
                "Status": f.status.value,
                "Legal Reference": f.legal_reference or "",
                "Note": f.note,
            }
            for f in result.compliance
        ],
        columns=["Aspect", "Status", "Legal Reference", "Note"],
    )
    framework = pd.DataFrame(
        [
            {"Function": m.function.display_name, "Level": m.level.value, "Note": m.note}
            for m in result.framework
        ],
        columns=["Function", "Level", "Note"],
    )
    recommendations = pd.DataFrame(
        {"#": range(1, len(result.recommendations) + 1), "Recommendation": result.recommendations}
    )
    return {
        "Compliance": compliance,
        "Framework": framework,
        "Recommendations": recommendations,
    }


def _summary_rows(result: AnalysisResult, scenario: ScenarioInput) -> List[List[str]]:
    rows = [
        ["Scenario", scenario.display_name],
        ["Generated", datetime.now().strftime("%Y-%m-%d %H:%M:%S")],
        ["Platform", scenario.platform_type.value],
        ["Service", scenario.service_name or "-"],
        ["Likelihood", str(result.likelihood)],
        ["Impact", str(result.impact)],
        ["Risk Score", str(result.risk_score)],
        ["Risk Level", f"{result.risk_level.value} ({result.risk_level.label_id})"],
        ["Matrix Risk Level", result.base_risk_level.value],
    ]
    if result.legal_context is not None:
        status = result.legal_context.legal_status
        rows.append(["Legal Status", "Registered" if status.is_legal else "Not registered"])
        if status.registry is not None:
            rows.append(["Registry", status.registry.label])
    if result.legal_override_reason:
        rows.append(["Override Reason", result.legal_override_reason])
    return rows


class AnalysisReportGenerator:
    """Generates scenario analysis reports in multiple formats."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Set up custom styles for PDF generation."""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            spaceAfter=20,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#2c3e50')
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceBefore=12,
            spaceAfter=6,
            textColor=colors.HexColor('#34495e')
        ))

        self.styles.add(ParagraphStyle(
            name='CustomBody',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=6,
            alignment=TA_JUSTIFY
        ))

        self.styles.add(ParagraphStyle(
            name='CellText',
            parent=self.styles['Normal'],
            fontSize=8,
            leading=10,
        ))

    def _table(self, rows: List[List[str]], col_widths: List[float], header_color: str) -> Table:
        # Wrap long cells so notes do not overflow the page
        data = [rows[0]] + [
            [Paragraph(escape(str(value)), self.styles['CellText']) for value in row] for row in rows[1:]
        ]
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(header_color)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f8f9fa')]),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('VALIGN', (0, 0), (-1, -1), 'TOP')
        ]))
        return table

    def generate_analysis_report_pdf(self, result: AnalysisResult, scenario: ScenarioInput) -> bytes:
        """Generate a scenario risk analysis report in PDF format."""

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=72, leftMargin=72,
            topMargin=72, bottomMargin=18
        )

        story = []

        story.append(Paragraph("Privacy Risk Analysis Report", self.styles['CustomTitle']))
        story.append(Spacer(1, 12))

        summary_table = Table(_summary_rows(result, scenario), colWidths=[1.8*inch, 4.2*inch])
        summary_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#f8f9fa')),
            ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('GRID', (0, 0), (-1, -1), 1, colors.black)
        ]))
        story.append(summary_table)
        story.append(Spacer(1, 20))

        story.append(Paragraph("Likelihood &amp; Impact", self.styles['CustomHeading']))
        if result.auto_inference is not None:
            for reason in result.auto_inference.reasons:
                story.append(Paragraph(f"• {escape(reason)}", self.styles['CustomBody']))
        else:
            story.append(Paragraph("Likelihood and Impact were entered manually.", self.styles['CustomBody']))
        if result.residual_risk_floor_applied:
            story.append(Paragraph(
                "The service is verified in a government registry; the score is set to the residual 1 x 1 cell.",
                self.styles['CustomBody'],
            ))

        frames = result_to_dataframes(result)

        story.append(Paragraph("UU PDP Compliance", self.styles['CustomHeading']))
        compliance = frames["Compliance"]
        story.append(self._table(
            [list(compliance.columns)] + compliance.values.tolist(),
            [1.3*inch, 1.1*inch, 1.3*inch, 2.5*inch],
            '#27ae60',
        ))

        story.append(Paragraph("NIST CSF 2.0 Mapping", self.styles['CustomHeading']))
        framework = frames["Framework"]
        story.append(self._table(
            [list(framework.columns)] + framework.values.tolist(),
            [1.3*inch, 1.1*inch, 3.8*inch],
            '#2c3e50',
        ))

        story.append(Paragraph("Recommendations", self.styles['CustomHeading']))
        for i, rec in enumerate(result.recommendations, 1):
            story.append(Paragraph(f"{i}. {escape(rec)}", self.styles['CustomBody']))

        doc.build(story)
        buffer.seek(0)
        return buffer.getvalue()

    def generate_excel_report(self, result: AnalysisResult, scenario: ScenarioInput) -> bytes:
        """Generate an Excel report with one worksheet per analysis section."""

        buffer = io.BytesIO()
        wb = Workbook()

        # Remove default sheet
        wb.remove(wb.active)

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="2C3E50", end_color="2C3E50", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")
        data_alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)
        border = Border(left=Side(style='thin'), right=Side(style='thin'),
                        top=Side(style='thin'), bottom=Side(style='thin'))

        ws_summary = wb.create_sheet("Summary")
        ws_summary.cell(row=1, column=1, value="Privacy Risk Analysis").font = Font(bold=True, size=14)
        for row, (label, value) in enumerate(_summary_rows(result, scenario), 3):
            ws_summary.cell(row=row, column=1, value=label).font = Font(bold=True)
            cell = ws_summary.cell(row=row, column=2, value=value)
            cell.border = border
            if label == "Risk Level":
                fill = RISK_FILLS[result.risk_level.value]
                cell.fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")

        for sheet_name, df in result_to_dataframes(result).items():
            ws = wb.create_sheet(sheet_name)
            for r_idx, row in enumerate(dataframe_to_rows(df, index=False, header=True), 1):
                for c_idx, value in enumerate(row, 1):
                    cell = ws.cell(row=r_idx, column=c_idx, value=value)
                    cell.border = border
                    if r_idx == 1:
                        cell.font = header_font
                        cell.fill = header_fill
                        cell.alignment = header_alignment
                    else:
                        cell.alignment = data_alignment

            # Color code status/level columns by severity
            severities = self._severity_column(result, sheet_name)
            if severities is not None:
                for r_idx, code in enumerate(severities, 2):
                    fill = SEVERITY_FILLS[code]
                    ws.cell(row=r_idx, column=2).fill = PatternFill(
                        start_color=fill, end_color=fill, fill_type="solid"
                    )

        for ws in wb.worksheets:
            self._autosize(ws)

        wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()

    @staticmethod
    def _severity_column(result: AnalysisResult, sheet_name: str) -> Optional[List[str]]:
        if sheet_name == "Compliance":
            return [f.severity_code for f in result.compliance]
        if sheet_name == "Framework":
            return [m.severity_code for m in result.framework]
        return None

    @staticmethod
    def _autosize(ws) -> None:
        for column in ws.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 60)


# Convenience functions for easy integration
def export_analysis_pdf(result: AnalysisResult, scenario: ScenarioInput) -> bytes:
    """Export a scenario analysis as PDF."""
    return AnalysisReportGenerator().generate_analysis_report_pdf(result, scenario)


def export_analysis_excel(result: AnalysisResult, scenario: ScenarioInput) -> bytes:
    """Export a scenario analysis as Excel."""
    return AnalysisReportGenerator().generate_excel_report(result, scenario)
