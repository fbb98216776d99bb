"""
Flask-based frontend for the privacy risk analyzer.

This lightweight web application exposes the risk engine through a single
dashboard page: a form describing one personal-data processing scenario and
a results panel with the Likelihood x Impact matrix, UU PDP compliance
checklist, NIST CSF 2.0 mapping, legal registry verdict and
recommendations.  A JSON endpoint and PDF/Excel exports are also provided.

To run the app locally, install the dependencies and execute:

    python frontend/app.py

The server will start on http://0.0.0.0:8000 by default.
"""

import io
import base64
import logging
import os
import sys
from datetime import date
from flask import Flask, Response, render_template, request, jsonify
import matplotlib

matplotlib.use("Agg")  # Use non-interactive backend for server
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

# Make sure the parent directory (repository root) is in sys.path so that
# ``import risk_modules`` works even when running this script from within
# the ``frontend`` directory.
PARENT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from risk_modules import config  # type: ignore
from risk_modules.export_reports import export_analysis_pdf, export_analysis_excel  # type: ignore
from risk_modules.risk_engine import RiskEngine, build_risk_matrix  # type: ignore
from risk_modules.scenario import (  # type: ignore
    AccessControl,
    ConsentType,
    DataType,
    Encryption,
    IncidentResponsePlan,
    PlatformType,
    ProcessingActivity,
    RiskLevel,
    ScenarioInput,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY

# The legal registry is wired once at startup and shared read-only
engine = RiskEngine(config.load_legal_evaluator())

FORM_OPTIONS = {
    "platformType": [m.value for m in PlatformType],
    "dataType": [m.value for m in DataType],
    "processingActivity": [m.value for m in ProcessingActivity if m is not ProcessingActivity.OTHER],
    "consentType": [m.value for m in ConsentType],
    "encryption": [m.value for m in Encryption if m is not Encryption.OTHER],
    "accessControl": [m.value for m in AccessControl if m is not AccessControl.OTHER],
    "incidentResponsePlan": [m.value for m in IncidentResponsePlan],
}

MATRIX_COLORS = ListedColormap(["#22c55e", "#f59e0b", "#ef4444"])
MAX_EXPORT_FIELD = 10 * 1024


def render_matrix_chart(likelihood: int, impact: int) -> str:
    """Draw the 5x5 risk matrix and return it as a base64 PNG."""
    matrix = build_risk_matrix(likelihood, impact)
    level_index = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}
    grid = [[level_index[cell["level"]] for cell in row] for row in matrix]

    fig, ax = plt.subplots(figsize=(4, 4))
    ax.imshow(grid, cmap=MATRIX_COLORS, vmin=0, vmax=2)
    for r, row in enumerate(matrix):
        for c, cell in enumerate(row):
            ax.text(c, r, str(cell["score"]), ha="center", va="center", fontsize=9,
                    fontweight="bold" if cell["active"] else "normal")
            if cell["active"]:
                ax.add_patch(plt.Rectangle((c - 0.5, r - 0.5), 1, 1, fill=False, lw=3, ec="black"))
    ax.set_xticks(range(5))
    ax.set_xticklabels([str(v) for v in range(1, 6)])
    ax.set_yticks(range(5))
    ax.set_yticklabels([str(v) for v in range(5, 0, -1)])
    ax.set_xlabel("Likelihood")
    ax.set_ylabel("Impact")
    ax.set_title("Risk Matrix")
    buf = io.BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    return base64.b64encode(buf.read()).decode("utf-8")


@app.route("/", methods=["GET", "POST"])
def dashboard() -> str:
    """
    Scenario analysis page. Shows the scenario form and, after submission,
    the full analysis for the described processing activity.
    """
    if request.method == "POST":
        scenario = ScenarioInput.from_form(request.form)
        result = engine.analyze(scenario)
        return render_template(
            "dashboard.html",
            options=FORM_OPTIONS,
            form=request.form,
            scenario=scenario,
            result=result,
            matrix=build_risk_matrix(result.likelihood, result.impact),
            chart_data=render_matrix_chart(result.likelihood, result.impact),
        )
    return render_template(
        "dashboard.html",
        options=FORM_OPTIONS,
        form={},
        matrix=build_risk_matrix(),
    )


@app.route("/api/analyze", methods=["POST"])
def api_analyze():
    """Analyse a scenario posted as JSON (same field names as the form)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    scenario = ScenarioInput.from_form(payload)
    result = engine.analyze(scenario)
    return jsonify({"scenario": scenario.to_dict(), "result": result.to_dict()})


def _scenario_from_export_form():
    if any(len(v) > MAX_EXPORT_FIELD for v in request.form.values()):
        raise ValueError("Export data too large")
    return ScenarioInput.from_form(request.form)


@app.route("/export/pdf", methods=["POST"])
def export_pdf():
    """Export the analysis for the submitted scenario as PDF."""
    try:
        scenario = _scenario_from_export_form()
        pdf_data = export_analysis_pdf(engine.analyze(scenario), scenario)
    except ValueError as e:
        return f"Invalid input: {str(e)}", 400
    except Exception:
        logger.exception("PDF export failed")
        return "Error generating PDF report. Please try again or contact support.", 500

    filename = f"privacy_risk_report_{date.today().isoformat()}.pdf"
    return Response(
        pdf_data,
        mimetype='application/pdf',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@app.route("/export/excel", methods=["POST"])
def export_excel():
    """Export the analysis for the submitted scenario as Excel."""
    try:
        scenario = _scenario_from_export_form()
        excel_data = export_analysis_excel(engine.analyze(scenario), scenario)
    except ValueError as e:
        return f"Invalid input: {str(e)}", 400
    except Exception:
        logger.exception("Excel export failed")
        return "Error generating Excel report. Please try again or contact support.", 500

    filename = f"privacy_risk_report_{date.today().isoformat()}.xlsx"
    return Response(
        excel_data,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


if __name__ == "__main__":
    config.configure_logging()
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
