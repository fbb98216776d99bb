"""
Privacy Risk Analyzer modules package.

This package contains the core functionality for the privacy risk dashboard:
- scenario: Scenario input, enumerations and analysis result types
- rules: Likelihood/Impact inference, risk scoring, UU PDP compliance checks,
  NIST CSF 2.0 mapping and recommendations
- legal_context: Legal context evaluators (government registry lookup)
- risk_engine: Orchestrates one full scenario analysis
- export_reports: PDF and Excel reports of an analysis
- config: Environment-driven settings and startup wiring
"""
