"""
Runtime settings read from environment variables.

All values have development defaults so the dashboard runs without any
configuration.  The legal registry is wired once at startup and reused
read-only for every analysis.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from risk_modules.legal_context import (
    LegalContextEvaluator,
    NullLegalContextEvaluator,
    RegistryLegalContextEvaluator,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_REGISTRY_PATH = PROJECT_ROOT / "assets" / "legal_registry.csv"

REGISTRY_PATH = Path(os.environ.get("PRA_REGISTRY_PATH", str(DEFAULT_REGISTRY_PATH)))
LOG_LEVEL = os.environ.get("PRA_LOG_LEVEL", "INFO").upper()
SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-key-change-in-production")
HOST = os.environ.get("PRA_HOST", "0.0.0.0")
PORT = int(os.environ.get("PRA_PORT", "8000"))
DEBUG = os.environ.get("PRA_DEBUG", "").lower() in {"1", "true", "yes", "on"}


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_legal_evaluator(path: Path = REGISTRY_PATH) -> LegalContextEvaluator:
    """Build the legal context evaluator for the configured registry file.

    A missing file is not fatal: the analysis then runs without legal
    context.  A file that exists but cannot be used raises
    ``RegistryLoadError`` so misconfiguration surfaces at startup.
    """
    if not Path(path).exists():
        logger.warning("Legal registry %s not found; legal context disabled", path)
        return NullLegalContextEvaluator()
    return RegistryLegalContextEvaluator.from_csv(path)
