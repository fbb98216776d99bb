"""
Legal Context Evaluation
========================

This module decides whether the service behind a scenario operates legally
and whether that should override the risk level computed from the
Likelihood x Impact matrix.  The risk engine only depends on the
``LegalContextEvaluator`` protocol; two implementations are provided:

- ``NullLegalContextEvaluator`` never returns a verdict, so the engine keeps
  its matrix-based risk level.
- ``RegistryLegalContextEvaluator`` looks the service up in a table of
  government-recognised registrations (for example OJK licences for banks
  and fintech lenders, or Komdigi PSE registrations for electronic system
  operators) loaded from CSV with pandas.

The registry model is simple: a verified registration caps the
risk at Low, unregistered banks, fintech lenders and biometric processors
are escalated to High, and everything else keeps the matrix level.  The
bundled registry is demonstration data and does not constitute legal advice.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import FrozenSet, Optional, Protocol, Union

import pandas as pd

from risk_modules.scenario import (
    FinalRisk,
    LegalContext,
    LegalStatus,
    PlatformType,
    RegistryEntry,
    RiskLevel,
)

logger = logging.getLogger(__name__)

REGISTRY_COLUMNS = ("service_name", "platform_type", "registry", "label")
REGULATED_PLATFORMS = {PlatformType.BANK.value, PlatformType.FINTECH.value}
BIOMETRIC_CATEGORIES = {"wajah", "suara", "sidik_jari"}


class RegistryLoadError(ValueError):
    """Raised when a registry table cannot be used."""


class LegalContextEvaluator(Protocol):
    """Contract for anything that can judge the legal context of a service.

    Implementations must answer synchronously and within bounded time; a
    networked registry should time out and return ``None`` rather than
    block the analysis.
    """

    def evaluate(
        self,
        platform_type: str,
        service_name: str,
        data_categories: FrozenSet[str],
        matrix_risk_level: str,
    ) -> Optional[LegalContext]:
        ...


class NullLegalContextEvaluator:
    """Stand-in used when no registry is configured."""

    def evaluate(
        self,
        platform_type: str,
        service_name: str,
        data_categories: FrozenSet[str],
        matrix_risk_level: str,
    ) -> Optional[LegalContext]:
        return None


def _normalise_name(name: str) -> str:
    return re.sub(r"\s+", " ", str(name)).strip().lower()


class RegistryLegalContextEvaluator:
    """Legal context evaluator backed by an in-memory registry table."""

    def __init__(self, registry: pd.DataFrame) -> None:
        missing = [c for c in REGISTRY_COLUMNS if c not in registry.columns]
        if missing:
            raise RegistryLoadError(f"Registry is missing required columns: {', '.join(missing)}")
        table = registry.loc[:, list(REGISTRY_COLUMNS)].fillna("").astype(str)
        table["_key"] = table["service_name"].map(_normalise_name)
        table["platform_type"] = table["platform_type"].str.strip().str.lower()
        self.registry = table[table["_key"] != ""].reset_index(drop=True)

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> "RegistryLegalContextEvaluator":
        """Load a registry table from a CSV file."""
        try:
            df = pd.read_csv(path, dtype=str)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise RegistryLoadError(f"Could not read registry file {path}: {exc}") from exc
        evaluator = cls(df)
        logger.info("Loaded %d registry entries from %s", len(evaluator.registry), path)
        return evaluator

    def lookup(self, platform_type: str, service_name: str) -> Optional[RegistryEntry]:
        """Return the registry entry matching the service, if any."""
        key = _normalise_name(service_name)
        if not key:
            return None
        platform = str(platform_type).strip().lower()
        rows = self.registry[
            (self.registry["_key"] == key)
            & self.registry["platform_type"].isin([platform, "any"])
        ]
        if rows.empty:
            return None
        row = rows.iloc[0]
        return RegistryEntry(label=f"{row['registry']}: {row['label']}")

    def evaluate(
        self,
        platform_type: str,
        service_name: str,
        data_categories: FrozenSet[str],
        matrix_risk_level: str,
    ) -> Optional[LegalContext]:
        matrix_level = RiskLevel.from_label(matrix_risk_level)
        platform = str(platform_type).strip().lower()

        entry = self.lookup(platform, service_name)
        if entry is not None:
            return LegalContext(
                legal_status=LegalStatus(
                    is_legal=True,
                    registry=entry,
                    reason=f"'{service_name}' is registered in {entry.label}.",
                ),
                final_risk=FinalRisk(
                    final_risk_level=RiskLevel.LOW,
                    override_reason=(
                        f"Service verified in a government registry ({entry.label}); "
                        "remaining risk is accepted as residual."
                    ),
                    from_government_registry=True,
                ),
            )

        if not _normalise_name(service_name):
            return LegalContext(
                legal_status=LegalStatus(is_legal=False, reason="No service name supplied."),
                final_risk=FinalRisk(final_risk_level=matrix_level),
            )

        if platform in REGULATED_PLATFORMS:
            return LegalContext(
                legal_status=LegalStatus(
                    is_legal=False,
                    reason=f"'{service_name}' was not found among licensed {platform} providers.",
                ),
                final_risk=FinalRisk(
                    final_risk_level=RiskLevel.HIGH,
                    override_reason="Financial service operating without a recognised regulator licence.",
                ),
            )

        if platform == PlatformType.BIOMETRIC.value or BIOMETRIC_CATEGORIES & set(data_categories):
            return LegalContext(
                legal_status=LegalStatus(
                    is_legal=False,
                    reason=f"'{service_name}' processes biometric data but is not registered.",
                ),
                final_risk=FinalRisk(
                    final_risk_level=RiskLevel.HIGH,
                    override_reason="Unregistered processing of biometric data.",
                ),
            )

        return LegalContext(
            legal_status=LegalStatus(
                is_legal=False,
                reason=f"'{service_name}' was not found in the registry.",
            ),
            final_risk=FinalRisk(final_risk_level=matrix_level),
        )
