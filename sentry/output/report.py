"""
Sentry Report Generator
=======================

Writes a structured JSON report of one scan: the tagged networks with
vendor and security labels, per-threat counts, and the change events
computed against history.  Intended for feeding other tools or archiving
alongside the local store.

References:
    - OWASP. (2023). Testing Guide v4: Reporting.
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from shared.logger import SentryLogger

from sentry.core.models import AnalysisResult, NetworkObservation, ThreatType
from sentry.storage.codec import observation_to_dict

logger = SentryLogger("output.report")


class _SentryJSONEncoder(json.JSONEncoder):
    """JSON encoder handling model and enum values."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        if hasattr(obj, "value"):  # Enum
            return obj.value
        return super().default(obj)


class SentryReportGenerator:
    """Builds and writes JSON scan reports.

    Args:
        vendor_lookup: Optional BSSID -> manufacturer callable.
        version: Version string embedded in the report header.
    """

    def __init__(
        self,
        vendor_lookup: Optional[Callable[[str], str]] = None,
        version: str = "1.0.0",
    ) -> None:
        self._vendor_lookup = vendor_lookup
        self._version = version

    def build(
        self,
        networks: Sequence[NetworkObservation],
        analysis: Optional[AnalysisResult] = None,
    ) -> dict[str, Any]:
        """Report document as a JSON-ready dict."""
        counts = Counter(t for n in networks for t in n.threats)
        entries: list[dict[str, Any]] = []
        for net in networks:
            entry = observation_to_dict(net)
            entry["security"] = net.security_label
            entry["band"] = net.band.value
            if self._vendor_lookup is not None and net.bssid:
                entry["vendor"] = self._vendor_lookup(net.bssid)
            entries.append(entry)

        report: dict[str, Any] = {
            "tool": "wifisentry",
            "version": self._version,
            "generated_at": datetime.now(timezone.utc),
            "summary": {
                "networks": len(networks),
                "flagged": sum(1 for n in networks if n.is_flagged),
                "threats": {t.name: counts[t] for t in ThreatType if counts[t]},
            },
            "networks": entries,
        }
        if analysis is not None:
            report["summary"]["changes"] = analysis.change_count
            report["summary"]["high_severity_changes"] = analysis.high_severity_count
            report["changes"] = list(analysis.changes)
        return report

    def generate_json(
        self,
        output_path: str | Path,
        networks: Sequence[NetworkObservation],
        analysis: Optional[AnalysisResult] = None,
    ) -> str:
        """Write the report to *output_path*.

        Returns:
            Absolute path to the generated report.
        """
        report = self.build(networks, analysis)
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(report, cls=_SentryJSONEncoder, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info(f"JSON report generated: {output}")
        return str(output.resolve())
