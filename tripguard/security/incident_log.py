"""Append-only incident log for rejected and suspicious requests.

Provides file-based JSONL storage with filtering and export for offline
review.  Records are stored in ``~/.tripguard/incidents/`` by default, one
file per UTC day.  Raw text is never stored for sexual-content or
hate-speech incidents; only a SHA-256 digest is kept.
"""

from __future__ import annotations

import csv
import hashlib
import io
import json
import logging
import unicodedata
from dataclasses import asdict, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from tripguard.moderation.models import (
    REDACTED_CATEGORIES,
    IncidentRecord,
    SecurityCategory,
    Severity,
    ValidationRequest,
    ValidationVerdict,
)

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 100
SERVICE_UNAVAILABLE_CATEGORY = "service_unavailable"

_SCRIPT_PREFIXES = (
    ("LATIN", "latin"),
    ("CYRILLIC", "cyrillic"),
    ("CJK", "cjk"),
    ("HIRAGANA", "cjk"),
    ("KATAKANA", "cjk"),
    ("HANGUL", "cjk"),
    ("ARABIC", "arabic"),
    ("GREEK", "greek"),
)


@runtime_checkable
class IncidentSink(Protocol):
    """Anything that accepts append-only incident writes."""

    def log_incident(self, record: IncidentRecord) -> None:
        ...


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------


def input_digest(text: str, category: Optional[SecurityCategory]) -> str:
    """Return a loggable stand-in for *text*.

    Sensitive categories get a hash; everything else a short excerpt.
    """
    if category in REDACTED_CATEGORIES:
        return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()
    excerpt = " ".join(text.split())
    if len(excerpt) > EXCERPT_LENGTH:
        excerpt = excerpt[:EXCERPT_LENGTH] + "..."
    return excerpt


def locale_hint(text: str) -> str:
    """Classify the dominant writing system of *text*."""
    scripts: set[str] = set()
    for ch in text:
        if not ch.isalpha():
            continue
        name = unicodedata.name(ch, "")
        for prefix, script in _SCRIPT_PREFIXES:
            if name.startswith(prefix):
                scripts.add(script)
                break
        else:
            scripts.add("other")
    if not scripts:
        return ""
    if len(scripts) > 1:
        return "mixed"
    return scripts.pop()


def build_incident(
    request: ValidationRequest,
    verdict: ValidationVerdict,
    severity: Severity,
) -> IncidentRecord:
    """Build the record for *verdict*, redacting according to its category."""
    text = request.combined_text()
    if verdict.service_unavailable:
        category_name = SERVICE_UNAVAILABLE_CATEGORY
    elif verdict.category is not None:
        category_name = verdict.category.value
    else:
        category_name = ""
    return IncidentRecord(
        category=category_name,
        severity=severity.value,
        input_digest=input_digest(text, verdict.category),
        user_id=request.user_id or "anonymous",
        layer=verdict.layer,
        confidence=verdict.confidence,
        locale_hint=locale_hint(text),
        service_unavailable=verdict.service_unavailable,
        details={"accepted": verdict.is_valid},
    )


# ---------------------------------------------------------------------------
# File-backed sink
# ---------------------------------------------------------------------------


class IncidentLogger:
    """File-based JSONL incident log.

    Records are appended to daily files under *base_dir* and never rewritten.
    """

    def __init__(self, base_dir: Optional[Path | str] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".tripguard" / "incidents"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _current_log_file(self) -> Path:
        return self._log_file_for_date(datetime.now(timezone.utc))

    def _read_all(self) -> list[IncidentRecord]:
        known = {f.name for f in fields(IncidentRecord)}
        records: list[IncidentRecord] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    records.append(IncidentRecord(**{k: v for k, v in data.items() if k in known}))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("skipping unreadable incident line in %s", path.name)
        return records

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_incident(self, record: IncidentRecord) -> None:
        """Append *record* to today's log file."""
        with self._current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(record), ensure_ascii=False) + "\n")

    def get_incidents(
        self,
        *,
        category: Optional[str] = None,
        severity: Optional[str] = None,
        user_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 200,
    ) -> list[IncidentRecord]:
        """Return filtered incidents, newest first."""
        records = self._read_all()

        if category:
            records = [r for r in records if r.category == category]
        if severity:
            records = [r for r in records if r.severity == severity]
        if user_id:
            records = [r for r in records if r.user_id == user_id]
        if start_date:
            records = [r for r in records if r.timestamp >= start_date]
        if end_date:
            # A bare date includes the whole day.
            records = [r for r in records if r.timestamp[: len(end_date)] <= end_date]

        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    def export_incidents(self, fmt: str = "json", **filters) -> str:
        """Export incidents as ``json`` or ``csv``."""
        records = self.get_incidents(**filters)

        if fmt == "csv":
            columns = [
                "id", "timestamp", "category", "severity", "user_id", "layer",
                "confidence", "locale_hint", "service_unavailable", "input_digest",
            ]
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(columns)
            for r in records:
                writer.writerow([getattr(r, c) for c in columns])
            return buf.getvalue()

        if fmt != "json":
            raise ValueError(f"Unsupported export format: {fmt}")
        return json.dumps([asdict(r) for r in records], indent=2, ensure_ascii=False)
