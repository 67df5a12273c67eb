"""
Result normalization for Kaggle listings.

Upstream output is heterogeneous: the CLI prints CSV, the REST API answers
JSON, and field spellings differ between versions. Everything here reshapes
that into small, stable records. Missing fields become "N/A" (text), 0
(counts) or False (flags), never None.
"""

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from kaggle_mcp.config import KAGGLE_WEB_URL, logger

NOT_AVAILABLE = "N/A"
DESCRIPTION_LIMIT = 200
ELLIPSIS = "..."

DOWNLOAD_EXTENSIONS = {
    ".csv", ".tsv", ".json", ".txt", ".parquet", ".zip", ".xlsx", ".sqlite", ".npz",
}


# -------------------------------------------------------------------
# Parsing
# -------------------------------------------------------------------

def parse_listing(output: str) -> list[dict]:
    """
    Parse a Kaggle listing into a list of raw records.

    Accepts a JSON array, a JSON object wrapping an array, or the CSV printed
    by `kaggle ... list --csv`. Blank output is an empty listing.

    Raises:
        ValueError: if JSON output cannot be decoded
    """
    text = (output or "").strip()
    if not text:
        return []

    if text[0] in "[{":
        data = json.loads(text)
        if isinstance(data, dict):
            for key in ("datasets", "competitions", "results", "items"):
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
            else:
                data = [data]
        return [item for item in data if isinstance(item, dict)]

    # The CLI may print warnings ahead of the CSV header
    lines = text.splitlines()
    start = next((i for i, line in enumerate(lines) if line.startswith("ref,")), None)
    if start is None:
        # e.g. "No datasets found"
        return []
    reader = csv.DictReader(io.StringIO("\n".join(lines[start:])))
    return [dict(row) for row in reader]


# -------------------------------------------------------------------
# Field coercion
# -------------------------------------------------------------------

def _field(raw: dict, *names: str) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def _as_text(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def _as_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        count = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _as_rating(value: Any) -> float | str:
    if value is None or isinstance(value, bool):
        return NOT_AVAILABLE
    try:
        return float(value)
    except (TypeError, ValueError):
        return NOT_AVAILABLE


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _as_tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    tags = []
    for tag in value:
        if isinstance(tag, dict):
            tag = tag.get("name") or tag.get("ref")
        if tag:
            tags.append(str(tag))
    return tags


def truncate_description(text: Any) -> str:
    # The ellipsis is appended even when nothing was cut.
    return _as_text(text)[:DESCRIPTION_LIMIT] + ELLIPSIS


def competition_slug(ref: Any) -> str:
    """Newer CLI versions report the full competition URL as ref."""
    if not ref:
        return ""
    return str(ref).rstrip("/").rsplit("/", 1)[-1]


def competition_url(ref: Any) -> str:
    return f"{KAGGLE_WEB_URL}/competitions/{competition_slug(ref)}"


# -------------------------------------------------------------------
# Records
# -------------------------------------------------------------------

def normalize_dataset(raw: dict) -> dict:
    return {
        "ref": _as_text(_field(raw, "ref")),
        "title": _as_text(_field(raw, "title")),
        "subtitle": _as_text(_field(raw, "subtitle")),
        "downloadCount": _as_count(_field(raw, "downloadCount", "download_count")),
        "lastUpdated": _as_text(_field(raw, "lastUpdated", "last_updated")),
        "usabilityRating": _as_rating(_field(raw, "usabilityRating", "usability_rating")),
    }


def normalize_competition(raw: dict) -> dict:
    ref = _field(raw, "ref")
    return {
        "ref": _as_text(ref),
        "title": _as_text(_field(raw, "title")),
        "description": truncate_description(_field(raw, "description")),
        "url": competition_url(ref),
        "deadline": _as_text(_field(raw, "deadline")),
        "category": _as_text(_field(raw, "category")),
        "reward": _as_text(_field(raw, "reward")),
        "teamCount": _as_count(_field(raw, "teamCount", "team_count")),
        "userHasEntered": _as_flag(_field(raw, "userHasEntered", "user_has_entered")),
    }


def normalize_competition_details(raw: dict) -> dict:
    """Flattened detail view: full description plus scoring and timing fields."""
    ref = _field(raw, "ref")
    return {
        "ref": _as_text(ref),
        "id": _as_text(_field(raw, "id")),
        "title": _as_text(_field(raw, "title")),
        "description": _as_text(_field(raw, "description")),
        "url": competition_url(ref),
        "organization": _as_text(_field(raw, "organizationName", "organization_name")),
        "category": _as_text(_field(raw, "category")),
        "reward": _as_text(_field(raw, "reward")),
        "enabledDate": _as_text(_field(raw, "enabledDate", "enabled_date")),
        "deadline": _as_text(_field(raw, "deadline")),
        "evaluationMetric": _as_text(_field(raw, "evaluationMetric", "evaluation_metric")),
        "maxDailySubmissions": _as_count(_field(raw, "maxDailySubmissions", "max_daily_submissions")),
        "maxTeamSize": _as_count(_field(raw, "maxTeamSize", "max_team_size")),
        "teamCount": _as_count(_field(raw, "teamCount", "team_count")),
        "userHasEntered": _as_flag(_field(raw, "userHasEntered", "user_has_entered")),
        "isKernelsSubmissionsOnly": _as_flag(
            _field(raw, "isKernelsSubmissionsOnly", "is_kernels_submissions_only")
        ),
        "tags": _as_tags(_field(raw, "tags")),
    }


def normalize_submission(output: str) -> dict:
    """
    Summarize a submit call.

    The REST API answers JSON; the CLI prints a line such as
    "Successfully submitted to Titanic".
    """
    text = (output or "").strip()
    data = None
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except ValueError:
            data = None

    if isinstance(data, dict):
        return {
            "success": True,
            "submission_id": _as_text(_field(data, "ref", "id", "submissionId", "submission_id")),
            "status": _as_text(_field(data, "status")) if _field(data, "status") else "pending",
            "message": _as_text(_field(data, "message")),
        }

    lines = [line for line in text.splitlines() if line.strip()]
    return {
        "success": True,
        "submission_id": NOT_AVAILABLE,
        "status": "pending",
        "message": lines[-1] if lines else NOT_AVAILABLE,
    }


# -------------------------------------------------------------------
# Filters and listings
# -------------------------------------------------------------------

def parse_deadline(value: Any) -> datetime | None:
    if not value or value == NOT_AVAILABLE:
        return None
    text = str(value).strip().replace("Z", "+00:00")
    try:
        deadline = datetime.fromisoformat(text)
    except ValueError:
        return None
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return deadline


def filter_by_status(records: Iterable[dict], status: str, now: datetime | None = None) -> list[dict]:
    """
    Keep competitions matching status.

    active keeps future or unknown deadlines, completed keeps past ones.
    """
    records = list(records)
    if status == "all":
        return records

    now = now or datetime.now(timezone.utc)
    kept = []
    for record in records:
        deadline = parse_deadline(record.get("deadline"))
        is_active = deadline is None or deadline > now
        if (status == "active") == is_active:
            kept.append(record)
    return kept


def list_downloaded_files(path: str | Path) -> list[str]:
    """Best-effort listing of downloaded data files, relative to path."""
    try:
        root = Path(path)
        files = sorted(
            str(p.relative_to(root))
            for p in root.rglob("*")
            if p.is_file() and p.suffix.lower() in DOWNLOAD_EXTENSIONS
        )
    except OSError as e:
        logger.debug(f"Could not enumerate downloaded files in {path}: {e}")
        return []
    return files
