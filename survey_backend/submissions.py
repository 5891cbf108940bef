"""
Submission ingestion and retrieval against a single row-store table.

Ingest deduplicates on the caller-supplied hash, provisions the table from
the first payload's headers and appends one row. Retrieve reads every row
back and maps the header row onto stable output keys.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from survey_backend.errors import PayloadParseError, UnknownActionError
from survey_backend.schemas import SubmissionPayload
from survey_backend.store import RowStore, Table

logger = logging.getLogger(__name__)

HASH_HEADER = "Hash"
DEFAULT_TABLE_NAME = "Submissions"
GET_ALL_ACTION = "getAll"

DEFAULT_HEADERS: tuple[str, ...] = (
    "Timestamp",
    "Role",
    "Function",
    "Company Size",
    "Industry",
    "Region",
    "Years Experience",
    "Team Size",
    "Uses AI Daily",
    "Has AI Policy",
    *(f"Q{i}" for i in range(1, 13)),
    "Strategy Score",
    "Adoption Score",
    "Culture Score",
    "Total Score",
    "Archetype",
    "Secondary Archetype",
    "Consent",
    HASH_HEADER,
)

# Header name -> key in the retrieved submission objects.
HEADER_KEYS: Dict[str, str] = {
    "Timestamp": "timestamp",
    "Role": "role",
    "Function": "func",
    "Company Size": "companySize",
    "Industry": "industry",
    "Region": "region",
    "Years Experience": "yearsExperience",
    "Team Size": "teamSize",
    "Uses AI Daily": "usesAiDaily",
    "Has AI Policy": "hasAiPolicy",
    "Strategy Score": "strategyScore",
    "Adoption Score": "adoptionScore",
    "Culture Score": "cultureScore",
    "Total Score": "totalScore",
    "Archetype": "archetype",
    "Secondary Archetype": "secondaryArchetype",
    "Consent": "consent",
    "Score": "score",
    "Answers": "answers",
    "Comment": "comment",
    "Email": "email",
    "Source": "source",
    HASH_HEADER: "hash",
}

# Positional layout of rows built from legacy payloads.
LEGACY_FIELDS: tuple[str, ...] = (
    "timestamp",
    "role",
    "func",
    "companySize",
    "archetype",
    "score",
    "answers",
    "comment",
    "hash",
)

TRUE_STRINGS = frozenset({"TRUE", "Yes"})
FALSE_STRINGS = frozenset({"FALSE", "No"})
NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")


def _header_row(candidate_headers: Optional[List[str]]) -> List[str]:
    # A caller-supplied Hash column would collide with the one appended here.
    names = [name for name in candidate_headers or [] if name != HASH_HEADER]
    if not names:
        return list(DEFAULT_HEADERS)
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise PayloadParseError(f"Duplicate header names: {', '.join(duplicates)}")
    return [*names, HASH_HEADER]


def ensure_table(
    store: RowStore,
    candidate_headers: Optional[List[str]] = None,
    *,
    table_name: str = DEFAULT_TABLE_NAME,
) -> Table:
    """
    Return the submissions table, creating it on first use.

    An existing table with a header row is returned untouched. A new table
    gets `candidate_headers + ["Hash"]` as its header row, or the default
    header set when no candidates are given. A table left without a header
    by an earlier failed write is provisioned the same way.
    """
    table = store.get_table(table_name)
    if table and store.get_rows(table_name):
        return table

    headers = _header_row(candidate_headers)
    if not table:
        table = store.create_table(table_name)
    store.append_row(table_name, headers)
    store.format_header(table_name, bold=True, frozen_rows=1)
    logger.info("Created table %s with %d columns", table_name, len(headers))
    return store.get_table(table_name) or table


def parse_payload(body: Union[bytes, str, dict, None]) -> SubmissionPayload:
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PayloadParseError(f"Body is not valid UTF-8: {exc}") from exc
    if isinstance(body, str):
        if not body.strip():
            raise PayloadParseError("Empty request body")
        try:
            body = json.loads(body)
        except json.JSONDecodeError as exc:
            raise PayloadParseError(f"Invalid JSON: {exc}") from exc
    if not isinstance(body, dict):
        raise PayloadParseError("Submission payload must be a JSON object")
    try:
        return SubmissionPayload.model_validate(body)
    except ValidationError as exc:
        raise PayloadParseError(str(exc)) from exc


def _cell(value: Any) -> Any:
    return "" if value is None else value


def _fit_values(values: List[Any], header: List[Any], hash_value: str) -> List[Any]:
    width = len(header)
    row = [_cell(value) for value in values]
    if len(row) > width:
        raise PayloadParseError(
            f"Row has {len(row)} values but the table has {width} columns"
        )
    if header and header[-1] == HASH_HEADER:
        if len(row) == width:
            return row
        row.extend([""] * (width - 1 - len(row)))
        row.append(hash_value)
        return row
    row.extend([""] * (width - len(row)))
    return row


def _legacy_row(payload: SubmissionPayload, now: datetime) -> List[Any]:
    fields = payload.model_dump()
    fields["timestamp"] = now.isoformat()
    return [_cell(fields.get(name)) for name in LEGACY_FIELDS]


def build_row(
    payload: SubmissionPayload,
    header: List[Any],
    *,
    now: Optional[datetime] = None,
) -> List[Any]:
    """Lay out the cells to append for `payload` against the table's header."""
    if payload.values is not None:
        return _fit_values(payload.values, header, payload.hash or "")
    return _legacy_row(payload, now or datetime.now(timezone.utc))


def _row_hash(row: List[Any], index: int) -> Any:
    if index < len(row):
        return row[index]
    # Legacy rows are narrower than the header and carry the hash last.
    if len(row) == len(LEGACY_FIELDS):
        return row[-1]
    return None


def _is_duplicate(rows: List[List[Any]], hash_value: str) -> bool:
    if not rows or HASH_HEADER not in rows[0]:
        return False
    index = rows[0].index(HASH_HEADER)
    for row in rows[1:]:
        cell = _row_hash(row, index)
        if cell is not None and str(cell) == hash_value:
            return True
    return False


def ingest(
    body: Union[bytes, str, dict, None],
    store: RowStore,
    *,
    table_name: str = DEFAULT_TABLE_NAME,
    now: Optional[datetime] = None,
) -> dict:
    """
    Append one submission to the table.

    Returns `{"status": "ok"}`, `{"status": "duplicate"}` when a row with the
    same hash already exists, or `{"status": "error", "message": ...}`.
    """
    try:
        payload = parse_payload(body)
        ensure_table(store, payload.headers or [], table_name=table_name)
        rows = store.get_rows(table_name)
        if payload.hash and _is_duplicate(rows, payload.hash):
            logger.info("Skipping duplicate submission %s", payload.hash)
            return {"status": "duplicate"}
        header = rows[0] if rows else []
        row = build_row(payload, header, now=now)
        store.append_row(table_name, row)
    except PayloadParseError as exc:
        logger.warning("Rejected submission: %s", exc)
        return {"status": "error", "message": str(exc)}
    except Exception as exc:
        logger.exception("Failed to ingest submission")
        return {"status": "error", "message": str(exc)}
    logger.info("Appended submission to %s (%d cells)", table_name, len(row))
    return {"status": "ok"}


def coerce_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    if NUMBER_PATTERN.match(value):
        return float(value) if "." in value else int(value)
    return value


def row_to_submission(header: List[Any], row: List[Any]) -> Dict[str, Any]:
    submission: Dict[str, Any] = {}
    for index, name in enumerate(header):
        key = HEADER_KEYS.get(str(name), str(name))
        value = row[index] if index < len(row) else ""
        submission[key] = coerce_value(value)
    return submission


def list_submissions(
    store: RowStore, *, table_name: str = DEFAULT_TABLE_NAME
) -> List[Dict[str, Any]]:
    if not store.get_table(table_name):
        return []
    rows = store.get_rows(table_name)
    if len(rows) < 2:
        return []
    header = rows[0]
    return [row_to_submission(header, row) for row in rows[1:]]


def retrieve(
    action: Optional[str],
    store: RowStore,
    *,
    table_name: str = DEFAULT_TABLE_NAME,
) -> Union[List[Dict[str, Any]], dict]:
    """
    Serve the stored submissions, oldest first, for the `getAll` action.
    """
    try:
        if (action or GET_ALL_ACTION) != GET_ALL_ACTION:
            raise UnknownActionError(action)
        return list_submissions(store, table_name=table_name)
    except UnknownActionError:
        logger.warning("Unknown retrieve action: %s", action)
        return {"status": "unknown action"}
    except Exception as exc:
        logger.exception("Failed to read submissions")
        return {"status": "error", "message": str(exc)}
