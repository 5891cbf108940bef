"""
Pydantic schemas for the submissions API.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

Scalar = Union[bool, int, float, str, None]


class SubmissionPayload(BaseModel):
    """Ingest body: header-driven `values`, or the legacy named fields."""

    model_config = ConfigDict(extra="ignore")

    headers: Optional[list[str]] = None
    values: Optional[list[Scalar]] = None
    hash: Optional[str] = None

    # Legacy fixed-field submissions (no `values` array).
    role: Scalar = None
    func: Scalar = None
    companySize: Scalar = None
    archetype: Scalar = None
    score: Scalar = None
    answers: Scalar = None
    comment: Scalar = None


class StatusResponse(BaseModel):
    status: Literal["ok", "duplicate", "error", "unknown action"]
    message: Optional[str] = None
