"""
Audit Models for Quick Site Audit.
Defines the data structures shared by the audit endpoint, the report view and the PDF export.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_url(raw: str) -> str:
    """Trim a user-typed address and give it a scheme when it has none."""
    url = (raw or "").strip()
    if url and "://" not in url:
        url = f"https://{url}"
    return url


def is_absolute_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in url


class AuditRequest(BaseModel):
    """Body of POST /api/audit."""
    url: str

    @field_validator("url")
    @classmethod
    def _must_be_absolute(cls, value: str) -> str:
        value = value.strip()
        if not is_absolute_url(value):
            raise ValueError("Invalid url")
        return value


class CategoryScores(BaseModel):
    """The four PageSpeed category scores, each normalized to 0-100."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    performance: int = Field(0, ge=0, le=100)
    accessibility: int = Field(0, ge=0, le=100)
    best_practices: int = Field(0, ge=0, le=100, alias="bestPractices")
    seo: int = Field(0, ge=0, le=100)


class Finding(BaseModel):
    """A single human-readable observation with a severity level."""
    model_config = ConfigDict(frozen=True)

    level: Literal["ok", "warn", "bad"]
    title: str
    detail: str


class AuditResult(BaseModel):
    """Complete result of one audit run."""
    model_config = ConfigDict(populate_by_name=True)

    url: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="generatedAt"
    )
    scores: CategoryScores
    overall: int = Field(ge=0, le=100)
    findings: List[Finding] = Field(default_factory=list)
    plain_english: Optional[str] = Field(None, alias="plainEnglish")

    def to_json(self) -> dict:
        data = self.model_dump(mode="json", by_alias=True)
        data["generatedAt"] = (
            self.generated_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.")
            + f"{self.generated_at.microsecond // 1000:03d}Z"
        )
        return data
