"""Request/response Pydantic models, also used as the stored record shapes."""

from datetime import datetime, timezone
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

CrawlStatus = Literal["queued", "running", "done", "error"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlCreateRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def _require_absolute_http_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return value


class UrlRecord(BaseModel):
    id: int
    url: str
    title: str = "Untitled"
    html_version: str = "unknown"
    status: CrawlStatus = "queued"
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    internal_links: int = 0
    external_links: int = 0
    inaccessible_links: int = 0
    has_login_form: bool = False
    error_message: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def heading_counts(self) -> list[int]:
        return [self.h1_count, self.h2_count, self.h3_count, self.h4_count, self.h5_count, self.h6_count]

    def set_heading_counts(self, counts: list[int]) -> None:
        (
            self.h1_count,
            self.h2_count,
            self.h3_count,
            self.h4_count,
            self.h5_count,
            self.h6_count,
        ) = counts


class BrokenLink(BaseModel):
    id: int
    url_id: int
    link_url: str
    status_code: int
    created_at: datetime = Field(default_factory=_utcnow)


class UrlDetailResponse(BaseModel):
    url: UrlRecord
    broken_links: list[BrokenLink] = []


class CrawlAccepted(BaseModel):
    message: str
    url_id: int
