"""Data models for Campsite Checker."""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

class SearchCriteria(BaseModel):
    """What to look for on the booking page. Fixed for the whole run."""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date
    rv_type: Optional[str] = "travel trailer"
    rv_length: Optional[int] = 30
    guests: int = Field(default=1, ge=1)

    @field_validator('rv_length')
    @classmethod
    def check_length(cls, value):
        if value is not None and value <= 0:
            raise ValueError("rv_length must be a positive number of feet")
        return value

    @model_validator(mode='after')
    def check_dates(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

class SiteRecord(BaseModel):
    """Model for a single campsite pulled from the page or an API response."""
    name: str = "Unknown"
    price: str = ""
    details: str = ""
    availability: str = ""
    available: bool = True
    full_text: str = ""

class ProbeResult(BaseModel):
    """Outcome of one probe. Produced and consumed within a single check."""
    count: int = Field(default=0, ge=0)
    sites: List[SiteRecord] = []
    source: str = "none"
    no_sites_message: Optional[str] = None
    api_urls: List[str] = []
    filter_options: List[str] = []
    page_excerpt: str = ""
    checked_at: datetime = Field(default_factory=datetime.now)

    @property
    def available(self) -> bool:
        return self.count > 0

    @classmethod
    def empty(cls) -> "ProbeResult":
        return cls()
