"""Canonical lead and company records."""

from typing import Optional

from pydantic import BaseModel, Field

# Column order for CSV export
LEAD_CSV_FIELDS = (
    "name",
    "title",
    "company",
    "location",
    "contact_url_or_email",
    "relevance_score",
)


class Lead(BaseModel):
    """One candidate contact (hiring manager, recruiter) relevant to a hiring search."""

    name: str = Field(..., min_length=1, description="Person or contact name")
    title: str = Field(default="", description="Job title or role")
    company: str = Field(..., min_length=1, description="Employer name")
    location: str = Field(default="", description="Location if known")
    contact_url_or_email: str = Field(default="", description="Profile URL, careers URL or email")
    relevance_score: int = Field(default=0, ge=0, le=100, description="Relevance 0-100, higher is better")
    source: str = Field(default="", description="Provider or method that produced this record")


class Company(BaseModel):
    """Organization found during a discovery phase, before contact enrichment."""

    company_name: str = Field(..., min_length=1, description="Company name (identity key)")
    industry: str = Field(default="", description="Industry if known")
    headquarters_location: str = Field(default="", description="Headquarters location")
    careers_page_url: str = Field(default="", description="Careers page or the page the company was found on")
    linkedin_or_domain: str = Field(default="", description="Company domain or LinkedIn page")

    @property
    def domain(self) -> Optional[str]:
        value = (self.linkedin_or_domain or "").strip().lower()
        if not value or "linkedin.com" in value:
            return None
        return value
