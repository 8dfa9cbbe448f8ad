from datetime import datetime

from pydantic import BaseModel, ConfigDict


class JobPayload(BaseModel):
    """Body for POST /api/jobs and PUT /api/jobs/{id}.

    Everything is optional here so missing fields produce a 400 from the
    listing store rather than a schema error.
    """
    title: str | None = None
    description: str | None = None
    company_name: str | None = None
    location: str | None = None
    job_type: str | None = None
    salary_range: str | None = None


class ListingRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employer_id: int
    title: str
    description: str
    company_name: str
    location: str
    job_type: str | None = None
    salary_range: str | None = None
    posted_at: datetime | None = None
    # Owner's public profile; filled by the joined listing queries only.
    employer_email: str | None = None
    employer_company_name: str | None = None

    def public(self) -> dict:
        return self.model_dump(mode="json")
