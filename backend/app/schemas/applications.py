from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ApplicationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    candidate_id: int
    resume_path: str
    resume_original_filename: str | None = None
    resume_content_type: str | None = None
    resume_size_bytes: int = 0
    cover_letter: str | None = None
    applied_at: datetime | None = None

    # Enrichment, depending on which ledger query produced the record.
    candidate_email: str | None = None
    job_title: str | None = None
    job_company_name: str | None = None
    employer_id: int | None = None

    @property
    def resume_url(self) -> str:
        return f"/api/applications/{self.id}/resume"

    def public(self) -> dict:
        payload = self.model_dump(mode="json")
        payload["resume_url"] = self.resume_url
        return payload
