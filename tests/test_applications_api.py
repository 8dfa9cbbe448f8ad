from datetime import datetime, timezone

from backend.app.models.application import Application

PDF_BYTES = b"%PDF-1.4\n%resume\n1 0 obj\n<<>>\nendobj\n"


def _register(client, *, email: str, role: str, company: str | None = None) -> str:
    body = {"email": email, "password": "Testpass123!", "role": role}
    if company:
        body["companyName"] = company
    r = client.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()["token"]


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _create_job(client, token: str, title: str = "Backend Engineer") -> int:
    r = client.post(
        "/api/jobs",
        json={
            "title": title,
            "description": "Build APIs",
            "company_name": "Acme",
            "location": "Remote",
        },
        headers=_auth_headers(token),
    )
    assert r.status_code == 201, r.text
    return r.json()["job"]["id"]


def _apply(client, token: str, job_id, *, content: bytes = PDF_BYTES,
           filename: str = "cv.pdf", content_type: str = "application/pdf", cover_letter: str | None = None):
    data = {"jobId": str(job_id)}
    if cover_letter is not None:
        data["cover_letter"] = cover_letter
    return client.post(
        "/api/applications",
        headers=_auth_headers(token),
        data=data,
        files={"resume": (filename, content, content_type)},
    )


def _setup(client):
    """Employer E owning one job, a second employer E2, and candidates C and C2."""
    e = _register(client, email="e@example.com", role="employer", company="Acme")
    e2 = _register(client, email="e2@example.com", role="employer", company="Other")
    c = _register(client, email="c@example.com", role="candidate")
    c2 = _register(client, email="c2@example.com", role="candidate")
    job_id = _create_job(client, e)
    return e, e2, c, c2, job_id


def test_submit_application_commits_row_and_blob(client, db_session, stored_blobs):
    e, _, c, _, job_id = _setup(client)

    r = _apply(client, c, job_id, cover_letter="Hello")
    assert r.status_code == 201, r.text
    application = r.json()["application"]
    assert application["job_id"] == job_id
    assert application["cover_letter"] == "Hello"
    assert application["resume_original_filename"] == "cv.pdf"
    assert application["resume_content_type"] == "application/pdf"
    assert application["resume_size_bytes"] == len(PDF_BYTES)
    assert application["resume_path"].startswith("resumes/resume-")
    assert application["resume_url"] == f"/api/applications/{application['id']}/resume"

    files = stored_blobs()
    assert len(files) == 1
    assert files[0].read_bytes() == PDF_BYTES
    assert db_session.query(Application).count() == 1

    download = client.get(application["resume_url"], headers=_auth_headers(e))
    assert download.status_code == 200, download.text
    assert download.content == PDF_BYTES
    assert download.headers["content-type"].startswith("application/pdf")


def test_second_application_is_duplicate_and_leaves_no_extra_file(client, db_session, stored_blobs):
    _, _, c, _, job_id = _setup(client)
    assert _apply(client, c, job_id).status_code == 201

    r = _apply(client, c, job_id)
    assert r.status_code == 409, r.text
    assert r.json()["kind"] == "duplicate_application"
    assert db_session.query(Application).count() == 1
    assert len(stored_blobs()) == 1


def test_unknown_job_is_not_found_and_leaves_no_file(client, db_session, stored_blobs):
    _, _, c, _, _ = _setup(client)

    r = _apply(client, c, 9999)
    assert r.status_code == 404, r.text
    assert r.json()["kind"] == "not_found"
    assert stored_blobs() == []
    assert db_session.query(Application).count() == 0


def test_oversized_resume_is_rejected_before_anything_persists(client, db_session, stored_blobs):
    _, _, c, _, job_id = _setup(client)

    r = _apply(client, c, job_id, content=b"%PDF" + b"0" * (10 * 1024 * 1024))
    assert r.status_code == 413, r.text
    assert r.json()["kind"] == "too_large"
    assert stored_blobs() == []
    assert db_session.query(Application).count() == 0


def test_unsupported_resume_type(client, stored_blobs):
    _, _, c, _, job_id = _setup(client)

    r = _apply(client, c, job_id, content=b"plain text", filename="cv.txt", content_type="text/plain")
    assert r.status_code == 400, r.text
    assert r.json()["kind"] == "unsupported_type"
    assert stored_blobs() == []


def test_docx_resume_keeps_its_extension(client, stored_blobs):
    _, _, c, _, job_id = _setup(client)
    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    r = _apply(client, c, job_id, content=b"PK\x03\x04docx", filename="cv.docx", content_type=docx)
    assert r.status_code == 201, r.text
    assert r.json()["application"]["resume_path"].endswith(".docx")
    assert stored_blobs()[0].suffix == ".docx"


def test_missing_job_id_or_resume(client, stored_blobs):
    _, _, c, _, job_id = _setup(client)

    no_job = client.post(
        "/api/applications",
        headers=_auth_headers(c),
        files={"resume": ("cv.pdf", PDF_BYTES, "application/pdf")},
    )
    assert no_job.status_code == 400, no_job.text

    no_file = client.post("/api/applications", headers=_auth_headers(c), data={"jobId": str(job_id)})
    assert no_file.status_code == 400, no_file.text
    assert "resume" in no_file.json()["error"].lower()

    bad_id = _apply(client, c, "abc")
    assert bad_id.status_code == 400, bad_id.text
    assert stored_blobs() == []


def test_employer_cannot_apply(client, stored_blobs):
    e, _, _, _, job_id = _setup(client)
    r = _apply(client, e, job_id)
    assert r.status_code == 403, r.text
    assert stored_blobs() == []


def test_apply_requires_token(client):
    _, _, _, _, job_id = _setup(client)
    r = client.post(
        "/api/applications",
        data={"jobId": str(job_id)},
        files={"resume": ("cv.pdf", PDF_BYTES, "application/pdf")},
    )
    assert r.status_code == 401, r.text


def test_job_applications_visible_only_to_owner(client):
    e, e2, c, c2, job_id = _setup(client)
    assert _apply(client, c, job_id).status_code == 201
    assert _apply(client, c2, job_id).status_code == 201

    r = client.get(f"/api/applications/job/{job_id}", headers=_auth_headers(e))
    assert r.status_code == 200, r.text
    emails = {a["candidate_email"] for a in r.json()["applications"]}
    assert emails == {"c@example.com", "c2@example.com"}

    other = client.get(f"/api/applications/job/{job_id}", headers=_auth_headers(e2))
    assert other.status_code == 403, other.text

    candidate = client.get(f"/api/applications/job/{job_id}", headers=_auth_headers(c))
    assert candidate.status_code == 403, candidate.text

    missing = client.get("/api/applications/job/9999", headers=_auth_headers(e))
    assert missing.status_code == 404, missing.text


def test_application_details_authorization(client):
    e, e2, c, c2, job_id = _setup(client)
    application_id = _apply(client, c, job_id).json()["application"]["id"]
    url = f"/api/applications/{application_id}"

    own = client.get(url, headers=_auth_headers(c))
    assert own.status_code == 200, own.text
    assert own.json()["application"]["candidate_email"] == "c@example.com"
    assert own.json()["application"]["job_title"] == "Backend Engineer"

    assert client.get(url, headers=_auth_headers(c2)).status_code == 403
    assert client.get(url, headers=_auth_headers(e)).status_code == 200
    assert client.get(url, headers=_auth_headers(e2)).status_code == 403
    assert client.get(url).status_code == 401
    assert client.get("/api/applications/9999", headers=_auth_headers(c)).status_code == 404


def test_resume_download_follows_detail_rules(client):
    _, e2, c, c2, job_id = _setup(client)
    application_id = _apply(client, c, job_id).json()["application"]["id"]
    url = f"/api/applications/{application_id}/resume"

    assert client.get(url, headers=_auth_headers(c)).status_code == 200
    assert client.get(url, headers=_auth_headers(c2)).status_code == 403
    assert client.get(url, headers=_auth_headers(e2)).status_code == 403


def test_resume_download_when_file_is_gone(client, stored_blobs):
    _, _, c, _, job_id = _setup(client)
    application_id = _apply(client, c, job_id).json()["application"]["id"]
    stored_blobs()[0].unlink()

    r = client.get(f"/api/applications/{application_id}/resume", headers=_auth_headers(c))
    assert r.status_code == 404, r.text


def test_my_applications_lists_job_context(client):
    e, _, c, c2, job_id = _setup(client)
    second_job = _create_job(client, e, title="Data Engineer")
    assert _apply(client, c, job_id).status_code == 201
    assert _apply(client, c, second_job).status_code == 201
    assert _apply(client, c2, job_id).status_code == 201

    r = client.get("/api/applications/my-applications", headers=_auth_headers(c))
    assert r.status_code == 200, r.text
    applications = r.json()["applications"]
    assert {a["job_title"] for a in applications} == {"Backend Engineer", "Data Engineer"}
    assert all(a["job_company_name"] == "Acme" for a in applications)

    employer = client.get("/api/applications/my-applications", headers=_auth_headers(e))
    assert employer.status_code == 403


def _set_applied_at(db_session, application_id: int, when: datetime) -> None:
    db_session.query(Application).filter(Application.id == application_id).update({"applied_at": when})
    db_session.commit()


def test_application_lists_are_newest_first(client, db_session):
    e, _, c, c2, job_id = _setup(client)
    second_job = _create_job(client, e, title="Data Engineer")
    first = _apply(client, c, job_id).json()["application"]["id"]
    second = _apply(client, c2, job_id).json()["application"]["id"]
    other_job_app = _apply(client, c, second_job).json()["application"]["id"]

    # The earlier row gets the later timestamp, so id order cannot pass for time order.
    _set_applied_at(db_session, first, datetime(2030, 1, 2, tzinfo=timezone.utc))
    _set_applied_at(db_session, second, datetime(2030, 1, 1, tzinfo=timezone.utc))
    _set_applied_at(db_session, other_job_app, datetime(2029, 12, 31, tzinfo=timezone.utc))

    by_job = client.get(f"/api/applications/job/{job_id}", headers=_auth_headers(e)).json()["applications"]
    assert [a["id"] for a in by_job] == [first, second]

    mine = client.get("/api/applications/my-applications", headers=_auth_headers(c)).json()["applications"]
    assert [a["id"] for a in mine] == [first, other_job_app]
    assert [a["job_title"] for a in mine] == ["Backend Engineer", "Data Engineer"]


def test_read_paths_are_repeatable(client):
    e, _, c, c2, job_id = _setup(client)
    application_id = _apply(client, c, job_id).json()["application"]["id"]
    assert _apply(client, c2, job_id).status_code == 201

    urls = [
        (f"/api/applications/{application_id}", c),
        (f"/api/applications/{application_id}", e),
        (f"/api/applications/job/{job_id}", e),
        ("/api/applications/my-applications", c),
    ]
    for url, token in urls:
        first = client.get(url, headers=_auth_headers(token))
        again = client.get(url, headers=_auth_headers(token))
        assert first.status_code == 200, first.text
        assert first.json() == again.json()
