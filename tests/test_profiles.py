from __future__ import annotations

from helpers import register_employer, register_seeker


def test_seeker_profile_update_syncs_account_name(client) -> None:
    seeker = register_seeker(client, email="maria@example.com")
    r = client.put(
        "/api/job-seeker/profile",
        json={"firstName": "Marianna", "title": "Data Analyst", "experience": 4, "profileVisibility": "PRIVATE"},
        headers=seeker,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["firstName"] == "Marianna"
    assert body["experience"] == 4
    assert body["profileVisibility"] == "PRIVATE"

    assert client.get("/users/me", headers=seeker).json()["name"] == "Marianna Georgiou"


def test_employer_profile_update(client) -> None:
    employer = register_employer(client, email="hr@acme.example")
    r = client.put("/api/employer/profile", json={"city": "Larnaca", "size": "11-50"}, headers=employer)
    assert r.status_code == 200
    assert r.json()["city"] == "Larnaca"
    assert r.json()["companyName"] == "Acme Ltd"


def test_seeker_skills_are_shared_case_insensitively(client) -> None:
    maria = register_seeker(client, email="maria@example.com", skills=("Python",))
    nikos = register_seeker(client, email="nikos@example.com", first_name="Nikos")

    added = client.post("/api/job-seeker/skills", json={"name": "python", "level": 4}, headers=nikos)
    assert added.status_code == 201
    assert added.json()["level"] == 4

    catalogue = client.get("/api/skills", params={"q": "pyt"}).json()
    assert [skill["name"] for skill in catalogue] == ["Python"]

    duplicate = client.post("/api/job-seeker/skills", json={"name": "PYTHON"}, headers=maria)
    assert duplicate.status_code == 409


def test_remove_seeker_skill(client) -> None:
    seeker = register_seeker(client, email="maria@example.com", skills=("SQL", "Excel"))
    skills = client.get("/api/job-seeker/skills", headers=seeker).json()
    sql = next(item for item in skills if item["name"] == "SQL")

    assert client.delete(f"/api/job-seeker/skills/{sql['id']}", headers=seeker).status_code == 204
    assert client.delete(f"/api/job-seeker/skills/{sql['id']}", headers=seeker).status_code == 404
    assert client.get("/api/job-seeker/profile", headers=seeker).json()["skills"] == ["Excel"]
