"""Helpers shared by the API tests."""
from typing import Optional


def election_payload(pid: str = "board", questions: Optional[list] = None, **overrides) -> dict:
    """Request body for ``POST /api/v1/admin/elections``."""
    payload = {
        "pid": pid,
        "topic": f"Election {pid}",
        "hide_results": False,
        "questions": questions or [
            {"text": "Chair", "answers": [{"text": "Alice"}, {"text": "Bob"}]},
        ],
    }
    payload.update(overrides)
    return payload


def create_election(admin_client, pid: str = "board", **overrides) -> dict:
    response = admin_client.post("/api/v1/admin/elections", json=election_payload(pid, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


def as_voter(client, ip_address: str) -> dict:
    """Forget earlier cookies and return headers that give the next request its own IP."""
    client.cookies.clear()
    return {"X-Forwarded-For": ip_address}
