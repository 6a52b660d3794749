"""Tests for the crew assignment endpoints"""

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from refdesk.models.league import CompetencyPolicyMode
from refdesk.models.match import Match
from refdesk.routes import assignments as assignments_routes
from refdesk.services.assignment_cache import TenantViewCache
from refdesk.services.crew_commit import SequentialCrewWriter
from refdesk.services.crew_types import CrewProposal, RefereeSlot


@pytest.fixture
def api_setup(world):
    return {
        "central": world.referee("Rivera", tier="EXPERIENCED"),
        "aa1": world.referee("Alvarez", tier="DEVELOPING"),
        "aa2": world.referee("Brito", tier="DEVELOPING"),
        "spare": world.referee("Soto", tier="highly_experienced"),
    }


def _body(refs, **extra):
    body = {
        "central": {"referee_id": refs["central"].id},
        "assistant_1": {"referee_id": refs["aa1"].id},
        "assistant_2": {"referee_id": refs["aa2"].id},
        "actor_id": "delegate-user",
    }
    body.update(extra)
    return body


def _stored(session: Session, match: Match) -> Match:
    session.expire_all()
    return session.get(Match, match.id)


def test_assign_crew_ok(client: TestClient, session: Session, world, api_setup):
    match = world.match(3, kickoff=datetime(2026, 3, 7, 17, 0))

    response = client.post(world.url(match), json=_body(api_setup, assessor={"label": "Assessor Guest"}))

    assert response.status_code == 200
    data = response.json()
    assert data["code"] == "OK"
    assert data["ok"] is True
    stored = _stored(session, match)
    assert stored.central_referee_id == api_setup["central"].id
    assert stored.assessor_label == "Assessor Guest"
    assert stored.updated_by == "delegate-user"


def test_optional_field_presence_semantics(client: TestClient, session: Session, world, api_setup):
    match = world.match(3, fourth_official_label="Guest", assessor_referee_id=api_setup["spare"].id)

    # Absent: both kept
    assert client.post(world.url(match), json=_body(api_setup)).status_code == 200
    stored = _stored(session, match)
    assert stored.fourth_official_label == "Guest"
    assert stored.assessor_referee_id == api_setup["spare"].id

    # Explicit null clears; empty slot object clears too
    response = client.post(world.url(match), json=_body(api_setup, fourth_official=None, assessor={}))
    assert response.status_code == 200
    stored = _stored(session, match)
    assert stored.fourth_official_label is None
    assert stored.assessor_referee_id is None


def test_slot_with_id_and_label_is_rejected(client: TestClient, world, api_setup):
    match = world.match(3)
    body = _body(api_setup, central={"referee_id": api_setup["central"].id, "label": "Someone"})

    assert client.post(world.url(match), json=body).status_code == 422


def test_missing_params_status(client: TestClient, world, api_setup):
    match = world.match(3)
    body = _body(api_setup)
    del body["assistant_2"]

    response = client.post(world.url(match), json=body)

    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_PARAMS"
    assert response.json()["missing_roles"] == ["ASSISTANT_2"]


def test_duplicate_referees_status(client: TestClient, world, api_setup):
    match = world.match(3)
    body = _body(api_setup, assistant_2={"referee_id": api_setup["central"].id})

    response = client.post(world.url(match), json=body)

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_REFEREES"


def test_unknown_match_is_404(client: TestClient, world, api_setup):
    match = world.match(3)
    url = world.url(match).replace(f"/tenants/{world.TENANT}/", "/tenants/delegate-south/")

    response = client.post(url, json=_body(api_setup))

    assert response.status_code == 404
    assert response.json()["code"] == "MATCH_NOT_FOUND"


def test_schedule_conflict_payload(client: TestClient, world, api_setup):
    kickoff = datetime(2026, 3, 7, 17, 0)
    first = world.match(3, home=2, away=3, kickoff=kickoff)
    second = world.match(3, home=0, away=1, kickoff=kickoff)
    assert client.post(world.url(first), json=_body(api_setup)).status_code == 200

    response = client.post(
        world.url(second),
        json=_body(api_setup, ignore_recent_team_conflicts=True, ignore_same_day_conflicts=True),
    )

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "SCHEDULE_CONFLICT"
    assert data["schedule_conflicts"][0]["match_id"] == first.id
    assert data["schedule_conflicts"][0]["kickoff"] == kickoff.isoformat()


def test_league_policy_drives_competency(client: TestClient, session: Session, world, api_setup):
    world.league.competency_policy = CompetencyPolicyMode.WARN
    world.league.central_tolerance = 1
    session.add(world.league)
    session.commit()
    match = world.match(3, difficulty=5)

    response = client.post(world.url(match), json=_body(api_setup))

    assert response.status_code == 200
    data = response.json()
    assert data["code"] == "OK_WITH_WARNING"
    assert data["warning"] == "RCS_BELOW_THRESHOLD_WARNING"
    assert data["competency"] == {
        "difficulty": 5,
        "competency": 3,
        "tolerance": 1.0,
        "policy": "WARN",
        "below_threshold": True,
    }


def test_batch_confirm_endpoint(client: TestClient, session: Session, world, api_setup):
    m1 = world.match(2, home=0, away=1)
    m2 = world.match(2, home=2, away=3)

    def item(match, **crew):
        return {
            "league_id": match.league_id,
            "group_id": match.group_id,
            "matchday_id": match.matchday_id,
            "match_id": match.id,
            **crew,
        }

    refs = api_setup
    body = {
        "actor_id": "bulk",
        "items": [
            item(
                m1,
                central={"referee_id": refs["central"].id},
                assistant_1={"referee_id": refs["aa1"].id},
                assistant_2={"label": "guest"},
            ),
            item(
                m2,
                central={"referee_id": refs["spare"].id},
                assistant_1={"referee_id": refs["spare"].id},
                assistant_2={"referee_id": refs["aa2"].id},
            ),
        ],
    }

    response = client.post(f"/api/tenants/{world.TENANT}/crews/confirm", json=body)

    assert response.status_code == 200
    assert response.json() == {"committed": 1}
    assert _stored(session, m1).assistant_2_label == "guest"
    assert _stored(session, m2).central_referee_id is None


def test_assignments_view_is_cached_and_invalidated(client: TestClient, world, api_setup):
    match = world.match(3, kickoff=datetime(2026, 3, 7, 17, 0))
    url = f"/api/tenants/{world.TENANT}/assignments"

    first = client.get(url).json()
    assert first["cached"] is False
    assert first["matches"][0]["crew"]["central"] is None

    assert client.get(url).json()["cached"] is True

    assert client.post(world.url(match), json=_body(api_setup)).status_code == 200

    refreshed = client.get(url).json()
    assert refreshed["cached"] is False
    assert refreshed["matches"][0]["crew"]["central"] == {"referee_id": api_setup["central"].id, "label": None}


def test_referee_competency_endpoint(client: TestClient, world, api_setup):
    spare = api_setup["spare"]

    response = client.get(f"/api/referees/{spare.id}/competency")

    assert response.status_code == 200
    data = response.json()
    assert data["tier_competency"] == 4
    assert data["central_competency"] == 4
    assert data["approximate_tier"] == "HIGHLY_EXPERIENCED"
    assert data["available"] is True

    assert client.get("/api/referees/999999/competency").status_code == 404


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_view_built_during_commit_is_not_cached(client: TestClient, session: Session, world, api_setup):
    match = world.match(3, kickoff=datetime(2026, 3, 7, 17, 0))
    url = f"/api/tenants/{world.TENANT}/assignments"
    proposal = CrewProposal(
        central=RefereeSlot(api_setup["central"].id),
        assistant_1=RefereeSlot(api_setup["aa1"].id),
        assistant_2=RefereeSlot(api_setup["aa2"].id),
    )
    build_view = assignments_routes._match_view
    commits = []

    def view_with_concurrent_commit(row):
        # Another desk saves a crew after the rows were read
        if not commits:
            commits.append(row.id)
            SequentialCrewWriter().write(session, match, proposal, "second-desk")
        return build_view(row)

    with patch.object(assignments_routes, "_match_view", side_effect=view_with_concurrent_commit):
        built = client.get(url).json()

    assert built["cached"] is False
    assert built["matches"][0]["crew"]["central"] is None

    refreshed = client.get(url).json()
    assert refreshed["cached"] is False
    assert refreshed["matches"][0]["crew"]["central"] == {"referee_id": api_setup["central"].id, "label": None}


def test_cache_put_with_outdated_generation_is_dropped():
    cache = TenantViewCache()
    generation = cache.generation("t1")
    cache.invalidate("t1")

    assert cache.put("t1", ["old"], generation=generation) is False
    assert cache.get("t1") is None

    assert cache.put("t1", ["new"], generation=cache.generation("t1")) is True
    assert cache.get("t1") == ["new"]


def test_lowercase_stored_policy_is_honoured(client: TestClient, session: Session, world, api_setup):
    world.league.competency_policy = "warn"
    session.add(world.league)
    session.commit()
    match = world.match(3, difficulty=5)

    response = client.post(world.url(match), json=_body(api_setup))

    assert response.status_code == 200
    assert response.json()["code"] == "OK_WITH_WARNING"
    assert response.json()["competency"]["policy"] == "WARN"
