import sys
import types

import pytest
from fastapi.testclient import TestClient

PHARMACIST = {
    "id": "rx-1",
    "first_name": "Omar",
    "last_name": "Hassan",
    "email": "omar@example.com",
    "phone_number": None,
    "bio": "Hospital pharmacist",
    "experience": "5 years",
    "education": None,
    "city": "Cairo",
    "area": "Maadi",
    "available": True,
    "cv": {"url": "http://localhost:8000/uploads/cvs/cv-1.pdf", "uploaded_at": None},
    "created_at": "2025-01-01T00:00:00",
    "updated_at": None,
}


@pytest.fixture
def calls():
    return {}


@pytest.fixture
def user():
    return {"id": "u-9", "role": "PHARMACIST"}


@pytest.fixture
def app(monkeypatch, calls, user):
    fake_service = types.SimpleNamespace()

    async def get_own_profile(db, user):
        calls["me"] = user
        return PHARMACIST

    async def update_own_profile(db, user, payload):
        calls["update"] = payload
        return {
            "message": "Profile updated successfully",
            "profile": {**PHARMACIST, **payload.model_dump(exclude_unset=True)},
        }

    async def get_own_cv(db, current):
        from src.app.core.errors import ApiError

        if current.id == "no-cv":
            raise ApiError.not_found("CV not found for this pharmacist")
        return {"cv_url": "/uploads/cvs/cv-1.pdf", "uploaded_at": None}

    async def search_pharmacists(db, **kwargs):
        calls["search"] = kwargs
        return {
            "pharmacists": [PHARMACIST],
            "pagination": {"total": 1, "page": kwargs["page"], "limit": kwargs["limit"], "pages": 1},
            "filters": {
                "applied": {
                    "city": kwargs["city"],
                    "area": kwargs["area"],
                    "available": kwargs["available"],
                }
            },
        }

    async def get_pharmacist(db, pharmacist_id):
        from src.app.core.errors import ApiError

        if pharmacist_id != "rx-1":
            raise ApiError.not_found("Pharmacist not found")
        return PHARMACIST

    fake_service.get_own_profile = get_own_profile
    fake_service.update_own_profile = update_own_profile
    fake_service.get_own_cv = get_own_cv
    fake_service.search_pharmacists = search_pharmacists
    fake_service.get_pharmacist = get_pharmacist

    monkeypatch.setitem(
        sys.modules, "src.app.features.pharmacists.service", fake_service
    )
    for mod in ["src.app.main", "src.app.features.pharmacists.api"]:
        monkeypatch.delitem(sys.modules, mod, raising=False)

    from src.app.main import app as fastapi_app
    from src.app.core.security import (
        CurrentUser,
        get_current_user,
        require_subscription_to_view_pharmacists,
    )
    from src.db.session import get_db

    async def fake_db():
        yield None

    def current_user():
        return CurrentUser(email="omar@example.com", **user)

    fastapi_app.dependency_overrides[get_db] = fake_db
    fastapi_app.dependency_overrides[get_current_user] = current_user
    fastapi_app.dependency_overrides[require_subscription_to_view_pharmacists] = lambda: None
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


def test_get_own_profile(app, calls):
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/me")

    assert res.status_code == 200
    data = res.json()
    assert data["firstName"] == "Omar"
    assert data["cv"]["url"].endswith("cv-1.pdf")
    assert calls["me"].id == "u-9"


def test_own_profile_requires_pharmacist_role(app, user):
    user["role"] = "PHARMACY_OWNER"
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/me")

    assert res.status_code == 403
    assert res.json()["message"] == "Access denied. Pharmacist role required."


def test_update_own_profile(app, calls):
    client = TestClient(app)
    res = client.put(
        "/api/v1/pharmacists/me",
        json={"bio": "Community pharmacist", "city": " Giza ", "available": False},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["profile"]["city"] == "Giza"
    assert body["profile"]["available"] is False
    assert calls["update"].model_fields_set == {"bio", "city", "available"}


@pytest.mark.parametrize(
    "payload,field",
    [
        ({"city": "C"}, "city"),
        ({"area": "x" * 101}, "area"),
        ({"firstName": ""}, "firstName"),
        ({"available": "maybe"}, "available"),
        ({"phoneNumber": "call me"}, "phoneNumber"),
    ],
)
def test_update_own_profile_validation(app, payload, field):
    client = TestClient(app)
    res = client.put("/api/v1/pharmacists/me", json=payload)

    assert res.status_code == 400
    assert field in [e["field"] for e in res.json()["errors"]]


def test_get_own_cv(app):
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/me/cv")

    assert res.status_code == 200
    assert res.json() == {"cvUrl": "/uploads/cvs/cv-1.pdf", "uploadedAt": None}


def test_missing_cv_is_404(app, user):
    user["id"] = "no-cv"
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/me/cv")

    assert res.status_code == 404
    assert res.json()["message"] == "CV not found for this pharmacist"


def test_search_is_public_and_maps_parameters(app, calls):
    from src.app.core.security import get_current_user

    app.dependency_overrides.pop(get_current_user)
    client = TestClient(app)
    res = client.get(
        "/api/v1/pharmacists/search",
        params={"city": "Cairo", "area": "Maadi", "available": "true", "page": 2, "limit": 5},
    )

    assert res.status_code == 200
    assert calls["search"] == {
        "city": "Cairo",
        "area": "Maadi",
        "available": True,
        "page": 2,
        "limit": 5,
    }
    data = res.json()
    assert data["pagination"]["page"] == 2
    assert data["filters"]["applied"] == {"city": "Cairo", "area": "Maadi", "available": True}
    assert data["pharmacists"][0]["lastName"] == "Hassan"


@pytest.mark.parametrize(
    "params,field",
    [
        ({}, "city"),
        ({"city": "C"}, "city"),
        ({"city": "Cairo", "available": "maybe"}, "available"),
        ({"city": "Cairo", "page": 0}, "page"),
        ({"city": "Cairo", "limit": 101}, "limit"),
    ],
)
def test_search_validation(app, calls, params, field):
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/search", params=params)

    assert res.status_code == 400
    assert field in [e["field"] for e in res.json()["errors"]]
    assert "search" not in calls


def test_get_pharmacist_by_id(app):
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/rx-1")

    assert res.status_code == 200
    assert res.json()["email"] == "omar@example.com"


def test_get_unknown_pharmacist(app):
    client = TestClient(app)
    res = client.get("/api/v1/pharmacists/missing")

    assert res.status_code == 404
    assert res.json()["message"] == "Pharmacist not found"
