import asyncio
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from src.app.core.errors import ApiError
from src.app.core.security import CurrentUser
from src.app.features.pharmacists.schemas import PharmacistUpdate
from src.app.features.pharmacists.service import (
    cv_link,
    get_own_cv,
    get_pharmacist,
    search_pharmacists,
    search_statements,
    update_own_profile,
)

USER = CurrentUser(id="u-9", email="omar@example.com", role="PHARMACIST")


class Rows:
    def __init__(self, value):
        self.value = value

    def scalar_one_or_none(self):
        return self.value

    def scalar_one(self):
        return self.value

    def scalars(self):
        return self

    def unique(self):
        return self

    def all(self):
        return self.value


class QueuedSession:
    """Returns queued results in order, one per execute call."""

    def __init__(self, *results):
        self.results = list(results)
        self.statements = []
        self.committed = 0

    async def execute(self, statement):
        self.statements.append(statement)
        return Rows(self.results.pop(0))

    def add(self, obj):
        pass

    async def commit(self):
        self.committed += 1

    async def refresh(self, obj):
        pass

    async def rollback(self):
        pass


def make_pharmacist(pharmacist_id="rx-1", last_name="Hassan", **overrides):
    fields = dict(
        id=pharmacist_id,
        first_name="Omar",
        last_name=last_name,
        phone_number=None,
        cv_url=None,
        bio=None,
        experience=None,
        education=None,
        city="Cairo",
        area="Maadi",
        available=True,
        created_at=datetime(2025, 1, 1),
        updated_at=datetime(2025, 2, 1),
        user=SimpleNamespace(email=f"{pharmacist_id}@example.com"),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _sql(statement):
    compiled = statement.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


def test_cv_link_prefixes_relative_paths():
    assert cv_link(None, None) is None
    assert cv_link("/uploads/cvs/a.pdf", None).url == "http://localhost:8000/uploads/cvs/a.pdf"
    assert cv_link("https://cdn.example.com/a.pdf", None).url == "https://cdn.example.com/a.pdf"


def test_search_statements_filter_case_insensitively_and_sort_by_last_name():
    count, page = search_statements(" CAIRO ", "Maadi", True, skip=10, take=5)

    count_sql, count_params = _sql(count)
    assert "lower(public.pharmacist_profiles.city)" in count_sql
    assert "lower(public.pharmacist_profiles.area)" in count_sql
    assert "public.pharmacist_profiles.available IS true" in count_sql
    assert {"cairo", "maadi"} <= set(count_params.values())

    page_sql, page_params = _sql(page)
    assert "JOIN public.users" in page_sql
    assert (
        "ORDER BY public.pharmacist_profiles.last_name ASC, public.pharmacist_profiles.id ASC"
        in page_sql
    )
    assert 5 in page_params.values() and 10 in page_params.values()


def test_search_statements_without_optional_filters():
    count, _ = search_statements("Cairo", None, False, skip=0, take=10)
    sql, _ = _sql(count)

    assert "area" not in sql
    assert "available" not in sql


def test_search_pharmacists_pages_and_echoes_filters():
    rows = [make_pharmacist("rx-1", "Adel"), make_pharmacist("rx-2", "Badr", cv_url="/cv.pdf")]
    db = QueuedSession(12, rows)

    result = asyncio.run(
        search_pharmacists(db, city="Cairo", area="", available=False, page=2, limit=5)
    )

    assert [p.last_name for p in result.pharmacists] == ["Adel", "Badr"]
    assert result.pharmacists[0].email == "rx-1@example.com"
    assert result.pharmacists[1].cv.url.endswith("/cv.pdf")
    assert result.pagination.total == 12
    assert result.pagination.pages == 3
    assert result.filters.applied.area is None
    assert result.filters.applied.available is False


def test_search_pharmacists_with_no_matches():
    result = asyncio.run(search_pharmacists(QueuedSession(0, []), city="Aswan"))

    assert result.pharmacists == []
    assert result.pagination.pages == 0


def test_update_own_profile_changes_only_sent_fields():
    profile = make_pharmacist(bio="Old bio")
    db = QueuedSession(profile)
    payload = PharmacistUpdate.model_validate({"city": " Giza ", "available": False})

    result = asyncio.run(update_own_profile(db, USER, payload))

    assert profile.city == "Giza"
    assert profile.available is False
    assert profile.area == "Maadi"
    assert profile.bio == "Old bio"
    assert db.committed == 1
    assert result.profile.email == "rx-1@example.com"


def test_update_own_profile_clears_area_when_sent_empty():
    profile = make_pharmacist()
    payload = PharmacistUpdate.model_validate({"area": ""})

    asyncio.run(update_own_profile(QueuedSession(profile), USER, payload))

    assert profile.area is None


def test_update_without_profile_is_404():
    with pytest.raises(ApiError) as exc:
        asyncio.run(update_own_profile(QueuedSession(None), USER, PharmacistUpdate()))
    assert exc.value.message == "Pharmacist profile not found"


def test_own_cv():
    profile = make_pharmacist(cv_url="/uploads/cvs/cv-1.pdf")
    info = asyncio.run(get_own_cv(QueuedSession(profile), USER))
    assert info.cv_url == "/uploads/cvs/cv-1.pdf"
    assert info.uploaded_at == datetime(2025, 2, 1)

    with pytest.raises(ApiError) as exc:
        asyncio.run(get_own_cv(QueuedSession(make_pharmacist()), USER))
    assert exc.value.message == "CV not found for this pharmacist"


def test_get_pharmacist_not_found():
    with pytest.raises(ApiError) as exc:
        asyncio.run(get_pharmacist(QueuedSession(None), "missing"))
    assert exc.value.status_code == 404
