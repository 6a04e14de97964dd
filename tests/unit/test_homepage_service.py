"""
Unit tests for HomepageService

Tests content validation, the upsert transaction, FAQ CRUD error ordering
and response shaping.
"""

import json
import pytest
from datetime import datetime, timezone
from types import SimpleNamespace

from app.errors import BadRequestError, ContentValidationError, NotFoundError
from app.services.homepage_service import (
    HomepageService,
    format_faq,
    format_homepage,
    validate_content,
)


NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def _content(**overrides):
    payload = {
        "language": "en",
        "hero": {"title": "Learn faster", "subtitle": "Courses for everyone"},
        "about": {"title": "About us", "content": "We teach", "features": ["Live classes"]},
        "contact": {"email": "hello@academy.io", "socialLinks": {"x": "@academy"}},
    }
    payload.update(overrides)
    return payload


def _homepage_row(**overrides):
    fields = dict(
        id=7,
        language="en",
        version=1,
        created_at=NOW,
        updated_at=NOW,
        hero_id=3,
        hero_title="Learn faster",
        hero_subtitle="Courses for everyone",
        hero_background_image=None,
        hero_cta_text="Start",
        hero_cta_link="/signup",
        hero_created_at=NOW,
        hero_updated_at=NOW,
        about_id=4,
        about_title="About us",
        about_content="We teach",
        about_image=None,
        about_features='["Live classes"]',
        about_created_at=NOW,
        about_updated_at=NOW,
        contact_id=5,
        contact_email="hello@academy.io",
        contact_phone=None,
        contact_address=None,
        contact_hours=None,
        contact_description=None,
        contact_support_email=None,
        contact_sales_email=None,
        contact_social_links={"x": "@academy"},
        contact_created_at=NOW,
        contact_updated_at=NOW,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _faq_row(**overrides):
    fields = dict(id=12, question="Q?", answer="A.", order_index=1, is_active=True, created_at=NOW, updated_at=NOW)
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestValidation:
    """Test homepage content validation"""

    def test_valid_payload(self):
        assert validate_content(_content()) == []

    def test_collects_every_missing_field(self):
        errors = validate_content({"hero": {"title": "  "}, "about": {}, "contact": {}})

        assert [error["field"] for error in errors] == [
            "language",
            "hero.title",
            "hero.subtitle",
            "about.title",
            "about.content",
            "contact.email",
        ]
        assert all(error["code"] == "REQUIRED" for error in errors)

    def test_invalid_email_format(self):
        errors = validate_content(_content(contact={"email": "not-an-email"}))

        assert errors == [{
            "field": "contact.email",
            "message": "Invalid email format",
            "code": "INVALID_FORMAT",
        }]


class TestFormatting:
    """Test response shaping"""

    def test_homepage_document(self):
        doc = format_homepage(_homepage_row(), [_faq_row()])

        assert doc["id"] == "homepage_en_007"
        assert doc["hero"]["id"] == "hero_003"
        assert doc["about"]["id"] == "about_004"
        assert doc["contact"]["id"] == "contact_005"
        assert doc["about"]["features"] == ["Live classes"]
        assert doc["contact"]["socialLinks"] == {"x": "@academy"}
        assert doc["faqs"][0]["id"] == "faq_012"
        assert doc["createdAt"] == "2024-05-01T09:30:00+00:00"
        assert doc["version"] == 1

    def test_missing_sections_default_json(self):
        doc = format_homepage(_homepage_row(about_id=None, about_features=None, contact_social_links=None), [])

        assert doc["about"]["id"] is None
        assert doc["about"]["features"] == []
        assert doc["contact"]["socialLinks"] == {}
        assert doc["faqs"] == []

    def test_faq(self):
        assert format_faq(_faq_row(order_index=3, is_active=False)) == {
            "id": "faq_012",
            "question": "Q?",
            "answer": "A.",
            "order": 3,
            "isActive": False,
            "createdAt": "2024-05-01T09:30:00+00:00",
            "updatedAt": "2024-05-01T09:30:00+00:00",
        }


class TestGetHomepage:
    """Test homepage read"""

    async def test_not_found(self, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(NotFoundError, match="Homepage content not found"):
            await HomepageService(factory).get_homepage("fr")

    async def test_returns_active_faqs(self, make_session_factory):
        factory = make_session_factory(
            ("WHERE h.language = :language", [_homepage_row()]),
            ("FROM homepage_faqs", [_faq_row(), _faq_row(id=13, order_index=2)]),
        )

        doc = await HomepageService(factory).get_homepage("en")

        assert [faq["id"] for faq in doc["faqs"]] == ["faq_012", "faq_013"]
        faq_sql, _ = factory.statements_containing("FROM homepage_faqs")[0]
        assert "is_active = true" in faq_sql

    async def test_blank_language(self, make_session_factory):
        with pytest.raises(BadRequestError):
            await HomepageService(make_session_factory()).get_homepage("  ")


class TestUpsertContent:
    """Test content create/update transaction"""

    async def test_validation_error_writes_nothing(self, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(ContentValidationError) as exc_info:
            await HomepageService(factory).upsert_content({"language": "en"})

        assert exc_info.value.status_code == 400
        assert len(exc_info.value.validation_errors) == 5
        assert factory.executed == []

    async def test_creates_new_homepage(self, make_session_factory, fake_result):
        factory = make_session_factory(
            ("SELECT id, version FROM homepage", []),
            ("INSERT INTO homepage (language", fake_result(scalar=7)),
            ("WHERE h.id = :homepage_id", [_homepage_row()]),
        )

        doc, created = await HomepageService(factory).upsert_content(_content())

        assert created is True
        assert doc["id"] == "homepage_en_007"
        assert factory.commits == 1
        assert factory.statements_containing("UPDATE homepage SET version") == []

        _, about_params = factory.statements_containing("INSERT INTO homepage_about")[0]
        assert json.loads(about_params["features"]) == ["Live classes"]
        _, contact_params = factory.statements_containing("INSERT INTO homepage_contact")[0]
        assert json.loads(contact_params["social_links"]) == {"x": "@academy"}

        # FAQs untouched when not supplied
        assert factory.statements_containing("DELETE FROM homepage_faqs") == []

    async def test_updates_existing_homepage_and_replaces_faqs(self, make_session_factory):
        factory = make_session_factory(
            ("SELECT id, version FROM homepage", [SimpleNamespace(id=7, version=2)]),
            ("WHERE h.id = :homepage_id", [_homepage_row(version=3)]),
        )
        faqs = [
            {"question": "First?", "answer": "Yes"},
            {"question": "", "answer": "Dropped"},
            {"question": "Third?", "answer": "No", "order": 9, "isActive": False},
        ]

        doc, created = await HomepageService(factory).upsert_content(_content(faqs=faqs))

        assert created is False
        assert doc["version"] == 3
        assert len(factory.statements_containing("UPDATE homepage SET version = version + 1")) == 1
        assert len(factory.statements_containing("DELETE FROM homepage_faqs")) == 1

        inserted = [params for _, params in factory.statements_containing("INSERT INTO homepage_faqs")]
        assert [(p["question"], p["order_index"], p["is_active"]) for p in inserted] == [
            ("First?", 1, True),
            ("Third?", 9, False),
        ]

    async def test_failure_rolls_back(self, make_session_factory):
        factory = make_session_factory(
            ("SELECT id, version FROM homepage", [SimpleNamespace(id=7, version=2)]),
            ("INSERT INTO homepage_contact", RuntimeError("connection lost")),
        )

        with pytest.raises(RuntimeError):
            await HomepageService(factory).upsert_content(_content())

        assert factory.rollbacks == 1
        assert factory.commits == 0


class TestFaqCrud:
    """Test FAQ create/update/delete"""

    @pytest.mark.parametrize("language,question,answer,message", [
        (None, "Q?", "A.", "Language is required"),
        ("en", " ", "A.", "Question is required"),
        ("en", "Q?", None, "Answer is required"),
    ])
    async def test_create_requires_fields(self, language, question, answer, message, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(BadRequestError, match=message):
            await HomepageService(factory).create_faq(language, question, answer)

        assert factory.executed == []

    async def test_create_unknown_language(self, make_session_factory, fake_result):
        factory = make_session_factory(("SELECT id FROM homepage WHERE language", fake_result(scalar=None)))

        with pytest.raises(NotFoundError, match="Homepage not found"):
            await HomepageService(factory).create_faq("de", "Q?", "A.")

    async def test_create_defaults_order_to_next(self, make_session_factory, fake_result):
        factory = make_session_factory(
            ("SELECT id FROM homepage WHERE language", fake_result(scalar=7)),
            ("AS next_order", fake_result(scalar=4)),
            ("INSERT INTO homepage_faqs", [_faq_row(order_index=4)]),
        )

        faq = await HomepageService(factory).create_faq("en", " Q? ", "A.")

        _, params = factory.statements_containing("INSERT INTO homepage_faqs")[0]
        assert params["order_index"] == 4
        assert params["question"] == "Q?"
        assert params["is_active"] is True
        assert faq["order"] == 4

    async def test_update_missing_faq_is_404_before_400(self, make_session_factory):
        factory = make_session_factory()

        with pytest.raises(NotFoundError, match="FAQ not found"):
            await HomepageService(factory).update_faq(99, {})

        assert factory.statements_containing("UPDATE homepage_faqs") == []

    async def test_update_without_fields(self, make_session_factory):
        factory = make_session_factory(("SELECT id FROM homepage_faqs", [SimpleNamespace(id=12)]))

        with pytest.raises(BadRequestError, match="No valid fields to update"):
            await HomepageService(factory).update_faq(12, {"question": "   ", "answer": None})

        assert factory.statements_containing("UPDATE homepage_faqs") == []

    async def test_update_applies_supplied_fields(self, make_session_factory):
        factory = make_session_factory(
            ("SELECT id FROM homepage_faqs", [SimpleNamespace(id=12)]),
            ("UPDATE homepage_faqs", [_faq_row(is_active=False)]),
        )

        faq = await HomepageService(factory).update_faq(12, {"question": "", "isActive": False, "order": 0})

        sql, params = factory.statements_containing("UPDATE homepage_faqs")[0]
        assert "question" not in params
        assert params["is_active"] is False
        assert params["order_index"] == 0
        assert faq["isActive"] is False

    async def test_delete(self, make_session_factory):
        factory = make_session_factory(("DELETE FROM homepage_faqs", [SimpleNamespace(id=12)]))

        assert await HomepageService(factory).delete_faq(12) == {"deleted": True}

    async def test_delete_missing(self, make_session_factory):
        with pytest.raises(NotFoundError, match="FAQ not found"):
            await HomepageService(make_session_factory()).delete_faq(12)
