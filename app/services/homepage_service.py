"""
Homepage Content Service

Reads and writes the per-language homepage:
- Read: homepage row with hero/about/contact sections plus active FAQs
- Content upsert: single transaction that bumps the version, upserts each
  section on its homepage_id unique constraint and optionally replaces FAQs
- FAQ create/update/delete by id
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.errors import BadRequestError, ContentValidationError, NotFoundError
from app.services.formatting import display_id, isoformat

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

HOMEPAGE_SELECT = """
    SELECT
        h.id,
        h.language,
        h.version,
        h.created_at,
        h.updated_at,
        hh.id AS hero_id,
        hh.title AS hero_title,
        hh.subtitle AS hero_subtitle,
        hh.background_image AS hero_background_image,
        hh.cta_text AS hero_cta_text,
        hh.cta_link AS hero_cta_link,
        hh.created_at AS hero_created_at,
        hh.updated_at AS hero_updated_at,
        ha.id AS about_id,
        ha.title AS about_title,
        ha.content AS about_content,
        ha.image AS about_image,
        ha.features AS about_features,
        ha.created_at AS about_created_at,
        ha.updated_at AS about_updated_at,
        hc.id AS contact_id,
        hc.email AS contact_email,
        hc.phone AS contact_phone,
        hc.address AS contact_address,
        hc.hours AS contact_hours,
        hc.description AS contact_description,
        hc.support_email AS contact_support_email,
        hc.sales_email AS contact_sales_email,
        hc.social_links AS contact_social_links,
        hc.created_at AS contact_created_at,
        hc.updated_at AS contact_updated_at
    FROM homepage h
    LEFT JOIN homepage_hero hh ON h.id = hh.homepage_id
    LEFT JOIN homepage_about ha ON h.id = ha.homepage_id
    LEFT JOIN homepage_contact hc ON h.id = hc.homepage_id
"""

FAQ_COLUMNS = "id, question, answer, order_index, is_active, created_at, updated_at"

UPSERT_HERO = """
    INSERT INTO homepage_hero (homepage_id, title, subtitle, background_image, cta_text, cta_link)
    VALUES (:homepage_id, :title, :subtitle, :background_image, :cta_text, :cta_link)
    ON CONFLICT (homepage_id)
    DO UPDATE SET
        title = EXCLUDED.title,
        subtitle = EXCLUDED.subtitle,
        background_image = EXCLUDED.background_image,
        cta_text = EXCLUDED.cta_text,
        cta_link = EXCLUDED.cta_link,
        updated_at = CURRENT_TIMESTAMP
"""

UPSERT_ABOUT = """
    INSERT INTO homepage_about (homepage_id, title, content, image, features)
    VALUES (:homepage_id, :title, :content, :image, CAST(:features AS JSONB))
    ON CONFLICT (homepage_id)
    DO UPDATE SET
        title = EXCLUDED.title,
        content = EXCLUDED.content,
        image = EXCLUDED.image,
        features = EXCLUDED.features,
        updated_at = CURRENT_TIMESTAMP
"""

UPSERT_CONTACT = """
    INSERT INTO homepage_contact (
        homepage_id, email, phone, address, hours, description,
        support_email, sales_email, social_links
    )
    VALUES (
        :homepage_id, :email, :phone, :address, :hours, :description,
        :support_email, :sales_email, CAST(:social_links AS JSONB)
    )
    ON CONFLICT (homepage_id)
    DO UPDATE SET
        email = EXCLUDED.email,
        phone = EXCLUDED.phone,
        address = EXCLUDED.address,
        hours = EXCLUDED.hours,
        description = EXCLUDED.description,
        support_email = EXCLUDED.support_email,
        sales_email = EXCLUDED.sales_email,
        social_links = EXCLUDED.social_links,
        updated_at = CURRENT_TIMESTAMP
"""


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_content(payload: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Collect every field-level error of a homepage content payload.

    Args:
        payload: Request body with language, hero, about, contact (camelCase keys)

    Returns:
        list: {"field", "message", "code"} entries, empty when valid
    """
    hero = payload.get("hero") or {}
    about = payload.get("about") or {}
    contact = payload.get("contact") or {}

    required = [
        ("language", payload.get("language"), "Language is required"),
        ("hero.title", hero.get("title"), "Hero title is required"),
        ("hero.subtitle", hero.get("subtitle"), "Hero subtitle is required"),
        ("about.title", about.get("title"), "About title is required"),
        ("about.content", about.get("content"), "About content is required"),
        ("contact.email", contact.get("email"), "Contact email is required"),
    ]

    errors = [
        {"field": field, "message": message, "code": "REQUIRED"}
        for field, value, message in required
        if _is_blank(value)
    ]

    email = contact.get("email")
    if isinstance(email, str) and email and not EMAIL_PATTERN.match(email):
        errors.append({
            "field": "contact.email",
            "message": "Invalid email format",
            "code": "INVALID_FORMAT",
        })

    return errors


def _json_value(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


def format_faq(row: Any) -> Dict[str, Any]:
    return {
        "id": display_id("faq", row.id),
        "question": row.question,
        "answer": row.answer,
        "order": row.order_index,
        "isActive": row.is_active,
        "createdAt": isoformat(row.created_at),
        "updatedAt": isoformat(row.updated_at),
    }


def format_homepage(row: Any, faq_rows: List[Any]) -> Dict[str, Any]:
    """Shape a joined homepage row and its FAQ rows into the response document"""
    return {
        "id": f"homepage_{row.language}_{row.id:03d}",
        "language": row.language,
        "hero": {
            "id": display_id("hero", row.hero_id),
            "title": row.hero_title,
            "subtitle": row.hero_subtitle,
            "backgroundImage": row.hero_background_image,
            "ctaText": row.hero_cta_text,
            "ctaLink": row.hero_cta_link,
            "createdAt": isoformat(row.hero_created_at),
            "updatedAt": isoformat(row.hero_updated_at),
        },
        "about": {
            "id": display_id("about", row.about_id),
            "title": row.about_title,
            "content": row.about_content,
            "image": row.about_image,
            "features": _json_value(row.about_features, []),
            "createdAt": isoformat(row.about_created_at),
            "updatedAt": isoformat(row.about_updated_at),
        },
        "contact": {
            "id": display_id("contact", row.contact_id),
            "email": row.contact_email,
            "phone": row.contact_phone,
            "address": row.contact_address,
            "hours": row.contact_hours,
            "description": row.contact_description,
            "supportEmail": row.contact_support_email,
            "salesEmail": row.contact_sales_email,
            "socialLinks": _json_value(row.contact_social_links, {}),
            "createdAt": isoformat(row.contact_created_at),
            "updatedAt": isoformat(row.contact_updated_at),
        },
        "faqs": [format_faq(faq) for faq in faq_rows],
        "createdAt": isoformat(row.created_at),
        "updatedAt": isoformat(row.updated_at),
        "version": row.version,
    }


class HomepageService:
    """CRUD over homepage content and FAQs"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _fetch_active_homepage(self, language: str):
        async with self.session_factory() as session:
            result = await session.execute(
                text(HOMEPAGE_SELECT + " WHERE h.language = :language AND h.is_active = true"),
                {"language": language},
            )
            return result.fetchone()

    async def _fetch_active_faqs(self, language: str) -> List[Any]:
        async with self.session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {FAQ_COLUMNS}
                    FROM homepage_faqs
                    WHERE homepage_id = (SELECT id FROM homepage WHERE language = :language)
                      AND is_active = true
                    ORDER BY order_index ASC
                """),
                {"language": language},
            )
            return result.fetchall()

    async def get_homepage(self, language: str) -> Dict[str, Any]:
        """
        Homepage document for a language with its active FAQs.

        Raises:
            BadRequestError: Blank language
            NotFoundError: No active homepage for the language
        """
        if not language or not language.strip():
            raise BadRequestError("Language parameter is required")

        row, faq_rows = await asyncio.gather(
            self._fetch_active_homepage(language),
            self._fetch_active_faqs(language),
        )

        if row is None:
            raise NotFoundError("Homepage content not found for the specified language")

        return format_homepage(row, faq_rows)

    async def upsert_content(self, payload: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """
        Create or update the homepage for payload["language"] atomically.

        Steps, all inside one transaction:
        1. Locate the homepage by language; bump version or create it (version 1, active)
        2. Upsert hero, about and contact on their homepage_id unique constraint
        3. If a faqs list is supplied, delete existing FAQs and insert the
           supplied ones (order defaults to position + 1, isActive to true)

        Any failure rolls the whole transaction back.

        Args:
            payload: Request body (camelCase keys)

        Returns:
            (homepage document, created) where created is True for a new homepage

        Raises:
            ContentValidationError: One or more required/invalid fields
        """
        validation_errors = validate_content(payload)
        if validation_errors:
            raise ContentValidationError(validation_errors)

        language = payload["language"]
        hero = payload["hero"]
        about = payload["about"]
        contact = payload["contact"]
        faqs = payload.get("faqs")

        async with self.session_factory() as session:
            async with session.begin():
                homepage_id, created = await self._locate_or_create(session, language)

                await session.execute(text(UPSERT_HERO), {
                    "homepage_id": homepage_id,
                    "title": hero["title"].strip(),
                    "subtitle": hero["subtitle"].strip(),
                    "background_image": hero.get("backgroundImage") or None,
                    "cta_text": hero.get("ctaText") or None,
                    "cta_link": hero.get("ctaLink") or None,
                })

                await session.execute(text(UPSERT_ABOUT), {
                    "homepage_id": homepage_id,
                    "title": about["title"].strip(),
                    "content": about["content"].strip(),
                    "image": about.get("image") or None,
                    "features": json.dumps(about.get("features") or []),
                })

                await session.execute(text(UPSERT_CONTACT), {
                    "homepage_id": homepage_id,
                    "email": contact["email"].strip(),
                    "phone": contact.get("phone") or None,
                    "address": contact.get("address") or None,
                    "hours": contact.get("hours") or None,
                    "description": contact.get("description") or None,
                    "support_email": contact.get("supportEmail") or None,
                    "sales_email": contact.get("salesEmail") or None,
                    "social_links": json.dumps(contact.get("socialLinks") or {}),
                })

                if isinstance(faqs, list):
                    await self._replace_faqs(session, homepage_id, faqs)

            row, faq_rows = await self._read_homepage_by_id(session, homepage_id)

        logger.info(
            f"Homepage '{language}' {'created' if created else 'updated'} "
            f"(id={homepage_id}, version={row.version})"
        )
        return format_homepage(row, faq_rows), created

    async def _locate_or_create(self, session: AsyncSession, language: str) -> Tuple[int, bool]:
        result = await session.execute(
            text("SELECT id, version FROM homepage WHERE language = :language"),
            {"language": language},
        )
        existing = result.fetchone()

        if existing is not None:
            await session.execute(
                text("""
                    UPDATE homepage
                    SET version = version + 1, updated_at = CURRENT_TIMESTAMP
                    WHERE id = :homepage_id
                """),
                {"homepage_id": existing.id},
            )
            return existing.id, False

        result = await session.execute(
            text("""
                INSERT INTO homepage (language, version, is_active)
                VALUES (:language, 1, true)
                RETURNING id
            """),
            {"language": language},
        )
        return result.scalar_one(), True

    async def _replace_faqs(self, session: AsyncSession, homepage_id: int, faqs: List[Any]) -> None:
        await session.execute(
            text("DELETE FROM homepage_faqs WHERE homepage_id = :homepage_id"),
            {"homepage_id": homepage_id},
        )

        for position, faq in enumerate(faqs, start=1):
            if not isinstance(faq, dict):
                continue
            question, answer = faq.get("question"), faq.get("answer")
            if _is_blank(question) or _is_blank(answer):
                continue
            is_active = faq.get("isActive")
            await session.execute(
                text("""
                    INSERT INTO homepage_faqs (homepage_id, question, answer, order_index, is_active)
                    VALUES (:homepage_id, :question, :answer, :order_index, :is_active)
                """),
                {
                    "homepage_id": homepage_id,
                    "question": question.strip(),
                    "answer": answer.strip(),
                    "order_index": faq.get("order") or position,
                    "is_active": True if is_active is None else bool(is_active),
                },
            )

    async def _read_homepage_by_id(self, session: AsyncSession, homepage_id: int):
        result = await session.execute(
            text(HOMEPAGE_SELECT + " WHERE h.id = :homepage_id"),
            {"homepage_id": homepage_id},
        )
        row = result.fetchone()

        result = await session.execute(
            text(f"""
                SELECT {FAQ_COLUMNS}
                FROM homepage_faqs
                WHERE homepage_id = :homepage_id
                ORDER BY order_index ASC
            """),
            {"homepage_id": homepage_id},
        )
        return row, result.fetchall()

    async def create_faq(
        self,
        language: Optional[str],
        question: Optional[str],
        answer: Optional[str],
        order: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Add one FAQ to the homepage of a language.

        Order defaults to the current maximum order_index + 1.

        Raises:
            BadRequestError: Missing language, question or answer
            NotFoundError: No homepage for the language
        """
        if _is_blank(language):
            raise BadRequestError("Language is required")
        if _is_blank(question):
            raise BadRequestError("Question is required")
        if _is_blank(answer):
            raise BadRequestError("Answer is required")

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text("SELECT id FROM homepage WHERE language = :language"),
                    {"language": language},
                )
                homepage_id = result.scalar_one_or_none()
                if homepage_id is None:
                    raise NotFoundError("Homepage not found for the specified language")

                if not order:
                    result = await session.execute(
                        text("""
                            SELECT COALESCE(MAX(order_index), 0) + 1 AS next_order
                            FROM homepage_faqs
                            WHERE homepage_id = :homepage_id
                        """),
                        {"homepage_id": homepage_id},
                    )
                    order = result.scalar_one()

                result = await session.execute(
                    text(f"""
                        INSERT INTO homepage_faqs (homepage_id, question, answer, order_index, is_active)
                        VALUES (:homepage_id, :question, :answer, :order_index, :is_active)
                        RETURNING {FAQ_COLUMNS}
                    """),
                    {
                        "homepage_id": homepage_id,
                        "question": question.strip(),
                        "answer": answer.strip(),
                        "order_index": order,
                        "is_active": True if is_active is None else is_active,
                    },
                )
                faq = result.fetchone()

        logger.info(f"FAQ {faq.id} created for homepage '{language}'")
        return format_faq(faq)

    async def update_faq(self, faq_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partially update a FAQ.

        Only non-blank question/answer and supplied order/isActive are applied.

        Args:
            faq_id: FAQ primary key
            changes: Body with any of question, answer, order, isActive

        Raises:
            NotFoundError: Unknown id (nothing is written)
            BadRequestError: No updatable field supplied
        """
        assignments = []
        params: Dict[str, Any] = {"faq_id": faq_id}

        question = changes.get("question")
        if not _is_blank(question):
            assignments.append("question = :question")
            params["question"] = question.strip()

        answer = changes.get("answer")
        if not _is_blank(answer):
            assignments.append("answer = :answer")
            params["answer"] = answer.strip()

        if changes.get("order") is not None:
            assignments.append("order_index = :order_index")
            params["order_index"] = changes["order"]

        if changes.get("isActive") is not None:
            assignments.append("is_active = :is_active")
            params["is_active"] = changes["isActive"]

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text("SELECT id FROM homepage_faqs WHERE id = :faq_id"),
                    {"faq_id": faq_id},
                )
                if result.fetchone() is None:
                    raise NotFoundError("FAQ not found")

                if not assignments:
                    raise BadRequestError("No valid fields to update")

                assignments.append("updated_at = CURRENT_TIMESTAMP")
                result = await session.execute(
                    text(f"""
                        UPDATE homepage_faqs
                        SET {", ".join(assignments)}
                        WHERE id = :faq_id
                        RETURNING {FAQ_COLUMNS}
                    """),
                    params,
                )
                faq = result.fetchone()

        logger.info(f"FAQ {faq_id} updated ({', '.join(sorted(set(params) - {'faq_id'}))})")
        return format_faq(faq)

    async def delete_faq(self, faq_id: int) -> Dict[str, bool]:
        """
        Hard-delete a FAQ.

        Raises:
            NotFoundError: Unknown id
        """
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text("DELETE FROM homepage_faqs WHERE id = :faq_id RETURNING id"),
                    {"faq_id": faq_id},
                )
                if result.fetchone() is None:
                    raise NotFoundError("FAQ not found")

        logger.info(f"FAQ {faq_id} deleted")
        return {"deleted": True}
