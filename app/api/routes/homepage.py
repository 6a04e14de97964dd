"""
Homepage Content API Endpoints

GET    /api/homepage/{language}    - Homepage content with active FAQs
POST   /api/homepage/content       - Create or update homepage content
POST   /api/homepage/faqs          - Add a FAQ
PUT    /api/homepage/faqs/{faq_id} - Partially update a FAQ
DELETE /api/homepage/faqs/{faq_id} - Delete a FAQ
"""
from typing import Dict, Any, List, Optional
from fastapi import APIRouter, Body, Depends, Path, Response, status
from pydantic import BaseModel, Field

from app.api.deps import get_homepage_service
from app.errors import APIError, server_error
from app.services.homepage_service import HomepageService

router = APIRouter(prefix="/api/homepage", tags=["homepage"])


# Pydantic models for request validation
# Fields are optional here; required-field checks return a full error list from the service


class HeroSection(BaseModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    background_image: Optional[str] = Field(None, alias="backgroundImage")
    cta_text: Optional[str] = Field(None, alias="ctaText")
    cta_link: Optional[str] = Field(None, alias="ctaLink")


class AboutSection(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    features: Optional[List[Any]] = None


class ContactSection(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    hours: Optional[str] = None
    description: Optional[str] = None
    support_email: Optional[str] = Field(None, alias="supportEmail")
    sales_email: Optional[str] = Field(None, alias="salesEmail")
    social_links: Optional[Dict[str, Any]] = Field(None, alias="socialLinks")


class FaqItem(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


class HomepageContentRequest(BaseModel):
    """Full homepage content; faqs replaces the FAQ set only when present"""
    language: Optional[str] = None
    hero: Optional[HeroSection] = None
    about: Optional[AboutSection] = None
    contact: Optional[ContactSection] = None
    faqs: Optional[List[FaqItem]] = None


class FaqCreateRequest(BaseModel):
    language: Optional[str] = None
    question: Optional[str] = None
    answer: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


class FaqUpdateRequest(BaseModel):
    question: Optional[str] = None
    answer: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


# API Endpoints


@router.get("/{language}")
async def get_homepage(
    language: str = Path(..., description="Language code, e.g. en"),
    service: HomepageService = Depends(get_homepage_service),
) -> Dict[str, Any]:
    """
    Get homepage content by language.

    Raises:
        404: No active homepage for the language
    """
    try:
        return {"success": True, "data": await service.get_homepage(language)}
    except APIError:
        raise
    except Exception as e:
        raise server_error(f"getting homepage '{language}'", e)


@router.post("/content")
async def upsert_homepage_content(
    body: HomepageContentRequest,
    response: Response,
    service: HomepageService = Depends(get_homepage_service),
) -> Dict[str, Any]:
    """
    Create or update homepage content for a language.

    Returns 201 when the homepage was created, 200 when an existing one was
    updated (its version is incremented).

    Raises:
        400: Validation failed, with validationErrors listing every field
    """
    try:
        data, created = await service.upsert_content(body.model_dump(by_alias=True))
    except APIError:
        raise
    except Exception as e:
        raise server_error("saving homepage content", e)

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {"success": True, "data": data}


@router.post("/faqs", status_code=status.HTTP_201_CREATED)
async def create_faq(
    body: FaqCreateRequest,
    service: HomepageService = Depends(get_homepage_service),
) -> Dict[str, Any]:
    """
    Add a FAQ to the homepage of a language.

    Raises:
        400: Missing language, question or answer
        404: No homepage for the language
    """
    try:
        faq = await service.create_faq(
            language=body.language,
            question=body.question,
            answer=body.answer,
            order=body.order,
            is_active=body.is_active,
        )
        return {"success": True, "data": faq}
    except APIError:
        raise
    except Exception as e:
        raise server_error("creating FAQ", e)


@router.put("/faqs/{faq_id}")
async def update_faq(
    faq_id: int = Path(..., ge=1, description="FAQ id"),
    body: Optional[FaqUpdateRequest] = Body(None),
    service: HomepageService = Depends(get_homepage_service),
) -> Dict[str, Any]:
    """
    Partially update a FAQ.

    Raises:
        400: No valid fields to update
        404: FAQ not found
    """
    changes = body.model_dump(by_alias=True) if body else {}
    try:
        return {"success": True, "data": await service.update_faq(faq_id, changes)}
    except APIError:
        raise
    except Exception as e:
        raise server_error(f"updating FAQ {faq_id}", e)


@router.delete("/faqs/{faq_id}")
async def delete_faq(
    faq_id: int = Path(..., ge=1, description="FAQ id"),
    service: HomepageService = Depends(get_homepage_service),
) -> Dict[str, Any]:
    """
    Delete a FAQ.

    Raises:
        404: FAQ not found
    """
    try:
        return {"success": True, "data": await service.delete_faq(faq_id)}
    except APIError:
        raise
    except Exception as e:
        raise server_error(f"deleting FAQ {faq_id}", e)
