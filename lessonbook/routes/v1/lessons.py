# lessonbook/routes/v1/lessons.py
"""
Lesson catalog routes - API v1

Versioned lesson endpoints under /api/v1/lessons.

Endpoints:
    GET /                  → Filtered, sorted, paginated lesson list
    GET /stats/overview    → Catalog statistics
    GET /{lesson_id}       → Single lesson
    PUT /{lesson_id}       → Administrative field update
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.services import get_catalog_service
from ...core.exceptions import ValidationException
from ...core.ulid_helper import is_valid_ulid
from ...schemas.base_responses import ApiResponse
from ...schemas.lesson import (
    LessonListData,
    LessonQueryParams,
    LessonResponse,
    LessonStats,
    LessonUpdate,
)
from ...services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lessons-v1"])


def require_lesson_id(lesson_id: str) -> str:
    if not is_valid_ulid(lesson_id):
        raise ValidationException("Invalid lesson ID", code="INVALID_ID")
    return lesson_id


def lesson_query_params(
    search: Optional[str] = Query(None),
    topic: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    min_spaces: Optional[str] = Query(None, alias="minSpaces"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
) -> LessonQueryParams:
    """Collect raw query strings; LessonQueryParams owns every rule."""
    raw = {
        "search": search,
        "topic": topic,
        "location": location,
        "sortBy": sort_by,
        "order": order,
        "minPrice": min_price,
        "maxPrice": max_price,
        "minSpaces": min_spaces,
        "page": page,
        "limit": limit,
    }
    return LessonQueryParams.model_validate({k: v for k, v in raw.items() if v is not None})


@router.get(
    "",
    response_model=ApiResponse[LessonListData],
    response_model_exclude_none=True,
)
async def list_lessons(
    params: LessonQueryParams = Depends(lesson_query_params),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[LessonListData]:
    data = await asyncio.to_thread(catalog_service.list_lessons, params)
    return ApiResponse(data=data)


@router.get(
    "/stats/overview",
    response_model=ApiResponse[LessonStats],
    response_model_exclude_none=True,
)
async def lesson_stats(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[LessonStats]:
    data = await asyncio.to_thread(catalog_service.get_stats)
    return ApiResponse(data=data)


@router.get(
    "/{lesson_id}",
    response_model=ApiResponse[LessonResponse],
    response_model_exclude_none=True,
)
async def get_lesson(
    lesson_id: str,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[LessonResponse]:
    require_lesson_id(lesson_id)
    data = await asyncio.to_thread(catalog_service.get_lesson, lesson_id)
    return ApiResponse(data=data)


@router.put(
    "/{lesson_id}",
    response_model=ApiResponse[LessonResponse],
    response_model_exclude_none=True,
)
async def update_lesson(
    lesson_id: str,
    lesson_update: LessonUpdate,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[LessonResponse]:
    """
    Update lesson fields. Only the fields present in the body are written;
    ``space`` is accepted as the legacy name for ``spaces``.
    """
    require_lesson_id(lesson_id)
    data = await asyncio.to_thread(
        catalog_service.update_lesson, lesson_id, lesson_update.to_fields()
    )
    return ApiResponse(data=data, message="Lesson updated successfully")
