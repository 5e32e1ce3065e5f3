"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Error handling and HTTP responses
- Delegating to service layer

Rate limiting is applied to every request by RateLimitMiddleware, not here.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.api.schemas import CreateUrlRequest, StatsResponse, UpdateUrlRequest, UrlResponse
from shortener.core.exceptions import (
    CodeAlreadyExists,
    DatabaseError,
    GenerationExhausted,
    InvalidURLError,
    ShortCodeExpiredError,
    ShortCodeNotFoundError,
)
from shortener.core.rate_limit import key_func
from shortener.core.setting import settings
from shortener.core.validators import sanitize_short_code
from shortener.db.session import get_session
from shortener.services.redirect_service import RedirectService
from shortener.services.stats_service import StatsService
from shortener.services.url_service import URLShorteningService

router = APIRouter()


def _require_valid_code(short_code: str) -> str:
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{short_code}'. Short codes must contain only alphanumeric characters."
        )
    return sanitized_code


@router.post(
    "/api/urls",
    response_model=UrlResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a shortened version with a unique code"
)
async def create_short_url(
    request: Request,
    body: CreateUrlRequest,
    session: AsyncSession = Depends(get_session)
) -> UrlResponse:
    """
    Create a new short URL from a long URL.

    Raises:
        HTTPException 400: Invalid URL or custom code format
        HTTPException 409: Custom code already in use
        HTTPException 503: No unique code could be generated
    """
    custom_code = None
    if body.custom_short_code is not None and body.custom_short_code.strip():
        custom_code = _require_valid_code(body.custom_short_code)

    url_service = URLShorteningService(session)
    try:
        mapping = await url_service.create_short_url(
            body.long_url,
            custom_code=custom_code,
            expires_at=body.expiration_utc,
            owner_ip=key_func(request),
        )
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CodeAlreadyExists as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except GenerationExhausted as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except DatabaseError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return UrlResponse.from_mapping(mapping)


@router.get(
    "/api/urls",
    response_model=list[UrlResponse],
    summary="List URL mappings",
    description="Returns mappings ordered newest first"
)
async def list_urls(
    skip: int = Query(0, ge=0),
    take: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session)
) -> list[UrlResponse]:
    mappings = await URLShorteningService(session).list_urls(skip=skip, take=take)
    return [UrlResponse.from_mapping(m) for m in mappings]


@router.get("/api/urls/{mapping_id}", response_model=UrlResponse, summary="Get a URL mapping")
async def get_url(
    mapping_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
) -> UrlResponse:
    mapping = await URLShorteningService(session).get_by_id(mapping_id)
    if mapping is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL mapping not found")
    return UrlResponse.from_mapping(mapping)


@router.put("/api/urls/{mapping_id}", response_model=UrlResponse, summary="Update a URL mapping")
async def update_url(
    mapping_id: uuid.UUID,
    body: UpdateUrlRequest,
    session: AsyncSession = Depends(get_session)
) -> UrlResponse:
    """
    Change the long URL and/or expiration of a mapping. The short code is
    immutable. Sending "expiration_utc": null clears the expiration.
    """
    changes = {}
    if "expiration_utc" in body.model_fields_set:
        changes["expires_at"] = body.expiration_utc

    try:
        mapping = await URLShorteningService(session).update_url(
            mapping_id, long_url=body.long_url, **changes
        )
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if mapping is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL mapping not found")
    return UrlResponse.from_mapping(mapping)


@router.delete(
    "/api/urls/{mapping_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a URL mapping"
)
async def delete_url(
    mapping_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
) -> Response:
    if not await URLShorteningService(session).delete_url(mapping_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL mapping not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/r/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the original long URL"
)
async def redirect_to_url(
    short_code: str,
    session: AsyncSession = Depends(get_session)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not found
        HTTPException 410: If the short URL has expired
    """
    short_code = _require_valid_code(short_code)

    try:
        long_url = await RedirectService(session).resolve(short_code)
    except ShortCodeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ShortCodeExpiredError as e:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=str(e))

    return RedirectResponse(
        url=long_url,
        status_code=status.HTTP_302_FOUND
    )


@router.get(
    "/stats/{short_code}",
    response_model=StatsResponse,
    summary="Get URL statistics",
    description="Returns statistics for a short URL including hit count and creation date"
)
async def get_url_stats(
    short_code: str,
    session: AsyncSession = Depends(get_session)
) -> StatsResponse:
    short_code = _require_valid_code(short_code)

    stats = await StatsService(session).get_stats(short_code)

    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found"
        )

    return StatsResponse(**stats)
