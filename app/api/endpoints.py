"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Delegating to service layer

Errors raised by the services are rendered by app.api.errors, so the
endpoints themselves contain no try/except.

Routes:
- POST   /api/urls          create a short link
- GET    /api/urls/{code}   link metadata (no click counted)
- DELETE /api/urls/{code}   delete a link (owner only, unless anonymous)
- GET    /api/me/urls       links owned by the caller
- GET    /api/stats         aggregate statistics
- GET    /{code}            redirect to the target URL
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import RedirectResponse

from app.api.dependencies import get_redirect_service, get_requester_id, rate_limit
from app.api.schemas import CreateLinkRequest, LinkResponse, StatsResponse
from app.core.setting import settings
from app.services.redirect_service import RedirectService

router = APIRouter()


@router.post(
    "/api/urls",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a short link with a unique code",
    dependencies=[Depends(rate_limit("shorten"))],
)
async def create_link(
    body: CreateLinkRequest,
    service: RedirectService = Depends(get_redirect_service),
    requester_id: Optional[str] = Depends(get_requester_id),
) -> LinkResponse:
    link = await service.create(
        target_url=body.url,
        candidate_code=body.custom_code,
        owner_id=requester_id,
        title=body.title,
        ttl_hours=body.expires_in_hours,
    )
    return LinkResponse.from_link(link, settings.BASE_URL)


@router.get(
    "/api/urls/{short_code}",
    response_model=LinkResponse,
    summary="Get short URL details",
    dependencies=[Depends(rate_limit("info"))],
)
async def get_link_info(
    short_code: str,
    service: RedirectService = Depends(get_redirect_service),
) -> LinkResponse:
    link = await service.get_info(short_code)
    return LinkResponse.from_link(link, settings.BASE_URL)


@router.delete(
    "/api/urls/{short_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a short URL",
    dependencies=[Depends(rate_limit("shorten"))],
)
async def delete_link(
    short_code: str,
    service: RedirectService = Depends(get_redirect_service),
    requester_id: Optional[str] = Depends(get_requester_id),
) -> Response:
    await service.delete(short_code, requester_id=requester_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/api/me/urls",
    response_model=List[LinkResponse],
    summary="List the caller's short URLs",
    dependencies=[Depends(rate_limit("info"))],
)
async def list_my_links(
    service: RedirectService = Depends(get_redirect_service),
    requester_id: Optional[str] = Depends(get_requester_id),
) -> List[LinkResponse]:
    if requester_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    links = await service.list_owner_links(requester_id)
    return [LinkResponse.from_link(link, settings.BASE_URL) for link in links]


@router.get(
    "/api/stats",
    response_model=StatsResponse,
    summary="Aggregate statistics",
    dependencies=[Depends(rate_limit("info"))],
)
async def get_stats(
    service: RedirectService = Depends(get_redirect_service),
) -> StatsResponse:
    stats = await service.get_stats()
    return StatsResponse(
        total_urls=stats.total_urls,
        total_clicks=stats.total_clicks,
        avg_clicks=stats.avg_clicks,
    )


@router.get(
    "/{short_code}",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the target URL",
    dependencies=[Depends(rate_limit("redirect"))],
)
async def redirect_to_url(
    short_code: str,
    service: RedirectService = Depends(get_redirect_service),
) -> RedirectResponse:
    """
    Redirect to the target URL for a given short code.

    The click is counted in the background after the lookup; the response
    does not wait for it.
    """
    target_url = await service.resolve(short_code)
    return RedirectResponse(url=target_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
