"""PBN publishing endpoints.

- POST /api/v1/pbn/posts - Publish one article to a random active site
- POST /api/v1/pbn/posts/bulk - Publish a batch, rotating sites per client

Error Logging Requirements:
- Return structured error responses: {"error": str, "code": str, "request_id": str}
- Log 4xx errors at WARNING, 5xx at ERROR
"""

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from pbnj.api.deps import get_pbn_publisher, get_request_id
from pbnj.core.logging import get_logger
from pbnj.schemas.pbn import BulkPostRequest, BulkPostResponse, PostRequest
from pbnj.services.link_replacer import format_article_html
from pbnj.services.pbn_publishing import (
    ArticleSubmission,
    DuplicateContentError,
    NoActiveSitesError,
    PBNPublisher,
    WordPressPostError,
)
from pbnj.services.pipeline_types import PipelineValidationError

logger = get_logger(__name__)

router = APIRouter()


def _error_response(
    request: Request, status_code: int, error: str, code: str, **extra: Any
) -> JSONResponse:
    request_id = get_request_id(request)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "PBN request failed",
        extra={"request_id": request_id, "status_code": status_code, "error": error},
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "code": code, "request_id": request_id, **extra},
    )


@router.post(
    "/posts",
    status_code=status.HTTP_201_CREATED,
    response_model=None,
    responses={
        404: {"description": "No active PBN site"},
        409: {"description": "Content already published"},
        502: {"description": "WordPress rejected the post"},
    },
)
async def create_post(
    request: Request,
    data: PostRequest,
    publisher: PBNPublisher = Depends(get_pbn_publisher),
) -> dict[str, Any] | JSONResponse:
    """Publish one article and return the WordPress post object."""
    content = format_article_html(data.content) if data.format_content else data.content
    try:
        return await publisher.publish(
            data.title,
            content,
            user_token=data.user_token,
            categories=data.categories or None,
            client_name=data.client_name,
        )
    except NoActiveSitesError as e:
        return _error_response(request, status.HTTP_404_NOT_FOUND, str(e), "NOT_FOUND")
    except DuplicateContentError as e:
        return _error_response(
            request,
            status.HTTP_409_CONFLICT,
            str(e),
            "DUPLICATE_CONTENT",
            existing_url=e.existing_url,
        )
    except WordPressPostError as e:
        return _error_response(request, status.HTTP_502_BAD_GATEWAY, str(e), "UPSTREAM_ERROR")


@router.post("/posts/bulk", response_model=BulkPostResponse)
async def create_posts_bulk(
    request: Request,
    data: BulkPostRequest,
    publisher: PBNPublisher = Depends(get_pbn_publisher),
) -> BulkPostResponse | JSONResponse:
    try:
        result = await publisher.bulk_publish(
            [ArticleSubmission(title=a.title, content=a.content) for a in data.articles],
            user_token=data.user_token,
            client_name=data.client_name,
            category=data.category,
        )
    except PipelineValidationError as e:
        return _error_response(request, status.HTTP_400_BAD_REQUEST, str(e), "VALIDATION_ERROR")
    except NoActiveSitesError as e:
        return _error_response(request, status.HTTP_404_NOT_FOUND, str(e), "NOT_FOUND")
    return BulkPostResponse.from_result(result)
