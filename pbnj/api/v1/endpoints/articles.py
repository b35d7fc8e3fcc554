"""Article generation endpoints.

- POST /api/v1/articles/generate - Draft stage only
- POST /api/v1/articles/pipeline - Draft, revise and backlinks in one call
- POST /api/v1/articles/remix - Rerun the chain or rewrite an article N times
- POST /api/v1/articles/insert-backlinks - Weave backlinks into an article
- POST /api/v1/articles/replace-links - Apply url -> {text, sentence} suggestions
- POST /api/v1/articles/preview - Short PBN article preview as {title, content}

Error Logging Requirements:
- Return structured error responses: {"error": str, "code": str, "request_id": str}
- Log 4xx errors at WARNING, 5xx at ERROR
- Upstream model failures are 502 with a generic message; provider detail is logged only
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from pbnj.api.deps import get_article_pipeline, get_request_id
from pbnj.core.logging import get_logger
from pbnj.schemas.articles import (
    ArticleInput,
    ContentResponse,
    InsertBacklinksRequest,
    PipelineResponse,
    PreviewRequest,
    PreviewResponse,
    RemixRequest,
    RemixResponse,
    ReplaceLinksRequest,
)
from pbnj.services.article_pipeline import ArticlePipeline
from pbnj.services.link_replacer import bulk_replace_links
from pbnj.services.pipeline_types import (
    ArticleGenerationError,
    PipelineStage,
    PipelineValidationError,
)

logger = get_logger(__name__)

router = APIRouter()


def _upstream_error(request: Request, exc: ArticleGenerationError) -> JSONResponse:
    request_id = get_request_id(request)
    logger.error(
        "Article generation failed",
        extra={
            "request_id": request_id,
            "stage": exc.stage.value if exc.stage else None,
            "detail": exc.detail,
            "upstream_status": exc.status_code,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": str(exc), "code": "UPSTREAM_ERROR", "request_id": request_id},
    )


def _validation_error(request: Request, exc: PipelineValidationError) -> JSONResponse:
    request_id = get_request_id(request)
    logger.warning(
        "Article request rejected",
        extra={"request_id": request_id, "error": str(exc)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": str(exc), "code": "VALIDATION_ERROR", "request_id": request_id},
    )


@router.post(
    "/generate",
    response_model=ContentResponse,
    responses={502: {"description": "Language model call failed"}},
)
async def generate_article(
    request: Request,
    data: ArticleInput,
    pipeline: ArticlePipeline = Depends(get_article_pipeline),
) -> ContentResponse | JSONResponse:
    try:
        content = await pipeline.generate_article(data.to_pipeline_input())
    except ArticleGenerationError as e:
        return _upstream_error(request, e)
    return ContentResponse(content=content)


@router.post("/pipeline", response_model=PipelineResponse)
async def run_pipeline(
    request: Request,
    data: ArticleInput,
    pipeline: ArticlePipeline = Depends(get_article_pipeline),
) -> PipelineResponse | JSONResponse:
    """Run draft -> revise -> backlinks and return every stage's text."""
    request_id = get_request_id(request)

    def on_stage(stage: PipelineStage, active: bool) -> None:
        logger.debug(
            "Pipeline stage " + ("started" if active else "finished"),
            extra={"request_id": request_id, "stage": stage.value},
        )

    try:
        result = await pipeline.run(data.to_pipeline_input(), on_stage=on_stage)
    except ArticleGenerationError as e:
        return _upstream_error(request, e)
    return PipelineResponse.from_result(result)


@router.post("/remix", response_model=RemixResponse)
async def remix_article(
    request: Request,
    data: RemixRequest,
    pipeline: ArticlePipeline = Depends(get_article_pipeline),
) -> RemixResponse | JSONResponse:
    try:
        result = await pipeline.remix(
            data.input_data.to_pipeline_input(),
            iterations=data.iterations,
            mode=data.mode,
            previous_response=data.response,
        )
    except PipelineValidationError as e:
        return _validation_error(request, e)
    except ArticleGenerationError as e:
        return _upstream_error(request, e)
    return RemixResponse(content=result.content, previous_responses=result.previous_responses)


@router.post("/insert-backlinks", response_model=ContentResponse)
async def insert_backlinks(
    request: Request,
    data: InsertBacklinksRequest,
    pipeline: ArticlePipeline = Depends(get_article_pipeline),
) -> ContentResponse | JSONResponse:
    try:
        content = await pipeline.insert_backlinks(
            data.backlink_array, data.article_content, engine=data.engine
        )
    except ArticleGenerationError as e:
        return _upstream_error(request, e)
    return ContentResponse(content=content)


@router.post("/replace-links", response_model=ContentResponse)
async def replace_links(data: ReplaceLinksRequest) -> ContentResponse:
    """Deterministic link insertion; no model call."""
    return ContentResponse(content=bulk_replace_links(data.response, data.original_text))


@router.post("/preview", response_model=PreviewResponse)
async def preview_article(
    request: Request,
    data: PreviewRequest,
    pipeline: ArticlePipeline = Depends(get_article_pipeline),
) -> PreviewResponse | JSONResponse:
    try:
        title, content = await pipeline.generate_preview(
            data.url, data.keywords, data.client, topic=data.topic, engine=data.engine
        )
    except ArticleGenerationError as e:
        return _upstream_error(request, e)
    return PreviewResponse(title=title, content=content)
