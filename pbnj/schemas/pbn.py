"""Pydantic schemas for the PBN publishing endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pbnj.services.pbn_publishing import BulkPublishResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostRequest(CamelModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    user_token: str | None = None
    categories: list[int] = Field(default_factory=list, description="WordPress category ids")
    client_name: str | None = None
    format_content: bool = Field(
        default=False,
        description="Render **bold**, Markdown links and newlines as HTML before posting",
    )


class ArticleIn(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class BulkPostRequest(CamelModel):
    # Upper bound is enforced by the publisher from settings
    articles: list[ArticleIn]
    user_token: str | None = None
    client_name: str = Field(..., min_length=1)
    category: str | None = None


class SuccessfulPost(BaseModel):
    title: str
    link: str
    site_id: int
    site_domain: str


class FailedPost(BaseModel):
    title: str
    error: str
    existing_url: str | None = None


class BulkPostResponse(BaseModel):
    success_count: int
    failed_count: int
    successful: list[SuccessfulPost]
    failed: list[FailedPost]
    links: list[str]

    @classmethod
    def from_result(cls, result: BulkPublishResult) -> "BulkPostResponse":
        return cls(
            success_count=result.success_count,
            failed_count=result.failed_count,
            successful=[SuccessfulPost(**vars(s)) for s in result.successful],
            failed=[FailedPost(**vars(f)) for f in result.failed],
            links=result.links,
        )
