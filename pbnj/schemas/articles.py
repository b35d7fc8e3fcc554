"""Pydantic schemas for the article endpoints.

Request fields accept both snake_case and the camelCase names the
dashboard sends (wordCount, keywordsToExclude, backlink1..backlink5, ...).

Error responses use the shared shape {"error": str, "code": str, "request_id": str}.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pbnj.services.pipeline_types import (
    MAX_BACKLINKS,
    PipelineInput,
    PipelineResult,
    RemixMode,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_list(value: Any) -> Any:
    """Accept a comma-separated string where a list is expected."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class ArticleInput(CamelModel):
    """Generation parameters shared by every article endpoint."""

    word_count: int = Field(default=500, ge=50, le=5000, description="Target length in words")
    keywords: list[str] = Field(default_factory=list, description="Keywords to use 2-5 times each")
    keywords_to_exclude: list[str] = Field(default_factory=list)
    tone: list[str] = Field(default_factory=list, examples=[["friendly", "informative"]])
    language: str = Field(default="English")
    engine: str | None = Field(
        default=None,
        description="Model name; names starting with claude- go to Anthropic",
        examples=["gpt-4o", "claude-3-7-sonnet-20250219"],
    )
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    other_instructions: str = Field(default="")
    custom_prompt: str = Field(default="", description="Replaces the generated user prompt")
    source_url: str = Field(default="")
    source_content: str = Field(default="")
    use_source_content: bool = Field(default=False)
    backlinks: list[str] = Field(default_factory=list, max_length=MAX_BACKLINKS)
    backlink1: str | None = None
    backlink2: str | None = None
    backlink3: str | None = None
    backlink4: str | None = None
    backlink5: str | None = None

    @field_validator("keywords", "keywords_to_exclude", "tone", mode="before")
    @classmethod
    def split_strings(cls, value: Any) -> Any:
        return _as_list(value)

    def collected_backlinks(self) -> list[str]:
        """backlinks list first, then backlink1..backlink5, blanks dropped."""
        numbered = [
            self.backlink1,
            self.backlink2,
            self.backlink3,
            self.backlink4,
            self.backlink5,
        ]
        links = [link.strip() for link in [*self.backlinks, *numbered] if link and link.strip()]
        return links[:MAX_BACKLINKS]

    def to_pipeline_input(self) -> PipelineInput:
        return PipelineInput(
            word_count=self.word_count,
            keywords=tuple(self.keywords),
            keywords_to_exclude=tuple(self.keywords_to_exclude),
            tone=tuple(self.tone),
            language=self.language,
            engine=self.engine,
            temperature=self.temperature,
            other_instructions=self.other_instructions,
            custom_prompt=self.custom_prompt,
            source_url=self.source_url,
            source_content=self.source_content,
            use_source_content=self.use_source_content,
            backlinks=tuple(self.collected_backlinks()),
        )


class ContentResponse(BaseModel):
    content: str


class PipelineResponse(BaseModel):
    """Text after each stage of the chain; ``content`` is the final article."""

    draft: str
    revised: str
    content: str

    @classmethod
    def from_result(cls, result: PipelineResult) -> "PipelineResponse":
        return cls(draft=result.draft, revised=result.revised, content=result.content)


class RemixRequest(CamelModel):
    mode: RemixMode = Field(default=RemixMode.GENERATE)
    iterations: int = Field(default=1, ge=1)
    input_data: ArticleInput = Field(default_factory=ArticleInput)
    response: str | None = Field(
        default=None, description="Article to rewrite when mode is 'rewrite'"
    )


class RemixResponse(BaseModel):
    content: str
    previous_responses: list[str]


class InsertBacklinksRequest(CamelModel):
    backlink_array: list[str] = Field(..., max_length=MAX_BACKLINKS)
    article_content: str
    engine: str | None = None


class ReplaceLinksRequest(CamelModel):
    response: str = Field(..., description="Model output with url -> {text, sentence} entries")
    original_text: str


class PreviewRequest(BaseModel):
    url: str = Field(..., min_length=1)
    keywords: list[str] = Field(..., min_length=1)
    client: str = Field(..., min_length=1)
    topic: str | None = Field(default=None, description="Client industry; defaults to General Business")
    engine: str | None = None

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keywords(cls, value: Any) -> Any:
        return _as_list(value)


class PreviewResponse(BaseModel):
    title: str
    content: str
