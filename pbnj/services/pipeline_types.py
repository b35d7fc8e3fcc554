"""Value types and errors shared by the article pipeline and its prompts."""

from dataclasses import dataclass, field
from enum import Enum

MAX_BACKLINKS = 5


class PipelineStage(str, Enum):
    """Stages of the article chain, in execution order."""

    DRAFT = "draft"
    REVISE = "revise"
    BACKLINKS = "backlinks"


class RemixMode(str, Enum):
    GENERATE = "generate"
    REWRITE = "rewrite"


class ArticleGenerationError(Exception):
    """A pipeline stage could not produce text.

    The message is safe to show to a caller; provider detail is kept on
    ``detail`` and ``status_code``.
    """

    def __init__(
        self,
        message: str,
        stage: PipelineStage | None = None,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.detail = detail
        self.status_code = status_code


class PipelineValidationError(ValueError):
    """Request parameters are outside what the pipeline accepts."""

    pass


@dataclass(frozen=True)
class PipelineInput:
    """Parameters for one generation pass."""

    word_count: int = 500
    keywords: tuple[str, ...] = ()
    keywords_to_exclude: tuple[str, ...] = ()
    tone: tuple[str, ...] = ()
    language: str = "English"
    engine: str | None = None
    temperature: float | None = None
    other_instructions: str = ""
    custom_prompt: str = ""
    source_url: str = ""
    source_content: str = ""
    use_source_content: bool = False
    backlinks: tuple[str, ...] = ()


def get_backlinks(pipeline_input: PipelineInput) -> list[str]:
    """Trimmed, non-blank backlinks in order, at most five."""
    cleaned = [link.strip() for link in pipeline_input.backlinks]
    return [link for link in cleaned if link][:MAX_BACKLINKS]


@dataclass
class PipelineResult:
    """Text produced by each stage of one chain run."""

    draft: str
    revised: str
    content: str


@dataclass
class RemixResult:
    """Latest remix output plus every result produced along the way."""

    content: str
    previous_responses: list[str] = field(default_factory=list)
