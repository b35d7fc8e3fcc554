"""Article generation pipeline: draft -> revise -> backlinks.

Stages run strictly one after another; each stage's text feeds the next and
the first failing stage aborts the chain with ArticleGenerationError.

Progress is reported through an optional ``on_stage(stage, active)``
callback, called with ``active=True`` before a stage starts and
``active=False`` once it has finished (successfully or not).
"""

import time
from collections.abc import Callable

from pbnj.core.config import Settings
from pbnj.core.logging import get_logger, pipeline_logger
from pbnj.integrations.completion import ChatMessage, ProviderNotConfiguredError
from pbnj.integrations.providers import CompletionProviders
from pbnj.services.link_replacer import markdown_links_to_anchors
from pbnj.services.pipeline_types import (
    ArticleGenerationError,
    PipelineInput,
    PipelineResult,
    PipelineStage,
    PipelineValidationError,
    RemixMode,
    RemixResult,
    get_backlinks,
)
from pbnj.services.prompts import (
    build_backlink_messages,
    build_generation_messages,
    build_preview_prompt,
    build_revision_messages,
    build_rewrite_messages,
)
from pbnj.services.response_parser import ArticleParseError, parse_title_and_content
from pbnj.utils.token_budget import count_tokens, trim_messages

logger = get_logger(__name__)

StageCallback = Callable[[PipelineStage, bool], None]

GENERIC_FAILURE = "Failed to fetch response from the language model."


class ArticlePipeline:
    """Runs article stages against the configured completion providers."""

    def __init__(self, providers: CompletionProviders, settings: Settings) -> None:
        self._providers = providers
        self._settings = settings

    def _engine(self, pipeline_input: PipelineInput | None = None) -> str:
        if pipeline_input is not None and pipeline_input.engine:
            return pipeline_input.engine
        return self._settings.default_engine

    def _temperature(self, pipeline_input: PipelineInput | None = None) -> float:
        if pipeline_input is not None and pipeline_input.temperature is not None:
            return pipeline_input.temperature
        return self._settings.pipeline_temperature

    async def _complete(
        self,
        stage: PipelineStage,
        messages: list[ChatMessage],
        engine: str,
        temperature: float,
    ) -> str:
        budget = self._settings.prompt_token_budget
        total = sum(count_tokens(message.content) for message in messages)
        if total > budget:
            pipeline_logger.prompt_trimmed(stage.value, total, budget)
            messages = trim_messages(messages, budget)

        try:
            provider = self._providers.for_engine(engine)
        except ProviderNotConfiguredError as e:
            pipeline_logger.stage_failed(stage.value, engine, str(e))
            raise ArticleGenerationError(GENERIC_FAILURE, stage=stage, detail=str(e)) from e

        start_time = time.monotonic()
        result = await provider.complete(messages, temperature=temperature)
        if not result.success or not result.text:
            error = result.error or "Empty completion"
            pipeline_logger.stage_failed(stage.value, engine, error)
            raise ArticleGenerationError(
                GENERIC_FAILURE,
                stage=stage,
                detail=error,
                status_code=result.status_code,
            )

        pipeline_logger.stage_complete(
            stage.value,
            engine,
            (time.monotonic() - start_time) * 1000,
            len(result.text),
        )
        return result.text

    async def generate_article(self, pipeline_input: PipelineInput) -> str:
        """Draft a fresh article and return the raw completion text."""
        engine = self._engine(pipeline_input)
        pipeline_logger.stage_start(PipelineStage.DRAFT.value, engine)
        return await self._complete(
            PipelineStage.DRAFT,
            build_generation_messages(pipeline_input),
            engine,
            self._temperature(pipeline_input),
        )

    async def revise_article(self, pipeline_input: PipelineInput, prior_text: str) -> str:
        """Rewrite a draft in a more human voice; newlines become <br>."""
        engine = self._engine(pipeline_input)
        pipeline_logger.stage_start(PipelineStage.REVISE.value, engine)
        text = await self._complete(
            PipelineStage.REVISE,
            build_revision_messages(pipeline_input, prior_text),
            engine,
            self._temperature(pipeline_input),
        )
        return text.replace("\n", "<br>")

    async def rewrite_article(self, prior_text: str, pipeline_input: PipelineInput) -> str:
        """Rewrite an existing article for a more human tone."""
        engine = self._engine(pipeline_input)
        pipeline_logger.stage_start(PipelineStage.REVISE.value, engine)
        return await self._complete(
            PipelineStage.REVISE,
            build_rewrite_messages(prior_text, pipeline_input),
            engine,
            self._temperature(pipeline_input),
        )

    async def insert_backlinks(
        self, backlinks: list[str], text: str, engine: str | None = None
    ) -> str:
        """Weave backlinks into text as anchors.

        Returns ``text`` unchanged when no non-blank backlink is given.
        Only links to the supplied URLs survive; anything else the model
        invents is unwrapped to plain text.
        """
        urls = [link.strip() for link in backlinks if link and link.strip()]
        if not urls:
            return text

        engine = engine or self._settings.default_engine
        pipeline_logger.stage_start(PipelineStage.BACKLINKS.value, engine)
        linked = await self._complete(
            PipelineStage.BACKLINKS,
            build_backlink_messages(urls, text),
            engine,
            self._settings.pipeline_temperature,
        )
        return markdown_links_to_anchors(linked, allowed_urls=urls)

    async def run(
        self,
        pipeline_input: PipelineInput,
        on_stage: StageCallback | None = None,
    ) -> PipelineResult:
        """Run draft, revise and backlinks in order."""

        def notify(stage: PipelineStage, active: bool) -> None:
            if on_stage is not None:
                on_stage(stage, active)

        notify(PipelineStage.DRAFT, True)
        try:
            draft = await self.generate_article(pipeline_input)
        finally:
            notify(PipelineStage.DRAFT, False)

        notify(PipelineStage.REVISE, True)
        try:
            revised = await self.revise_article(pipeline_input, draft)
        finally:
            notify(PipelineStage.REVISE, False)

        notify(PipelineStage.BACKLINKS, True)
        try:
            content = await self.insert_backlinks(
                get_backlinks(pipeline_input), revised, engine=self._engine(pipeline_input)
            )
        finally:
            notify(PipelineStage.BACKLINKS, False)

        return PipelineResult(draft=draft, revised=revised, content=content)

    async def remix(
        self,
        pipeline_input: PipelineInput,
        iterations: int = 1,
        mode: RemixMode | str = RemixMode.GENERATE,
        previous_response: str | None = None,
        on_stage: StageCallback | None = None,
    ) -> RemixResult:
        """Produce ``iterations`` new versions, one after another.

        ``generate`` reruns the whole chain each time; ``rewrite`` rewrites
        the previous response, each pass starting from the last output.

        Raises:
            PipelineValidationError: For an out-of-range iteration count or
                a rewrite without a previous response.
        """
        mode = RemixMode(mode)
        limit = self._settings.remix_max_iterations
        if not 1 <= iterations <= limit:
            raise PipelineValidationError(f"iterations must be between 1 and {limit}")
        if mode == RemixMode.REWRITE and not (previous_response or "").strip():
            raise PipelineValidationError("rewrite mode requires a previous response")

        responses: list[str] = []
        current = previous_response or ""
        for iteration in range(1, iterations + 1):
            logger.info(
                "Remix iteration",
                extra={"iteration": iteration, "iterations": iterations, "mode": mode.value},
            )
            if mode == RemixMode.GENERATE:
                current = (await self.run(pipeline_input, on_stage=on_stage)).content
            else:
                if on_stage is not None:
                    on_stage(PipelineStage.REVISE, True)
                try:
                    current = await self.rewrite_article(current, pipeline_input)
                finally:
                    if on_stage is not None:
                        on_stage(PipelineStage.REVISE, False)
            responses.append(current)

        return RemixResult(content=current, previous_responses=responses)

    async def generate_preview(
        self,
        url: str,
        keywords: list[str],
        client: str,
        topic: str | None = None,
        engine: str | None = None,
    ) -> tuple[str, str]:
        """Generate a short PBN article linking to ``url``; returns (title, content)."""
        prompt = build_preview_prompt(url, keywords, client, topic)
        preview_input = PipelineInput(
            word_count=400,
            engine=engine or self._settings.claude_model,
            temperature=0.7,
            custom_prompt=prompt,
        )
        raw = await self.generate_article(preview_input)
        try:
            return parse_title_and_content(raw)
        except ArticleParseError as e:
            logger.error(
                "Could not parse article preview",
                extra={"error": str(e), "response_preview": raw[:500]},
            )
            raise ArticleGenerationError(
                "Could not parse the generated preview.",
                stage=PipelineStage.DRAFT,
                detail=str(e),
            ) from e
