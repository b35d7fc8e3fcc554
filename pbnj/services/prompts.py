"""Prompt builders for each article stage.

Each builder returns the ChatMessage list sent to the provider; none of
them talk to the network.
"""

from pbnj.integrations.completion import ChatMessage
from pbnj.services.pipeline_types import PipelineInput

DRAFT_SYSTEM_PROMPT = (
    "You are a copywriter for a blog post writing in the voice of Arianna Huffington"
)

REVISION_SYSTEM_PROMPT = (
    "I want you to act as a very proficient SEO and high-end copy writer that speaks "
    "and writes fluent {language}. Randomly choose one of the following bloggers and "
    "emulate that person's writing style. Here is your list of authors to reference "
    "for all your articles: Arianna Huffington, Neil Patel, Rand Fishkin, Brian Clarke, "
    "Christene Barberich, Pete Cashmore, Stephen Totilo, Peter Rojas, Vani Hari, "
    "Leon Ho, Johnathan Van Ness, and Mitch Ratcliffe."
)

FAMILIAR_READER_PROMPT = (
    "Assume the reader is already somewhat familiar with the keyword as a subject "
    "matter. Do not spend too much time defining or introducing the keyword as a "
    "concept or entity"
)

HUMANIZE_PROMPT = (
    "Rewrite the above content so that it is not detected as AI content by AI "
    "content detectors."
)

REWRITE_SYSTEM_PROMPT = (
    "You are an experienced editor. You rewrite articles so they read naturally, "
    "as if written by a person, while keeping their facts, structure and links."
)

BACKLINK_SYSTEM_PROMPT = (
    "You are an editor who adds hyperlinks to finished articles without changing "
    "their wording more than necessary."
)

PREVIEW_TEMPLATE = """
You are an expert content writer tasked with creating a short, engaging blog post (approx. 300-500 words) for a Private Blog Network (PBN), suitable for a general audience.

**Input Data:**
*   Target URL to Link To: {url}
*   Keywords for Target URL Anchor Text: {keywords} (Use ONE of these)
*   Client Associated with Target URL: {client}
*   Relevant Industry/Topic: {topic}

**Instructions:**

1.  **Determine Article Focus:** Based on the **Relevant Industry/Topic** ({topic}), choose a specific, engaging subject for the article that is *tangentially related*. **Crucially, DO NOT write the article directly about the Keywords ({keywords})**. The article should provide value to someone interested in the {topic}.
2.  **Primary Link Integration:** Seamlessly weave a hyperlink to the **Target URL** ({url}) into the article's content. The anchor text for this link MUST be exactly **ONE** of the provided **Keywords** ({keywords}). Choose the keyword that fits most naturally.
3.  **Organic Link Integration:** Include 1 or 2 additional hyperlinks to *different*, *external*, *authoritative* websites relevant to the article's specific subject. Use descriptive, natural phrases as anchor text. **DO NOT use the Target Keywords ({keywords}) as anchor text for these organic links.**
4.  **Link Count:** The final article must contain exactly 2 or 3 hyperlinks in total (1 primary link + 1 or 2 organic links).
5.  **Tone and Quality:** Write in a clear, informative, and engaging tone. Avoid overly promotional language.
6.  **Output Format:** Respond **ONLY** with a valid JSON object containing the following two keys and nothing else:
    *   "title": (string) A compelling and relevant title for the article (max 70 characters).
    *   "content": (string) The full article content formatted as clean HTML (paragraphs <p>, links <a>, lists <ul>/<ol> if needed).
"""

DEFAULT_PREVIEW_TOPIC = "General Business"


def build_article_prompt(pipeline_input: PipelineInput) -> str:
    """Build the user prompt for a fresh draft."""
    if pipeline_input.custom_prompt.strip():
        return pipeline_input.custom_prompt

    parts = [
        f"Write an article approximately, but not exactly, {pipeline_input.word_count} "
        "words in length"
    ]
    if pipeline_input.keywords:
        parts[0] += (
            ", using the following keywords between 2 - 5 times each: "
            + ", ".join(pipeline_input.keywords)
        )
    parts[0] += "."

    if pipeline_input.keywords_to_exclude:
        parts.append(
            "Do not use any of the following words in the article: "
            + ", ".join(pipeline_input.keywords_to_exclude)
            + "."
        )
    if pipeline_input.tone:
        parts.append(
            "Write the article with the following tone: "
            + ", ".join(pipeline_input.tone)
            + "."
        )
    if pipeline_input.language and pipeline_input.language.lower() != "english":
        parts.append(f"Write the article in {pipeline_input.language}.")

    if pipeline_input.source_url:
        parts.append(f"Base the article on information from {pipeline_input.source_url}.")
    if pipeline_input.use_source_content and pipeline_input.source_content.strip():
        parts.append(
            "Use the following source material for facts, but do not copy it:\n"
            + pipeline_input.source_content.strip()
        )
    if pipeline_input.other_instructions.strip():
        parts.append(pipeline_input.other_instructions.strip())

    return " ".join(parts)


def build_generation_messages(pipeline_input: PipelineInput) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=DRAFT_SYSTEM_PROMPT),
        ChatMessage(role="user", content=build_article_prompt(pipeline_input)),
    ]


def build_revision_messages(
    pipeline_input: PipelineInput, prior_text: str
) -> list[ChatMessage]:
    """Humanizing rewrite: the draft goes back in as the assistant's own turn."""
    messages = [
        ChatMessage(
            role="system",
            content=REVISION_SYSTEM_PROMPT.format(language=pipeline_input.language or "English"),
        ),
        ChatMessage(role="user", content=FAMILIAR_READER_PROMPT),
        ChatMessage(role="user", content=build_article_prompt(pipeline_input)),
        ChatMessage(role="assistant", content=prior_text),
        ChatMessage(role="user", content=HUMANIZE_PROMPT),
    ]
    if pipeline_input.other_instructions.strip():
        messages.append(
            ChatMessage(role="user", content=pipeline_input.other_instructions.strip())
        )
    return messages


def build_rewrite_messages(
    prior_text: str, pipeline_input: PipelineInput
) -> list[ChatMessage]:
    language = pipeline_input.language or "English"
    instruction = (
        f"Rewrite the following article in {language} so that it sounds more human and "
        "less like AI-generated content. Keep every existing link, the headings and "
        "the overall length. Return only the rewritten article.\n\n" + prior_text
    )
    messages = [
        ChatMessage(role="system", content=REWRITE_SYSTEM_PROMPT),
        ChatMessage(role="user", content=instruction),
    ]
    if pipeline_input.other_instructions.strip():
        messages.append(
            ChatMessage(role="user", content=pipeline_input.other_instructions.strip())
        )
    return messages


def build_backlink_messages(backlinks: list[str], text: str) -> list[ChatMessage]:
    url_list = "\n".join(f"- {url}" for url in backlinks)
    instruction = (
        "Add a hyperlink to each of the following URLs into the article below. For "
        "each URL pick a short, contextually relevant phrase that already appears in "
        "the article, outside its first sentence and not already inside an <a> tag, "
        "and mark it as a Markdown link like [phrase](URL). Use each URL exactly once. "
        "Do not change any other wording. Return the complete article.\n\n"
        f"URLs:\n{url_list}\n\nArticle:\n{text}"
    )
    return [
        ChatMessage(role="system", content=BACKLINK_SYSTEM_PROMPT),
        ChatMessage(role="user", content=instruction),
    ]


def build_preview_prompt(
    url: str,
    keywords: list[str],
    client: str,
    topic: str | None = None,
) -> str:
    return PREVIEW_TEMPLATE.format(
        url=url,
        keywords=", ".join(keywords),
        client=client,
        topic=topic or DEFAULT_PREVIEW_TOPIC,
    )
