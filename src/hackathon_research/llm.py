"""Completion clients with structured output and prompt templates.

Two interchangeable providers sit behind the same ``complete`` call: the
Anthropic client (primary) and an OpenAI-compatible client (alternate, e.g.
OpenRouter). Callers never see which one is configured.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol, TypeVar

import anthropic
import openai
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError, SchemaError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class CompletionGateway(Protocol):
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T] | None = None,
    ) -> str | T: ...


def _with_schema(system_prompt: str, response_model: type[BaseModel]) -> str:
    schema = response_model.model_json_schema()
    return (
        system_prompt
        + "\n\nYou MUST respond with valid JSON matching this schema:\n"
        f"```json\n{json.dumps(schema, indent=2)}\n```\n"
        "Return ONLY the JSON object, no other text."
    )


def parse_structured(text: str, response_model: type[T]) -> T:
    """Parse model output into ``response_model`` or raise SchemaError."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        # Remove the opening fence line and any closing fence
        lines = [ln for ln in lines[1:] if not ln.strip() == "```"]
        cleaned = "\n".join(lines).strip()
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise SchemaError("No JSON object in completion", raw=text)
        cleaned = cleaned[start : end + 1]
    try:
        return response_model.model_validate_json(cleaned)
    except PydanticValidationError as e:
        raise SchemaError(f"{response_model.__name__}: {e.error_count()} validation error(s)", raw=text) from e


_retry_provider_errors = retry(
    retry=retry_if_exception_type(ProviderError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(min=1, max=10),
    reraise=True,
)


class ClaudeLLM:
    """Anthropic Claude client with structured output support."""

    def __init__(self, config: ResearchConfig) -> None:
        self._config = config
        self._client = anthropic.Anthropic(
            api_key=config.anthropic_api_key,
            timeout=config.llm_timeout_seconds,
        )

    @property
    def model(self) -> str:
        return self._config.llm_model

    @_retry_provider_errors
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T] | None = None,
    ) -> str | T:
        """Call Claude and optionally parse the response into a Pydantic model."""
        if response_model is not None:
            system_prompt = _with_schema(system_prompt, response_model)

        try:
            message = self._client.messages.create(
                model=self._config.llm_model,
                max_tokens=self._config.llm_max_tokens,
                temperature=self._config.llm_temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic call failed: {e}", provider="anthropic") from e

        if not message.content:
            raise SchemaError("Empty completion from Anthropic")
        text = message.content[0].text

        if response_model is not None:
            return parse_structured(text, response_model)
        return text


class OpenAICompatibleLLM:
    """Chat-completions client for OpenAI or any OpenAI-compatible endpoint."""

    def __init__(self, config: ResearchConfig) -> None:
        self._config = config
        self._client = openai.OpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url or None,
            timeout=config.llm_timeout_seconds,
            default_headers={
                "HTTP-Referer": config.openai_http_referer,
                "X-Title": config.openai_app_name,
            },
        )

    @property
    def model(self) -> str:
        return self._config.openai_model

    @_retry_provider_errors
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T] | None = None,
    ) -> str | T:
        """Call the chat-completions API, JSON-constrained when a model is given."""
        kwargs: dict = {}
        if response_model is not None:
            system_prompt = _with_schema(system_prompt, response_model)
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = self._client.chat.completions.create(
                model=self._config.openai_model,
                max_tokens=self._config.llm_max_tokens,
                temperature=self._config.llm_temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        except openai.APIError as e:
            raise ProviderError(f"OpenAI-compatible call failed: {e}", provider="openai") from e

        if not completion.choices or not completion.choices[0].message.content:
            raise SchemaError("Empty completion from OpenAI-compatible provider")
        text = completion.choices[0].message.content

        if response_model is not None:
            return parse_structured(text, response_model)
        return text


def create_llm(config: ResearchConfig) -> CompletionGateway:
    """Build the configured completion client."""
    if config.use_openai_compatible:
        if not config.openai_api_key:
            logger.warning("llm_provider=openai but no openai_api_key is set")
        llm: CompletionGateway = OpenAICompatibleLLM(config)
    else:
        llm = ClaudeLLM(config)
    logger.info("LLM provider: %s | model: %s", config.llm_provider, llm.model)
    return llm


# ── Prompt templates ─────────────────────────────────────────────────────────

PLANNER_PROMPT = """\
You are a research planner investigating what happened to hackathon projects after \
the event. Create strategic, short web search queries (max 60 characters each), in \
priority order:
1. Most likely to find funding information
2. Most likely to find startup/company formation
3. Most likely to find user growth/traction
4. Most likely to find founder updates
5. General post-hackathon news

Queries learned from similar projects are examples of what worked before. Adapt them \
to this project; do not copy them blindly."""

EVALUATOR_PROMPT = """\
You are a quality evaluator for web search results about a hackathon project. Rate \
how relevant the results are for learning what happened to the project after the \
hackathon (funding, company formation, users):
- 80-100: Excellent, highly relevant results
- 60-79: Good, mostly relevant
- 40-59: Moderate, some relevant results
- 20-39: Poor, few relevant results
- 0-19: Very poor, no relevant results

Set should_refine to true if the quality is below 60 and a better query is likely \
to help."""

REFINER_PROMPT = """\
You are a search query optimizer. The previous query did not return good results. \
Generate a NEW, more specific query (max 60 characters) that targets funding, \
startup status, or user growth for this project, using better keywords based on \
the project details."""

COORDINATOR_PROMPT = """\
You are a research coordinator deciding the next step of an investigation into a \
hackathon project. Choose one action:
- "continue": proceed with the next query in the plan (more queries remain and results are decent)
- "refine": the current line of inquiry needs refinement (results are poor)
- "deep_dive": something interesting was found (funding or startup signals); investigate deeper
- "complete": enough information has been gathered"""

ANALYST_PROMPT = """\
You are a VC analyst researching the post-hackathon journey of a project. Using only \
the findings provided, determine funding, startup formation, user traction and \
activity, and score the project 0-100 on market opportunity, team quality, \
innovation and execution (how far they got). The overall score is the average of \
the four.

If no evidence is found, return false/null for tracking fields but still provide \
scores and reasoning."""

SUCCESS_ANALYST_PROMPT = """\
You are a VC analyst providing detailed research on a successful hackathon project. \
Be thorough, specific and factual: include concrete facts, numbers and dates when \
available.

Besides funding, startup, user and activity fields, provide the funding round (e.g. \
Pre-seed, Seed, Series A), the funding date (YYYY-MM if known), detailed \
achievements, a 3-5 sentence explanation of WHY the project succeeded, key metrics, \
a brief post-hackathon timeline, a 2-3 sentence summary and 0-100 scores."""

VALIDATOR_PROMPT = """\
You are a validator. Determine whether the text is about a SPECIFIC hackathon \
project, not a general article, list of winners, or blog post."""

MATCH_PROMPT = """\
You are a Senior Investment Partner screening a hackathon project against your \
fund's investment thesis.

1. Verify alignment: check whether the project matches the fund's sectors and \
geography. If not, the score should be low.
2. Analyze quality: look for signals of quality (hackathon winner, active project, \
founders).
3. Be critical: most hackathon projects are not investable. Only give high scores \
(>80) to exceptional matches.
4. Be evidence-based: cite specific parts of the description or research summary."""
