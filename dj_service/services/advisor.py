"""
Session-Parameter Advisor

Asks an LLM (via LiteLLM) to tune one playlist session: a vibe description,
scoring weights, and genres to exclude. Output is parsed and validated with
pydantic; anything malformed collapses to None and the DJ service falls back
to default weights.

Usage:
    advisor = LlmSessionAdvisor(models=["gemini/gemini-2.5-flash"])
    params = await advisor.get_session_parameters(profile, "Time: Morning, Day: Weekday")
"""

import asyncio
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

import litellm
from litellm import acompletion
from pydantic import BaseModel, Field, ValidationError, field_validator

from dj_algorithm import SessionWeights, TasteProfile

from ..errors import AdvisorError

logger = logging.getLogger(__name__)

litellm.suppress_debug_info = True
litellm.drop_params = True

MAX_INPUT_LENGTH = 100
RATE_LIMIT_RETRIES = 3
RATE_LIMIT_DELAY = 2.0


# ============================================================================
# Output schema
# ============================================================================

class SessionFilters(BaseModel):
    exclude_genres: List[str] = Field(default_factory=list)


class SessionParameters(BaseModel):
    """Validated advisor output for one session."""

    vibe_description: str
    target_moods: List[str]
    primary_genres: List[str]
    genre_strictness: float = Field(ge=0.0, le=1.0)
    weights: SessionWeights = Field(default_factory=SessionWeights)
    filters: SessionFilters = Field(default_factory=SessionFilters)

    @field_validator("vibe_description")
    @classmethod
    def strip_markup(cls, v: str) -> str:
        return re.sub(r"[<>]", "", v).strip()


class SessionAdvisor(Protocol):
    """Protocol for per-session tuning. Returns None when no advice is available."""

    async def get_session_parameters(
        self,
        profile: TasteProfile,
        context: str,
    ) -> Optional[SessionParameters]:
        ...


class NullAdvisor:
    """Advisor used when no LLM key is configured: never advises."""

    async def get_session_parameters(
        self,
        profile: TasteProfile,
        context: str,
    ) -> Optional[SessionParameters]:
        return None


# ============================================================================
# Prompt helpers
# ============================================================================

def sanitize_input(value: Optional[str]) -> str:
    """Strip control characters and anything but word chars, spaces, - . , ; cap the length."""
    if not value:
        return ""
    cleaned = re.sub(r"[\r\n\t]", " ", value)
    cleaned = re.sub(r"[^\w\s\-.,]", "", cleaned)
    return cleaned.strip()[:MAX_INPUT_LENGTH]


def parse_json_response(content: str) -> Dict[str, Any]:
    """
    Parse JSON from LLM response, handling various formats.

    Accepts a bare object, one wrapped in a markdown code block, or one
    surrounded by text. Raises ValueError if no object is found.
    """
    content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    match = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", content)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    match = re.search(r"\{[\s\S]*\}", content)
    if match:
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Could not parse JSON from response: {content[:200]}...")


SYSTEM_ROLE = (
    'You are the "Brain" of the Audiora DJ. Your goal is to configure the music '
    "recommendation engine for a specific user session."
)

PROMPT_TEMPLATE = """{system_role}

CONTEXT: {context}

USER PROFILE:
- Top Genres: {genres}
- Top Artists: {artists}
- Preferred Moods: {moods}
- Discovery Rate: {discovery_rate}

TASK:
Analyze this user and the current context. Define the optimal session parameters.

OUTPUT JSON FORMAT:
{{
  "vibe_description": "A short, engaging description of the vibe",
  "target_moods": ["Mood1", "Mood2"],
  "primary_genres": ["Genre1", "Genre2"],
  "genre_strictness": 0.0 to 1.0,
  "weights": {{
    "genre_match": 0.1 to 0.9 (Standard: 0.4),
    "artist_match": 0.1 to 0.9 (Standard: 0.3),
    "mood_match": 0.1 to 0.9 (Standard: 0.2),
    "novelty": 0.1 to 0.9 (Standard: 0.1)
  }},
  "filters": {{
    "exclude_genres": ["GenreToExclude"]
  }}
}}

GUARDRAILS:
- DO NOT select specific tracks.
- DO NOT invent data.
- Output ONLY valid JSON.
"""


def build_prompt(profile: TasteProfile, context: str, persona: Optional[str] = None) -> str:
    system_role = SYSTEM_ROLE
    if persona:
        system_role = (
            f"{sanitize_input(persona)}\n\nYou are acting as this persona. Curate a session "
            "that embodies your style while respecting the user's taste where possible."
        )
    return PROMPT_TEMPLATE.format(
        system_role=system_role,
        context=sanitize_input(context),
        genres=", ".join(sanitize_input(g) for g in profile.top_genres),
        artists=", ".join(sanitize_input(a) for a in profile.top_artists),
        moods=", ".join(sanitize_input(m) for m in profile.mood_preference),
        discovery_rate=profile.discovery_rate,
    )


def _is_rate_limited(error: Exception) -> bool:
    return isinstance(error, litellm.RateLimitError) or getattr(error, "status_code", None) == 429


# ============================================================================
# LLM advisor
# ============================================================================

class LlmSessionAdvisor:
    """
    SessionAdvisor backed by LiteLLM.

    Models are tried in order; each model is retried on rate limiting (429)
    with 2s, 4s, ... delays. Any failure yields None.
    """

    def __init__(
        self,
        models: List[str],
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        temperature: float = 0.8,
        retries: int = RATE_LIMIT_RETRIES,
        persona: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not models:
            raise ValueError("LlmSessionAdvisor requires at least one model")
        self.models = list(models)
        self.api_key = api_key
        self.timeout = timeout
        self.temperature = temperature
        self.retries = max(1, retries)
        self.persona = persona
        self._sleep = sleep

    async def _complete(self, model: str, prompt: str) -> str:
        for attempt in range(self.retries):
            try:
                response = await acompletion(
                    model=model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                    timeout=self.timeout,
                    api_key=self.api_key,
                )
                return response.choices[0].message.content or ""
            except Exception as e:
                if _is_rate_limited(e) and attempt < self.retries - 1:
                    delay = RATE_LIMIT_DELAY * (attempt + 1)
                    logger.warning("[advisor] %s rate limited, retrying in %.0fs", model, delay)
                    await self._sleep(delay)
                    continue
                raise
        raise AdvisorError(f"{model}: max retries exceeded")

    async def generate(self, prompt: str) -> str:
        """Raw completion text from the first model that answers. Raises AdvisorError when all fail."""
        last_error: Optional[Exception] = None
        for model in self.models:
            try:
                logger.debug("[advisor] trying model %s", model)
                return await self._complete(model, prompt)
            except Exception as e:
                last_error = e
                logger.warning("[advisor] %s failed: %s", model, e)
        raise AdvisorError(f"All advisor models failed: {last_error}")

    async def get_session_parameters(
        self,
        profile: TasteProfile,
        context: str,
    ) -> Optional[SessionParameters]:
        prompt = build_prompt(profile, context, self.persona)
        try:
            text = await self.generate(prompt)
            logger.debug("[advisor] response: %.100s", text)
            params = SessionParameters.model_validate(parse_json_response(text))
        except ValidationError as e:
            logger.warning("[advisor] invalid session parameters: %s", e.errors())
            return None
        except (AdvisorError, ValueError) as e:
            logger.warning("[advisor] no session parameters: %s", e)
            return None
        logger.info("[advisor] vibe: %s", params.vibe_description)
        return params
