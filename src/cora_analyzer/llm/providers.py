"""
Model Providers Module - Language-model backends.
=================================================

Implementations:
- GeminiModelProvider: Gemini through the google-genai SDK
- StubModelProvider: deterministic text per request type, no network
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from cora_analyzer.shared.config import GenerationConfig, get_settings
from cora_analyzer.shared.logging import get_logger

logger = get_logger(__name__)


class RequestType:
    """Request type labels used in the audit log."""

    CONTENT_FILTERING = "CONTENT_FILTERING"
    PAGE_SUMMARIZATION = "PAGE_SUMMARIZATION"
    FINAL_RATING = "FINAL_RATING"


@dataclass
class ModelRequest:
    """One generation request."""

    request_type: str
    system_prompt: str
    user_prompt: str
    max_output_tokens: int
    reasoning_effort: str


@dataclass
class ModelResponse:
    """Generated text and provider usage counters."""

    content: str
    model: str = ""
    usage: dict[str, Any] = field(default_factory=dict)


class ModelProvider(ABC):
    """
    Abstract language-model backend.

    Implementations must provide:
    - generate(): Perform exactly one completion call
    - model_name: Identifier recorded in the audit log
    """

    model_name: str = ""

    @abstractmethod
    async def generate(self, request: ModelRequest) -> ModelResponse:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Gemini
# ─────────────────────────────────────────────────────────────────────────────


class GeminiModelProvider(ModelProvider):
    """
    Gemini backend using the google-genai async client.

    Reasoning effort tiers map to thinking budgets from configuration.

    Example:
        >>> provider = GeminiModelProvider(api_key="...")
        >>> response = await provider.generate(request)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        config: Optional[GenerationConfig] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Gemini API key (default from settings)
            model_name: Model name (default from settings)
            config: Generation settings (default from config)
        """
        settings = get_settings()
        self.config = config or settings.generation
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.get_effective_model()

        self._client = None

        logger.info(f"Gemini provider initialized: model={self.model_name}")

    @property
    def client(self):
        """Lazy-load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ValueError("Gemini API key not found. Set GEMINI_API_KEY environment variable.")
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.debug("Gemini client initialized")
        return self._client

    def thinking_budget(self, reasoning_effort: str) -> int:
        """Map an effort tier to a thinking token budget."""
        budgets = self.config.thinking_budgets
        return budgets.get(reasoning_effort, budgets.get("low", 0))

    async def generate(self, request: ModelRequest) -> ModelResponse:
        from google.genai import types

        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=request.user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=request.system_prompt,
                max_output_tokens=request.max_output_tokens,
                thinking_config=types.ThinkingConfig(
                    thinking_budget=self.thinking_budget(request.reasoning_effort)
                ),
            ),
        )

        usage: dict[str, Any] = {}
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = {
                "prompt_tokens": metadata.prompt_token_count,
                "output_tokens": metadata.candidates_token_count,
                "thinking_tokens": metadata.thoughts_token_count,
                "total_tokens": metadata.total_token_count,
            }

        return ModelResponse(content=response.text or "", model=self.model_name, usage=usage)


# ─────────────────────────────────────────────────────────────────────────────
# Stub
# ─────────────────────────────────────────────────────────────────────────────


_SOURCE_BLOCK = re.compile(r"=== SOURCE CONTENT ===\n(.*?)\n=== END SOURCE ===", re.DOTALL)

STUB_SUMMARY = (
    "SUMMARY: Students describe the course as well organized with clear lectures. "
    "Weekly homework is manageable and exams are fair for anyone who keeps up.\n"
    'QUOTE: "The professor is approachable in office hours."'
)

STUB_FINAL_RATING = """OVERALL RATING: 4.0

DIFFICULTY RATING: 3.0

COURSE CONTENT SUMMARY:
A <strong>well organized</strong> course with clear lectures and steady weekly homework. Exams are fair for students who keep up.

PROFESSOR SUMMARY:
The professor is <strong>approachable</strong> and explains material clearly, with fair grading and helpful office hours."""


class StubModelProvider(ModelProvider):
    """Deterministic offline backend. Used without credentials."""

    model_name = "stub"

    async def generate(self, request: ModelRequest) -> ModelResponse:
        if request.request_type == RequestType.CONTENT_FILTERING:
            match = _SOURCE_BLOCK.search(request.user_prompt)
            content = match.group(1).strip() if match else request.user_prompt
        elif request.request_type == RequestType.PAGE_SUMMARIZATION:
            content = STUB_SUMMARY
        else:
            content = STUB_FINAL_RATING
        return ModelResponse(content=content, model=self.model_name)
