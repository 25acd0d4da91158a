"""
Gateway Module - The three model operations of the pipeline.
============================================================

All operations go through one primitive, _call(), which:
- Writes a REQUEST audit entry
- Makes exactly one provider call (no retries)
- Writes a RESPONSE entry with duration and usage, or an ERROR entry

Operations:
- filter_relevant(): keep only text about the course; fails open
- summarize_page(): short summary tagged with its source URL
- synthesize_final_rating(): labelled rating template for the parser
"""

import time
from typing import Optional

from cora_analyzer.llm.audit import AuditLog, new_request_id
from cora_analyzer.llm.prompts import NO_RELEVANT_INFORMATION, PromptBuilder
from cora_analyzer.llm.providers import ModelProvider, ModelRequest, RequestType
from cora_analyzer.shared.config import GenerationConfig, OperationConfig, get_settings
from cora_analyzer.shared.errors import ModelProviderError
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import CourseIdentity, PageSummary

logger = get_logger(__name__)


class ModelGateway:
    """
    Audited access to the language model.

    Example:
        >>> gateway = ModelGateway(StubModelProvider(), AuditLog(MemoryStore()))
        >>> relevant = await gateway.filter_relevant(page_text, identity)
        >>> summary = await gateway.summarize_page(relevant, identity, url)
    """

    def __init__(
        self,
        provider: ModelProvider,
        audit_log: AuditLog,
        prompt_builder: Optional[PromptBuilder] = None,
        config: Optional[GenerationConfig] = None,
    ):
        """
        Initialize the gateway.

        Args:
            provider: Model backend
            audit_log: Where request/response entries are written
            prompt_builder: Prompt templates
            config: Per-operation token budgets and effort tiers
        """
        self.provider = provider
        self.audit_log = audit_log
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or get_settings().generation

    async def _call(
        self,
        request_type: str,
        system_prompt: str,
        user_prompt: str,
        operation: OperationConfig,
    ) -> str:
        """
        Make one audited provider call.

        Raises:
            ModelProviderError: If the provider fails or returns no text
        """
        request_id = new_request_id()
        request = ModelRequest(
            request_type=request_type,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_output_tokens=operation.max_output_tokens,
            reasoning_effort=operation.reasoning_effort,
        )

        await self.audit_log.log_request(
            request_id,
            request_type=request_type,
            model=self.provider.model_name,
            max_output_tokens=request.max_output_tokens,
            reasoning_effort=request.reasoning_effort,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )
        logger.debug(
            f"[{request_id[:8]}] {request_type}: model={self.provider.model_name}, "
            f"effort={request.reasoning_effort}, max_tokens={request.max_output_tokens}"
        )

        start = time.perf_counter()
        try:
            response = await self.provider.generate(request)
            if not response.content or not response.content.strip():
                raise ModelProviderError("Model returned no content")
        except Exception as e:
            await self.audit_log.log_error(request_id, e)
            logger.error(f"[{request_id[:8]}] {request_type} failed: {e}")
            if isinstance(e, ModelProviderError):
                raise
            raise ModelProviderError(f"{request_type} call failed: {e}") from e

        duration_ms = (time.perf_counter() - start) * 1000
        await self.audit_log.log_response(
            request_id, duration_ms=duration_ms, content=response.content, usage=response.usage
        )
        logger.debug(f"[{request_id[:8]}] {request_type} done in {duration_ms:.0f}ms")
        return response.content

    async def filter_relevant(self, page_text: str, identity: CourseIdentity) -> str:
        """
        Keep only passages about this course and professor.

        Returns:
            Relevant text, "" when the model reports nothing relevant, or the
            original text if the call fails
        """
        system_prompt, user_prompt = self.prompt_builder.build_filter_prompt(page_text, identity)
        try:
            response = await self._call(
                RequestType.CONTENT_FILTERING, system_prompt, user_prompt, self.config.filter
            )
        except ModelProviderError as e:
            logger.warning(f"Relevance filter failed, keeping unfiltered text: {e}")
            return page_text

        if response.strip() == NO_RELEVANT_INFORMATION:
            logger.debug("Filter found no relevant content")
            return ""
        return response

    async def summarize_page(
        self,
        filtered_text: str,
        identity: CourseIdentity,
        source_url: str,
    ) -> str:
        """
        Summarize relevant text from one page.

        Returns:
            Model summary followed by a SOURCE_URL line

        Raises:
            ModelProviderError: If the call fails
        """
        system_prompt, user_prompt = self.prompt_builder.build_summary_prompt(
            filtered_text, identity
        )
        response = await self._call(
            RequestType.PAGE_SUMMARIZATION, system_prompt, user_prompt, self.config.summary
        )
        return f"{response}\nSOURCE_URL: {source_url}"

    async def synthesize_final_rating(
        self,
        summaries: list[PageSummary],
        identity: CourseIdentity,
        use_rubric: bool,
    ) -> str:
        """
        Produce the labelled rating text from page summaries.

        Raises:
            ModelProviderError: If the call fails
        """
        logger.info(
            f"Synthesizing rating for {identity.display_name()} "
            f"from {len(summaries)} summaries (rubric={use_rubric})"
        )
        system_prompt, user_prompt = self.prompt_builder.build_final_prompt(
            summaries, identity, use_rubric=use_rubric
        )
        return await self._call(
            RequestType.FINAL_RATING, system_prompt, user_prompt, self.config.final_rating
        )
