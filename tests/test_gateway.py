"""
Tests for the LLM Module.
=========================

Tests for:
- Prompts: identity anchoring and rubric toggling
- Gateway: the three operations and their failure modes
- Audit log: entry pairing and trimming
- Providers: stub behavior and thinking budgets
"""

import pytest

from tests.conftest import ScriptedModelProvider


# ─────────────────────────────────────────────────────────────────────────────
# Prompt Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestPrompts:
    """Tests for prompt building."""

    def test_filter_prompt_names_target(self, identity):
        from cora_analyzer.llm.prompts import NO_RELEVANT_INFORMATION, PromptBuilder

        system, user = PromptBuilder().build_filter_prompt("page text {braces}", identity)

        assert NO_RELEVANT_INFORMATION in system
        assert "CS 1110" in user
        assert "John Smith" in user
        assert "page text {braces}" in user

    def test_missing_professor_shown_as_na(self, identity_without_professor):
        from cora_analyzer.llm.prompts import PromptBuilder

        _, user = PromptBuilder().build_summary_prompt("text", identity_without_professor)

        assert "TARGET PROFESSOR: N/A" in user

    def test_final_prompt_rubric_toggle(self, identity):
        from cora_analyzer.llm.prompts import PromptBuilder
        from cora_analyzer.shared.schemas import PageSummary

        summaries = [
            PageSummary(source="reddit.com/r/uva", url="https://r/1", summary_text="Good", success=True)
        ]
        builder = PromptBuilder()

        _, plain = builder.build_final_prompt(summaries, identity, use_rubric=False)
        _, rubric = builder.build_final_prompt(summaries, identity, use_rubric=True)

        for label in ("OVERALL RATING:", "DIFFICULTY RATING:", "COURSE CONTENT SUMMARY:", "PROFESSOR SUMMARY:"):
            assert label in plain
        assert "Source 1 (reddit.com/r/uva):\nGood" in plain
        assert "Exceptional" not in plain
        for band in ("Exceptional", "Very Good", "Fair", "Poor", "Very Difficult", "Moderate", "Very Easy"):
            assert band in rubric


# ─────────────────────────────────────────────────────────────────────────────
# Gateway Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestGateway:
    """Tests for audited model operations."""

    @pytest.mark.asyncio
    async def test_filter_returns_relevant_text(self, gateway, identity, audit_log):
        result = await gateway.filter_relevant("lots of text", identity)

        assert result == "Smith's CS 1110 lectures are clear."
        entries = await audit_log.get_logs()
        assert [e.type.value for e in entries] == ["REQUEST", "RESPONSE"]
        assert entries[0].request_id == entries[1].request_id
        assert entries[0].request_type == "CONTENT_FILTERING"
        assert entries[0].reasoning_effort == "low"
        assert entries[0].model == "fake-model"
        assert entries[1].usage == {"total_tokens": 42}
        assert entries[1].duration_ms >= 0

    @pytest.mark.asyncio
    async def test_filter_sentinel_means_empty(self, audit_log, identity):
        from cora_analyzer.llm.gateway import ModelGateway
        from cora_analyzer.shared.config import GenerationConfig

        provider = ScriptedModelProvider({"CONTENT_FILTERING": "  NO RELEVANT INFORMATION \n"})
        gateway = ModelGateway(provider, audit_log, config=GenerationConfig())

        assert await gateway.filter_relevant("unrelated text", identity) == ""

    @pytest.mark.asyncio
    async def test_filter_failure_keeps_original(self, audit_log, identity):
        from cora_analyzer.llm.gateway import ModelGateway
        from cora_analyzer.shared.config import GenerationConfig

        provider = ScriptedModelProvider(fail_on=("CONTENT_FILTERING",))
        gateway = ModelGateway(provider, audit_log, config=GenerationConfig())

        result = await gateway.filter_relevant("original text", identity)

        assert result == "original text"
        entries = await audit_log.get_logs()
        assert [e.type.value for e in entries] == ["REQUEST", "ERROR"]
        assert "unavailable" in entries[1].error
        assert "RuntimeError" in entries[1].stack

    @pytest.mark.asyncio
    async def test_summary_tagged_with_source(self, gateway, identity, model_provider):
        result = await gateway.summarize_page("relevant", identity, "https://reddit.com/r/uva/t/1")

        assert result.startswith("SUMMARY: Clear lectures.")
        assert result.endswith("\nSOURCE_URL: https://reddit.com/r/uva/t/1")
        assert model_provider.requests[-1].reasoning_effort == "minimal"
        assert model_provider.requests[-1].max_output_tokens == 1024

    @pytest.mark.asyncio
    async def test_summary_failure_raises(self, audit_log, identity):
        from cora_analyzer.llm.gateway import ModelGateway
        from cora_analyzer.shared.config import GenerationConfig
        from cora_analyzer.shared.errors import ModelProviderError

        provider = ScriptedModelProvider(fail_on=("PAGE_SUMMARIZATION",))
        gateway = ModelGateway(provider, audit_log, config=GenerationConfig())

        with pytest.raises(ModelProviderError):
            await gateway.summarize_page("relevant", identity, "https://x")

    @pytest.mark.asyncio
    async def test_empty_response_is_error(self, audit_log, identity):
        from cora_analyzer.llm.gateway import ModelGateway
        from cora_analyzer.shared.config import GenerationConfig
        from cora_analyzer.shared.errors import ModelProviderError

        gateway = ModelGateway(ScriptedModelProvider(), audit_log, config=GenerationConfig())

        with pytest.raises(ModelProviderError):
            await gateway.synthesize_final_rating([], identity, use_rubric=True)
        entries = await audit_log.get_logs()
        assert entries[-1].type.value == "ERROR"

    @pytest.mark.asyncio
    async def test_final_rating_uses_rubric(self, gateway, identity, model_provider, final_rating_text):
        result = await gateway.synthesize_final_rating([], identity, use_rubric=True)

        assert result == final_rating_text
        assert "SCORING RUBRIC" in model_provider.requests[-1].user_prompt
        assert model_provider.requests[-1].request_type == "FINAL_RATING"


# ─────────────────────────────────────────────────────────────────────────────
# Audit Log Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestAuditLog:
    """Tests for the persistent audit trail."""

    @pytest.mark.asyncio
    async def test_trimmed_to_newest(self, memory_store):
        from cora_analyzer.llm.audit import AuditLog

        audit = AuditLog(memory_store, max_entries=5, storage_key="logs")
        for n in range(8):
            await audit.log_response(f"req-{n}", duration_ms=1.0, content=str(n))

        entries = await audit.get_logs()
        assert len(entries) == 5
        assert [e.content for e in entries] == ["3", "4", "5", "6", "7"]

    @pytest.mark.asyncio
    async def test_clear(self, memory_store):
        from cora_analyzer.llm.audit import AuditLog

        audit = AuditLog(memory_store, max_entries=5, storage_key="logs")
        await audit.log_response("req", duration_ms=1.0, content="x")

        await audit.clear_logs()

        assert await audit.get_logs() == []


# ─────────────────────────────────────────────────────────────────────────────
# Provider Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestProviders:
    """Tests for model providers that need no network."""

    @pytest.mark.asyncio
    async def test_stub_filter_echoes_source(self, identity):
        from cora_analyzer.llm.prompts import PromptBuilder
        from cora_analyzer.llm.providers import ModelRequest, RequestType, StubModelProvider

        system, user = PromptBuilder().build_filter_prompt("Smith is great.", identity)
        response = await StubModelProvider().generate(
            ModelRequest(RequestType.CONTENT_FILTERING, system, user, 100, "low")
        )

        assert response.content == "Smith is great."

    @pytest.mark.asyncio
    async def test_stub_final_rating_parses(self):
        from cora_analyzer.llm.parser import parse_rating_response
        from cora_analyzer.llm.providers import ModelRequest, RequestType, StubModelProvider

        response = await StubModelProvider().generate(
            ModelRequest(RequestType.FINAL_RATING, "s", "u", 100, "low")
        )
        rating = parse_rating_response(response.content)

        assert rating.overall_rating == 4.0
        assert rating.difficulty_rating == 3.0

    def test_gemini_thinking_budgets(self):
        from cora_analyzer.llm.providers import GeminiModelProvider
        from cora_analyzer.shared.config import GenerationConfig

        provider = GeminiModelProvider(api_key="test", model_name="gemini-2.5-flash", config=GenerationConfig())

        assert provider.thinking_budget("minimal") == 0
        assert provider.thinking_budget("low") == 512
        assert provider.thinking_budget("unknown") == 512
