"""
LLM Module - Language-model access for filtering, summaries and ratings.
========================================================================

- providers: ModelProvider interface with Gemini and stub implementations
- prompts: Prompt templates
- audit: Persistent request/response audit log
- gateway: The audited filter, summarize and rate operations
- parser: Structured rating fields from model text
"""

from cora_analyzer.llm.audit import AuditLog
from cora_analyzer.llm.gateway import ModelGateway
from cora_analyzer.llm.parser import parse_rating_response
from cora_analyzer.llm.prompts import NO_RELEVANT_INFORMATION, PromptBuilder
from cora_analyzer.llm.providers import (
    GeminiModelProvider,
    ModelProvider,
    ModelRequest,
    ModelResponse,
    RequestType,
    StubModelProvider,
)

__all__ = [
    "AuditLog",
    "ModelGateway",
    "parse_rating_response",
    "NO_RELEVANT_INFORMATION",
    "PromptBuilder",
    "ModelProvider",
    "ModelRequest",
    "ModelResponse",
    "RequestType",
    "GeminiModelProvider",
    "StubModelProvider",
]
