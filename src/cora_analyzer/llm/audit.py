"""
Audit Module - Persistent log of model requests and responses.
==============================================================

Every model call writes a REQUEST entry, followed by either a RESPONSE or
an ERROR entry with the same request_id. Entries are kept under a single
store key, newest last, trimmed to the most recent max_entries.
"""

import traceback
import uuid
from typing import Any, Optional

from cora_analyzer.shared.config import AuditConfig, get_settings
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import AuditEntryType, AuditLogEntry
from cora_analyzer.shared.storage import KeyValueStore

logger = get_logger(__name__)


def new_request_id() -> str:
    """Generate an id shared by the entries of one request."""
    return uuid.uuid4().hex


class AuditLog:
    """
    Append-only audit trail backed by a KeyValueStore.

    Example:
        >>> audit = AuditLog(MemoryStore())
        >>> await audit.log_request(request_id, request_type="FINAL_RATING", ...)
        >>> entries = await audit.get_logs()
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_entries: Optional[int] = None,
        storage_key: Optional[str] = None,
        config: Optional[AuditConfig] = None,
    ):
        audit_config = config or get_settings().audit
        self.store = store
        self.max_entries = max_entries if max_entries is not None else audit_config.max_entries
        self.storage_key = storage_key or audit_config.storage_key

    async def _append(self, entry: AuditLogEntry) -> None:
        record = entry.model_dump(mode="json")

        def append(entries: Any) -> list[dict[str, Any]]:
            entries = entries if isinstance(entries, list) else []
            entries.append(record)
            return entries[-self.max_entries :]

        await self.store.update(self.storage_key, append, [])

    async def log_request(
        self,
        request_id: str,
        request_type: str,
        model: str,
        max_output_tokens: int,
        reasoning_effort: str,
        system_prompt: str,
        user_prompt: str,
    ) -> None:
        await self._append(
            AuditLogEntry(
                id=uuid.uuid4().hex,
                request_id=request_id,
                type=AuditEntryType.REQUEST,
                request_type=request_type,
                model=model,
                max_output_tokens=max_output_tokens,
                reasoning_effort=reasoning_effort,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
            )
        )

    async def log_response(
        self,
        request_id: str,
        duration_ms: float,
        content: str,
        usage: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._append(
            AuditLogEntry(
                id=uuid.uuid4().hex,
                request_id=request_id,
                type=AuditEntryType.RESPONSE,
                duration_ms=duration_ms,
                content=content,
                usage=usage or {},
            )
        )

    async def log_error(self, request_id: str, error: BaseException) -> None:
        await self._append(
            AuditLogEntry(
                id=uuid.uuid4().hex,
                request_id=request_id,
                type=AuditEntryType.ERROR,
                error=str(error) or type(error).__name__,
                stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
            )
        )

    async def get_logs(self) -> list[AuditLogEntry]:
        """Return all retained entries, oldest first."""
        raw = await self.store.get(self.storage_key, [])
        if not isinstance(raw, list):
            return []
        return [AuditLogEntry.model_validate(item) for item in raw]

    async def clear_logs(self) -> None:
        await self.store.remove(self.storage_key)
        logger.info("Audit log cleared")
