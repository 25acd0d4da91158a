"""
Tests for Shared Configuration, Utilities and Storage.
======================================================

Tests for:
- Settings defaults and overrides
- Identity normalization and text helpers
- Memory and JSON file stores
- Progress reporting
"""

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Settings Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        from cora_analyzer.shared.config import Settings

        settings = Settings(search_api_key="", search_engine_id="", gemini_api_key="")

        assert settings.http.max_retries == 3
        assert settings.http.initial_delay == 1.0
        assert settings.http.max_delay == 10.0
        assert settings.cache.ttl_days == 7
        assert settings.cache.max_entries == 50
        assert settings.cache.cleanup_threshold == 60
        assert settings.audit.max_entries == 100
        assert settings.search.get_sites() == ["thecourseforum.com", "reddit.com/r/uva"]

    def test_live_credentials_need_all_keys(self):
        from cora_analyzer.shared.config import Settings

        assert Settings(search_api_key="k", search_engine_id="cx", gemini_api_key="g").has_live_credentials()
        assert not Settings(search_api_key="k", search_engine_id="", gemini_api_key="g").has_live_credentials()
        assert not Settings(search_api_key=" ", search_engine_id="cx", gemini_api_key="g").has_live_credentials()

    def test_effective_model(self):
        from cora_analyzer.shared.config import Settings

        assert Settings(gemini_model=None).get_effective_model() == "gemini-2.5-flash"
        assert Settings(gemini_model="gemini-2.5-pro").get_effective_model() == "gemini-2.5-pro"

    def test_effective_log_level(self):
        from cora_analyzer.shared.config import LoggingConfig, Settings

        assert Settings(log_level=None, logging=LoggingConfig(level="info")).get_effective_log_level() == "INFO"
        assert Settings(log_level="debug").get_effective_log_level() == "DEBUG"

    def test_stub_flag_from_environment(self):
        from cora_analyzer.shared.config import Settings

        # conftest sets CORA_USE_STUBS=true
        assert Settings().use_stubs

    def test_store_path_resolves_relative(self, tmp_path):
        from cora_analyzer.shared.config import StorageConfig

        assert StorageConfig(path="data/x.json").resolve(tmp_path) == tmp_path / "data" / "x.json"
        absolute = tmp_path / "abs.json"
        assert StorageConfig(path=str(absolute)).resolve(tmp_path) == absolute


# ─────────────────────────────────────────────────────────────────────────────
# Utility Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestNormalization:
    """Tests for identity normalization."""

    def test_course_number(self):
        from cora_analyzer.shared.utils import normalize_course_number

        assert normalize_course_number(" cs 2130 ") == "CS2130"
        assert normalize_course_number("cs-2130") == "CS2130"
        assert normalize_course_number(None) == ""

    def test_professor(self):
        from cora_analyzer.shared.utils import normalize_professor

        assert normalize_professor("Dr. Jane  Doe") == "JANEDOE"
        assert normalize_professor("Professor O'Neil") == "ONEIL"
        assert normalize_professor("   ") == "UNKNOWN"
        assert normalize_professor(None) == "UNKNOWN"


class TestTextHelpers:
    """Tests for text helpers."""

    def test_truncate_text(self):
        from cora_analyzer.shared.utils import truncate_text

        assert truncate_text("short", 10) == "short"
        assert truncate_text("abcdefghij", 4) == "abcd..."

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (None, "n/a"),
            (30, "just now"),
            (60, "1 minute ago"),
            (7200, "2 hours ago"),
            (86400 * 3, "3 days ago"),
        ],
    )
    def test_format_age(self, seconds, expected):
        from cora_analyzer.shared.utils import format_age

        assert format_age(seconds) == expected


# ─────────────────────────────────────────────────────────────────────────────
# Storage Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestStores:
    """Tests for key-value stores."""

    @pytest.mark.asyncio
    async def test_memory_store_copies_values(self, memory_store):
        value = {"items": [1]}
        await memory_store.set("k", value)
        value["items"].append(2)

        stored = await memory_store.get("k")
        stored["items"].append(3)

        assert await memory_store.get("k") == {"items": [1]}
        assert await memory_store.get("missing", default=[]) == []

    @pytest.mark.asyncio
    async def test_update_uses_default(self, memory_store):
        await memory_store.update("log", lambda entries: entries + ["a"], [])
        new_value = await memory_store.update("log", lambda entries: entries + ["b"], [])

        assert new_value == ["a", "b"]
        assert await memory_store.get("log") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_remove(self, memory_store):
        await memory_store.set("k", 1)
        await memory_store.remove("k")
        await memory_store.remove("never-set")

        assert await memory_store.get("k") is None

    @pytest.mark.asyncio
    async def test_json_file_store_persists(self, tmp_path):
        from cora_analyzer.shared.storage import JsonFileStore

        path = tmp_path / "nested" / "store.json"
        await JsonFileStore(path).set("cache", {"CS2130_UNKNOWN": {"overall": 4.0}})

        reopened = JsonFileStore(path)
        assert await reopened.get("cache") == {"CS2130_UNKNOWN": {"overall": 4.0}}
        assert not path.with_suffix(".json.tmp").exists()

    @pytest.mark.asyncio
    async def test_json_file_store_tolerates_corruption(self, tmp_path):
        from cora_analyzer.shared.storage import JsonFileStore

        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        store = JsonFileStore(path)
        assert await store.get("cache") is None
        await store.set("cache", {})
        assert await store.get("cache") == {}


# ─────────────────────────────────────────────────────────────────────────────
# Progress Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestProgress:
    """Tests for ProgressReporter."""

    def test_events_delivered(self):
        from cora_analyzer.pipeline.progress import ProgressReporter

        events = []
        ProgressReporter(events.append).report("Searching web sources...", step=1)

        assert len(events) == 1
        assert events[0].step == 1
        assert events[0].total_steps == 4
        assert not events[0].completed

    def test_no_callback(self):
        from cora_analyzer.pipeline.progress import ProgressReporter

        ProgressReporter().report("Complete!", step=4, completed=True)

    def test_failing_callback_ignored(self):
        from cora_analyzer.pipeline.progress import ProgressReporter

        def sink(event):
            raise ValueError("boom")

        ProgressReporter(sink).report("Search completed", step=1, completed=True)


# ─────────────────────────────────────────────────────────────────────────────
# Logging Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestLogging:
    """Tests for logging setup."""

    def test_file_output_and_quiet_libraries(self, tmp_path):
        import logging

        from cora_analyzer.shared.logging import NOISY_LOGGERS, get_logger, setup_logging

        log_file = tmp_path / "logs" / "cora.log"
        setup_logging(level="DEBUG", use_rich=False, log_file=str(log_file), force=True)
        try:
            get_logger("cora_analyzer.tests").info("analysis started")
            for handler in logging.getLogger().handlers:
                handler.flush()

            assert "analysis started" in log_file.read_text(encoding="utf-8")
            assert logging.getLogger().level == logging.DEBUG
            assert all(logging.getLogger(name).level == logging.WARNING for name in NOISY_LOGGERS)
        finally:
            setup_logging(use_rich=False, force=True)

    def test_repeat_setup_ignored_without_force(self):
        import logging

        from cora_analyzer.shared.logging import setup_logging

        setup_logging(level="INFO", use_rich=False, force=True)
        setup_logging(level="ERROR", use_rich=False)

        assert logging.getLogger().level == logging.INFO
