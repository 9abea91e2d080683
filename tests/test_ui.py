"""Tests for the Textual chat app."""
import logging

import httpx
import pytest

from chatrelay.catalog import get_preset
from chatrelay.client import ChatSession
from chatrelay.ui import ChatTextualApp, DebugPanel


def _app(log_level: str | None) -> ChatTextualApp:
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    session = ChatSession(base_url="http://relay.test", http_client=httpx.AsyncClient(transport=transport))
    return ChatTextualApp(session=session, preset=get_preset("gpt-4-nano"), log_level=log_level)


def _record_entries(panel: DebugPanel) -> list[tuple[int, str]]:
    entries: list[tuple[int, str]] = []
    original = panel.log_entry

    def log_entry(component, message, level=logging.DEBUG):
        entries.append((level, message))
        original(component, message, level)

    panel.log_entry = log_entry
    return entries


class TestLogPanel:
    """Tests for routing chatrelay logs into the debug panel."""

    @pytest.mark.asyncio
    async def test_debug_level_shows_info_and_debug_records(self):
        app = _app("debug")
        async with app.run_test():
            panel = app.query_one("#debug-panel", DebugPanel)
            entries = _record_entries(panel)
            logger = logging.getLogger("chatrelay.client.session")
            logger.debug("debug record")
            logger.info("info record")
            logger.warning("warning record")

            assert panel.display
            assert entries == [
                (logging.DEBUG, "debug record"),
                (logging.INFO, "info record"),
                (logging.WARNING, "warning record"),
            ]

    @pytest.mark.asyncio
    async def test_panel_level_filters_records(self):
        app = _app("warning")
        async with app.run_test():
            entries = _record_entries(app.query_one("#debug-panel", DebugPanel))
            logger = logging.getLogger("chatrelay.relay.service")
            logger.info("info record")
            logger.error("error record")

            assert entries == [(logging.ERROR, "error record")]

    @pytest.mark.asyncio
    async def test_default_level_is_info_without_terminal_output(self):
        app = _app(None)
        async with app.run_test():
            logger = logging.getLogger("chatrelay")
            assert logger.level == logging.INFO
            assert logger.propagate is False
            assert not app.query_one("#debug-panel", DebugPanel).display
