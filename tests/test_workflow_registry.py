"""Tests for per-client workflow bookkeeping and the processing stub."""

import asyncio
from unittest.mock import AsyncMock, patch

from tests.conftest import FakeBackend
from voice_changer.services.processing import simulate_voice_conversion
from voice_changer.services.submission import WorkflowRegistry


class TestWorkflowRegistry:
    def test_same_client_same_workflow(self, fake_backend: FakeBackend):
        registry = WorkflowRegistry(max_size=10)
        assert registry.get("a", fake_backend) is registry.get("a", fake_backend)
        assert registry.get("a", fake_backend) is not registry.get("b", fake_backend)

    def test_uses_settings(self, fake_backend: FakeBackend):
        workflow = WorkflowRegistry().get("a", fake_backend)
        assert workflow.bucket == "voice-files"
        assert workflow.table == "voice_files"
        assert workflow.max_file_bytes == 5 * 1024 * 1024
        assert workflow.max_text_length == 500

    def test_least_recently_used_evicted(self, fake_backend: FakeBackend):
        registry = WorkflowRegistry(max_size=2)
        first = registry.get("a", fake_backend)
        registry.get("b", fake_backend)
        registry.get("a", fake_backend)
        registry.get("c", fake_backend)

        assert len(registry) == 2
        assert registry.get("a", fake_backend) is first

    def test_in_flight_workflow_not_evicted(self, fake_backend: FakeBackend):
        registry = WorkflowRegistry(max_size=1)
        busy = registry.get("a", fake_backend)
        busy._in_flight = True
        registry.get("b", fake_backend)

        assert registry.get("a", fake_backend) is busy


class TestProcessingStub:
    def test_returns_prefixed_name(self):
        assert asyncio.run(simulate_voice_conversion("clip.mp3", 0)) == "processed_clip.mp3"

    def test_waits_configured_delay(self):
        with patch("voice_changer.services.processing.asyncio.sleep", new_callable=AsyncMock) as sleep:
            asyncio.run(simulate_voice_conversion("clip.mp3", 2.0))
        sleep.assert_awaited_once_with(2.0)
