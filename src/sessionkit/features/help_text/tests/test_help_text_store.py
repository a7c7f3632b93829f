"""Tests for HelpTextStore."""

from unittest.mock import AsyncMock

import pytest

from src.sessionkit.features.help_text.models import BUNDLED_HELP_TEXTS, HelpText
from src.sessionkit.features.help_text.store import HelpTextStore
from src.sessionkit.stores.loadable import Loaded


@pytest.mark.asyncio
class TestHelpTextStore:
    """Tests for help text loading and lookup."""

    async def test_bundled_texts_until_remote_arrives(self, tmp_path):
        store = HelpTextStore(
            fetch_from_service=AsyncMock(return_value=[HelpText(code="signInGuidance", text="Remote copy")]),
            cache_dir=tmp_path,
        )

        task = store.initialize()
        assert store.state == Loaded(BUNDLED_HELP_TEXTS)
        assert store.text_for_code("verifyEmailGuidance") is not None

        await task
        assert store.text_for_code("signInGuidance") == "Remote copy"
        assert store.text_for_code("verifyEmailGuidance") is None

    async def test_bundled_texts_kept_when_offline(self, tmp_path):
        store = HelpTextStore(fetch_from_service=AsyncMock(side_effect=OSError("offline")), cache_dir=tmp_path)

        await store.initialize()

        assert len(store.items) == len(BUNDLED_HELP_TEXTS)

    async def test_unknown_code(self, tmp_path):
        store = HelpTextStore(fetch_from_service=AsyncMock(), cache_dir=tmp_path)

        assert store.text_for_code("missing") is None
