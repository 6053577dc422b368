"""
Tests for ImportService control flow with mocked collaborators.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from stravhat.features.strava import ImportService, StravaAuthError
from tests.conftest import make_activity


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def mock_tokens():
    tokens = MagicMock()
    tokens.get_valid_access_token = AsyncMock(side_effect=["token-1", "token-2"])
    return tokens


def make_service(db, tokens, pages):
    client = MagicMock()
    client.fetch_page = AsyncMock(side_effect=pages)
    service = ImportService(db, codec=MagicMock(), client=client, token_manager=tokens)
    service.users = MagicMock()
    service.users.get_profile_snapshot = AsyncMock(return_value=None)
    service.activities = MagicMock()
    service.activities.upsert_many = AsyncMock()
    return service


class TestPageCommit:
    """Tests for the per-page transaction."""

    def test_commit_per_page(self, mock_db, mock_tokens):
        service = make_service(
            mock_db, mock_tokens, [[make_activity(1)], [make_activity(2)], []]
        )
        result = asyncio.run(service.import_all("user-1"))

        assert result.to_dict() == {"imported": 2, "pages": 2}
        assert service.activities.upsert_many.await_count == 2
        assert mock_db.commit.await_count == 2
        mock_db.rollback.assert_not_awaited()

    def test_failed_upsert_rolled_back(self, mock_db, mock_tokens):
        service = make_service(mock_db, mock_tokens, [[make_activity(1)]])
        service.activities.upsert_many.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            asyncio.run(service.import_all("user-1"))

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()


class TestAuthRecovery:
    """Tests for the refresh-and-retry branch."""

    def test_forced_refresh_then_same_page(self, mock_db, mock_tokens):
        service = make_service(
            mock_db,
            mock_tokens,
            [StravaAuthError(401, "expired"), [make_activity(1)], []],
        )
        asyncio.run(service.import_all("user-1"))

        mock_tokens.get_valid_access_token.assert_any_await("user-1", force_refresh=True)
        calls = service.client.fetch_page.await_args_list
        assert [c.args for c in calls] == [("token-1", 1), ("token-2", 1), ("token-2", 2)]
