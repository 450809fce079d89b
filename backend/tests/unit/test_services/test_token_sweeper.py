"""Tests for the expired-token sweeper job"""

import asyncio
from unittest.mock import MagicMock

from opauth.config.settings import settings
from opauth.domain.errors import StorageUnavailableError
from opauth.scheduler.token_sweeper import TokenSweeper


def test_sweep_revokes_expired_tokens(service, stock_manager, clock):
    service.issue_token("stock_out", "ITEM-1", {"quantity": 1}, actor=stock_manager, ttl_seconds=30)
    service.issue_token("stock_out", "ITEM-2", {"quantity": 1}, actor=stock_manager, ttl_seconds=30)
    clock.advance(31)

    sweeper = TokenSweeper(service, interval_seconds=60)

    assert asyncio.run(sweeper.revoke_expired_tokens()) == 2
    assert service.get_active_token("ITEM-1") is None


def test_storage_outage_skips_run():
    service = MagicMock()
    service.sweep_expired_tokens.side_effect = StorageUnavailableError("down")

    sweeper = TokenSweeper(service, interval_seconds=60)

    assert asyncio.run(sweeper.revoke_expired_tokens()) == 0


def test_interval_defaults_to_settings(service):
    assert TokenSweeper(service).interval_seconds == settings.token_sweep_interval_seconds
    assert not TokenSweeper(service).is_running
