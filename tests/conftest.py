"""Shared test fixtures."""

import pytest

from linewatch.config import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        odds_api_key="test-key",
        data_dir=tmp_path / "data",
        categories={"nba": "basketball_nba", "nhl": "icehockey_nhl"},
    )
