from stockfolio.config import Settings
from stockfolio.domain.enums import MatchingPolicy


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STOCKFOLIO_MATCHING_POLICY", raising=False)
        cfg = Settings(_env_file=None)

        assert cfg.matching_policy == MatchingPolicy.FIFO
        assert cfg.price_stale_after_hours == 24.0
        assert cfg.include_closed_holdings is False
        assert cfg.days_per_year == 365
        assert cfg.xirr_guess == 0.1
        assert cfg.xirr_max_iterations == 50

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STOCKFOLIO_MATCHING_POLICY", "INTRADAY_FIRST")
        monkeypatch.setenv("STOCKFOLIO_PRICE_STALE_AFTER_HOURS", "72")

        cfg = Settings(_env_file=None)

        assert cfg.matching_policy == MatchingPolicy.INTRADAY_FIRST
        assert cfg.price_stale_after_hours == 72.0
