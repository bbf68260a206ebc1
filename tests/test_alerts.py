"""Tests for sharp alert building."""

from linewatch.engine.alerts import build_alerts, has_sharp_action, is_display_move
from linewatch.engine.sharp_detector import DetectionConfig, SharpActionDetector
from linewatch.models.schemas import AlertType
from tests.helpers import make_line


class TestBuildAlerts:

    def test_spread_rlm_alert_names_sharp_side(self):
        game = make_line(
            spread_home=-2.5, spread_home_open=-3.5,
            public_home_pct=68, public_away_pct=32,
            sharp_side="away", rlm_side=True,
        )

        alerts = build_alerts(game)

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.RLM
        assert alerts[0].side == "Boston Celtics"
        assert alerts[0].description == (
            "68% public on Los Angeles Lakers, but line moved from -3.5 → -2.5"
        )

    def test_total_rlm_alert(self):
        game = make_line(
            total=231.0, total_open=232.5,
            public_over_pct=58, public_under_pct=42,
            sharp_total="under", rlm_total=True,
        )

        alerts = build_alerts(game)

        assert [(a.type, a.side) for a in alerts] == [(AlertType.RLM, "Under")]
        assert "total dropped from 232.5 → 231" in alerts[0].description

    def test_unflagged_move_gets_no_rlm_alert(self):
        game = make_line(
            spread_home=-2.5, spread_home_open=-3.5,
            public_home_pct=68, public_away_pct=32,
        )

        assert build_alerts(game) == []

    def test_steam_alerts_use_opening_move_direction(self):
        game = make_line(
            spread_home=-4.5, spread_home_open=-2.5,
            total=224.5, total_open=223.0,
            steam_move=True,
        )

        alerts = build_alerts(game)

        steam = [a for a in alerts if a.type == AlertType.STEAM]
        assert [(a.side, a.description) for a in steam] == [
            ("Los Angeles Lakers", "Spread moved 2.0 pts: -2.5 → -4.5"),
            ("Over", "Total moved 1.5 pts: 223 → 224.5"),
        ]

    def test_steam_alert_respects_configured_threshold(self):
        game = make_line(spread_home=-4.5, spread_home_open=-2.5, steam_move=True)

        assert build_alerts(game, DetectionConfig(steam_threshold=2.5)) == []

    def test_no_alerts_for_quiet_game(self):
        assert build_alerts(make_line()) == []


class TestAlertsMatchDetector:
    """Alerts built with the detector's config agree with its flags."""

    def _classify(self, config):
        opening = make_line(spread_home=-3.5)
        current = make_line(spread_home=-2.5, public_home_pct=60, public_away_pct=40)
        return SharpActionDetector(config).detect(current, opening=opening)

    def test_raised_majority_suppresses_rlm_and_alert(self):
        config = DetectionConfig(public_majority_pct=65)
        game = self._classify(config)

        assert game.rlm_side is False
        assert build_alerts(game, config) == []

    def test_default_majority_flags_and_alerts(self):
        config = DetectionConfig()
        game = self._classify(config)

        alerts = build_alerts(game, config)

        assert game.rlm_side is True
        assert [(a.type, a.side) for a in alerts] == [(AlertType.RLM, "Boston Celtics")]


class TestHelpers:

    def test_has_sharp_action(self):
        assert has_sharp_action(make_line()) is False
        assert has_sharp_action(make_line(steam_move=True)) is True
        assert has_sharp_action(make_line(sharp_total="under", rlm_total=True)) is True

    def test_display_move_threshold(self):
        assert is_display_move(-3.0, -2.5) is True
        assert is_display_move(-3.0, -2.75) is False
        assert is_display_move(None, -2.5) is False

    def test_display_move_uses_configured_threshold(self):
        config = DetectionConfig(display_threshold=1.0)

        assert is_display_move(-3.0, -2.5, config) is False
        assert is_display_move(-3.5, -2.5, config) is True

    def test_alert_to_log(self):
        game = make_line(
            spread_home=-2.5, spread_home_open=-3.5,
            public_home_pct=68, public_away_pct=32,
            sharp_side="away", rlm_side=True,
        )
        log = build_alerts(game)[0].to_log()

        assert log["type"] == "rlm"
        assert log["game"] == "Boston Celtics @ Los Angeles Lakers"
