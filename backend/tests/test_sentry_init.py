from unittest.mock import patch


class TestSentryInit:
    """Test that Sentry initializes correctly when DSN is provided."""

    def test_sentry_init_called_with_dsn(self):
        with (
            patch("main.sentry_sdk") as mock_sentry,
            patch("main.settings") as mock_settings,
        ):
            mock_settings.sentry_dsn = "https://test@sentry.io/123"
            mock_settings.environment = "production"

            from main import _init_sentry

            _init_sentry()

            mock_sentry.init.assert_called_once()
            call_kwargs = mock_sentry.init.call_args.kwargs
            assert call_kwargs["dsn"] == "https://test@sentry.io/123"
            assert call_kwargs["environment"] == "production"
            assert call_kwargs["send_default_pii"] is False

    def test_sentry_skipped_without_dsn(self):
        with (
            patch("main.sentry_sdk") as mock_sentry,
            patch("main.settings") as mock_settings,
        ):
            mock_settings.sentry_dsn = ""

            from main import _init_sentry

            _init_sentry()

            mock_sentry.init.assert_not_called()


class TestLifespan:
    def test_snapshot_mode_loads_repository_at_startup(self, tmp_path):
        from fastapi.testclient import TestClient

        from main import app

        with (
            patch("main.settings") as mock_settings,
            patch("main.SnapshotRepository.load") as mock_load,
        ):
            mock_settings.sentry_dsn = ""
            mock_settings.restaurant_source = "snapshot"
            mock_settings.snapshot_path = str(tmp_path / "restaurants.json")
            mock_settings.scheduled_refresh = False
            with TestClient(app):
                assert app.state.snapshot_repository is mock_load.return_value
        del app.state.snapshot_repository
        mock_load.assert_called_once()
