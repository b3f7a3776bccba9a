"""Unit tests for the top-level export run and CLI.

Tests cover:
- Successful run writing the spreadsheet
- Failure handling: logging, notification and ExportError
- Command-line arguments and exit status
"""

from unittest.mock import MagicMock, patch

import pytest
from openpyxl import load_workbook

from ods_pipeline.exceptions import ConfigurationError, ExportError
from ods_pipeline.run import IndicatorExport, main, parse_args


@pytest.mark.unit
class TestIndicatorExport:
    """Test IndicatorExport.run."""

    def test_run_writes_spreadsheet(
        self, fake_api, painel_client, quiet_alert_manager, tmp_path
    ):
        fake_api.panels[(1, 2017, 2020)] = [[101, "Label", 10, 20, 30, 40]]
        fake_api.metas[101] = "1.2 : Reduce poverty disparities"
        output = tmp_path / "ods.xlsx"

        export = IndicatorExport(
            output_path=str(output), client=painel_client,
            alert_manager=quiet_alert_manager,
        )
        path = export.run()

        assert path == output
        assert len(export.records) == 1
        sheet = load_workbook(output)["Indicadores"]
        assert sheet.max_row == 2

    @patch("ods_pipeline.run.write_workbook")
    def test_failure_is_reported_and_wrapped(
        self, mock_write, painel_client, quiet_alert_manager, alert_stream, tmp_path
    ):
        mock_write.side_effect = PermissionError("file is locked")

        export = IndicatorExport(
            output_path=str(tmp_path / "ods.xlsx"), client=painel_client,
            alert_manager=quiet_alert_manager,
        )
        with pytest.raises(ExportError, match="file is locked"):
            export.run()

        assert "ODS export failed" in alert_stream.getvalue()
        assert "PermissionError: file is locked" in alert_stream.getvalue()

    @patch("ods_pipeline.run.config.validate_config")
    def test_configuration_error_is_wrapped(
        self, mock_validate, painel_client, quiet_alert_manager, fake_api
    ):
        mock_validate.side_effect = ConfigurationError("bad city")

        export = IndicatorExport(client=painel_client, alert_manager=quiet_alert_manager)
        with pytest.raises(ExportError) as exc_info:
            export.run()

        assert isinstance(exc_info.value.__cause__, ConfigurationError)
        assert fake_api.requests == []

    def test_malformed_city_id_goes_through_failure_handler(
        self, monkeypatch, quiet_alert_manager, alert_stream, tmp_path
    ):
        monkeypatch.setattr("ods_pipeline.config.CITY_ID", "abc")

        export = IndicatorExport(
            output_path=str(tmp_path / "ods.xlsx"), alert_manager=quiet_alert_manager
        )
        with pytest.raises(ExportError) as exc_info:
            export.run()

        assert isinstance(exc_info.value.__cause__, ConfigurationError)
        assert "ODS export failed" in alert_stream.getvalue()
        assert "ConfigurationError" in alert_stream.getvalue()
        assert not (tmp_path / "ods.xlsx").exists()

    def test_default_output_path(self, quiet_alert_manager):
        export = IndicatorExport(alert_manager=quiet_alert_manager)

        assert export.output_path.name == "indicadores_organizados.xlsx"


@pytest.mark.unit
class TestMain:
    """Test the command-line entry point."""

    def test_parse_args_defaults(self):
        args = parse_args([])

        assert args.output is None
        assert args.log_level is None

    @patch("ods_pipeline.run.IndicatorExport")
    def test_success_exit_status(self, mock_export):
        assert main(["--output", "x.xlsx"]) == 0
        mock_export.assert_called_once_with(output_path="x.xlsx")
        mock_export.return_value.run.assert_called_once()

    @patch("ods_pipeline.run.IndicatorExport")
    def test_failure_exit_status(self, mock_export):
        mock_export.return_value.run.side_effect = ExportError("Export failed: boom")

        assert main([]) == 1

    @patch("ods_pipeline.run.notify_failure")
    def test_malformed_city_id_exit_status(self, mock_notify, monkeypatch, tmp_path):
        monkeypatch.setattr("ods_pipeline.config.CITY_ID", "abc")

        assert main(["--output", str(tmp_path / "ods.xlsx")]) == 1
        mock_notify.assert_called_once()
        assert isinstance(mock_notify.call_args.args[0], ConfigurationError)

    @patch("ods_pipeline.run.set_log_level")
    @patch("ods_pipeline.run.IndicatorExport", MagicMock())
    def test_log_level_option(self, mock_set_level):
        main(["--log-level", "DEBUG"])

        mock_set_level.assert_called_once_with("DEBUG")
