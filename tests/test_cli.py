"""Tests for the CLI module."""

import json
from unittest.mock import MagicMock, patch

import pytest

from conftest import DEPOSIT_ID, make_deposit
from schemas.deposit import State
from vault_ingest.cli import main
from vault_ingest.exceptions import OutboxError
from vault_ingest.identifiers import URN_NBN_PREFIX


@pytest.fixture
def config_file(tmp_path, inbox):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "inbox": str(inbox),
        "outbox": str(tmp_path / "outbox"),
        "rda_bag_output_dir": str(tmp_path / "rda-bags"),
        "validate_dans_bag": {"base_url": "http://localhost:20330"},
        "vault_catalog": {"base_url": "http://localhost:20305"},
    }))
    return path


def _mock_flow(mock_flow_class) -> MagicMock:
    flow = MagicMock()
    flow.__enter__ = MagicMock(return_value=flow)
    flow.__exit__ = MagicMock(return_value=False)
    mock_flow_class.return_value = flow
    return flow


class TestCLIConvert:
    """Tests for the convert command."""

    def test_requires_config_or_paths(self, deposit_dir, caplog):
        result = main(["convert", "--deposit", str(deposit_dir)])

        assert result == 1
        assert "Must specify either --config or --inbox, --outbox, --output" in caplog.text

    def test_missing_deposit(self, tmp_path, config_file, caplog):
        result = main(["convert", "--deposit", str(tmp_path / "nope"), "--config", str(config_file)])

        assert result == 1
        assert "Deposit directory not found" in caplog.text

    def test_missing_config_file(self, deposit_dir, tmp_path, caplog):
        result = main(["convert", "--deposit", str(deposit_dir), "--config", str(tmp_path / "nope.json")])

        assert result == 1
        assert "Configuration file not found" in caplog.text

    def test_invalid_config_file(self, deposit_dir, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"inbox": "/tmp"}))

        result = main(["convert", "--deposit", str(deposit_dir), "--config", str(path)])

        assert result == 1
        assert "Invalid configuration" in caplog.text

    @patch("vault_ingest.cli.IngestFlow")
    def test_accepted(self, mock_flow_class, deposit_dir, config_file):
        flow = _mock_flow(mock_flow_class)
        flow.convert.return_value = State.ACCEPTED

        result = main(["convert", "--deposit", str(deposit_dir), "--config", str(config_file)])

        assert result == 0
        flow.convert.assert_called_once_with(deposit_dir.resolve())

    @patch("vault_ingest.cli.IngestFlow")
    def test_rejected(self, mock_flow_class, deposit_dir, config_file):
        _mock_flow(mock_flow_class).convert.return_value = State.REJECTED

        assert main(["convert", "--deposit", str(deposit_dir), "--config", str(config_file)]) == 1

    @patch("vault_ingest.cli.IngestFlow")
    def test_left_in_place(self, mock_flow_class, deposit_dir, config_file, caplog):
        _mock_flow(mock_flow_class).convert.side_effect = OutboxError("disk gone")

        result = main(["convert", "--deposit", str(deposit_dir), "--config", str(config_file)])

        assert result == 2
        assert "Deposit left in place" in caplog.text

    @patch("vault_ingest.cli.IngestFlow")
    def test_explicit_paths(self, mock_flow_class, deposit_dir, inbox, tmp_path):
        _mock_flow(mock_flow_class).convert.return_value = State.ACCEPTED

        result = main([
            "convert",
            "--deposit", str(deposit_dir),
            "--inbox", str(inbox),
            "--outbox", str(tmp_path / "outbox"),
            "--output", str(tmp_path / "bags"),
            "--catalog-url", "http://catalog:8080",
            "--update-detection", "is-version-of",
        ])

        assert result == 0
        config = mock_flow_class.call_args.args[0]
        assert config.vault_catalog == {"base_url": "http://catalog:8080"}
        assert config.validate_dans_bag == {"base_url": "http://localhost:20330"}
        assert config.update_detection == "is-version-of"


class TestCLIRun:
    """Tests for the run command."""

    def test_missing_inbox(self, tmp_path, caplog):
        result = main([
            "run",
            "--inbox", str(tmp_path / "nope"),
            "--outbox", str(tmp_path / "outbox"),
            "--output", str(tmp_path / "bags"),
        ])

        assert result == 1
        assert "Inbox not found" in caplog.text

    @patch("vault_ingest.cli.IngestFlow")
    def test_run_once(self, mock_flow_class, config_file, caplog):
        flow = _mock_flow(mock_flow_class)
        area = flow.ingest_area.return_value
        area.run_once.return_value = {"a": State.ACCEPTED, "b": State.FAILED}
        area.stuck = set()

        with caplog.at_level("INFO"):
            result = main(["run", "--config", str(config_file)])

        assert result == 0
        area.run_once.assert_called_once()
        area.run_forever.assert_not_called()
        assert "Processed 2 deposits" in caplog.text

    @patch("vault_ingest.cli.IngestFlow")
    def test_watch(self, mock_flow_class, config_file):
        area = _mock_flow(mock_flow_class).ingest_area.return_value
        area.stuck = set()

        result = main(["run", "--watch", "--config", str(config_file)])

        assert result == 0
        area.run_forever.assert_called_once()

    @patch("vault_ingest.cli.IngestFlow")
    def test_stuck_deposits(self, mock_flow_class, config_file, inbox, caplog):
        area = _mock_flow(mock_flow_class).ingest_area.return_value
        area.run_once.return_value = {}
        area.stuck = {inbox / "stuck-deposit"}

        result = main(["run", "--config", str(config_file)])

        assert result == 2
        assert "stuck-deposit" in caplog.text


class TestCLIStatus:
    def test_prints_snapshot(self, config_file, inbox, capsys):
        make_deposit(inbox)

        result = main(["status", "--config", str(config_file)])

        assert result == 0
        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["inbox"] == 1
        assert snapshot["processed"] == 0


class TestCLIMint:
    def test_mint(self, capsys):
        assert main(["mint", "--count", "2"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert all(line.startswith(URN_NBN_PREFIX) for line in lines)
        assert lines[0] != lines[1]


class TestCLIEndToEnd:
    def test_convert_with_real_flow(self, deposit_dir, config_file, tmp_path, mock_validator, mock_catalog):
        """convert runs the real flow with stubbed services."""
        with patch("vault_ingest.pipeline.orchestrator.BagValidator", return_value=mock_validator), \
                patch("vault_ingest.pipeline.orchestrator.VaultCatalogClient", return_value=mock_catalog):
            result = main(["convert", "--deposit", str(deposit_dir), "--config", str(config_file)])

        assert result == 0
        assert (tmp_path / "rda-bags" / f"vaas-{DEPOSIT_ID}-v1.zip").exists()
        assert (tmp_path / "outbox" / "processed" / DEPOSIT_ID).is_dir()


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "vault-ingest" in capsys.readouterr().out
