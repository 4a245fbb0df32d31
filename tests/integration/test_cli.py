"""
Integration tests for the command-line interface.
"""

import json
from types import SimpleNamespace

import pytest
from click.testing import CliRunner

from claims_adjudication.cli import _config, main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestAdjudicateCommand:
    """Tests for `claims-adjudication adjudicate`."""

    def test_prints_decision(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "adjudicate", "1001"])

        assert result.exit_code == 0, result.output
        assert "Decision: APPROVED" in result.output
        assert "Member responsibility: 240.00" in result.output
        assert "[PASS] Claim within fee schedule" in result.output

    def test_json_output(self, runner, dataset_dir):
        result = runner.invoke(
            main, ["--data", str(dataset_dir), "adjudicate", "1002", "--json", "--dry-run"]
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["overall_decision"] == "APPROVED"
        assert payload["approved_amount"] == "2000.00"

    def test_denial_reasons_listed(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "adjudicate", "1003"])

        assert result.exit_code == 0, result.output
        assert "Decision: DENIED" in result.output
        assert "Member age 14 is below minimum age 18" in result.output

    def test_unknown_claim(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "adjudicate", "9999"])

        assert result.exit_code == 1
        assert "Error: Claim 9999 not found" in result.output

    def test_missing_dataset(self, runner, tmp_path):
        result = runner.invoke(main, ["--data", str(tmp_path / "nowhere"), "adjudicate", "1"])

        assert result.exit_code == 1
        assert "Dataset file not found" in result.output


class TestBatchCommand:
    """Tests for `claims-adjudication batch`."""

    def test_summary(self, runner, dataset_dir):
        result = runner.invoke(
            main, ["--data", str(dataset_dir), "batch", "1001", "1002", "1003", "1004", "1005"]
        )

        assert result.exit_code == 0, result.output
        assert "=== Batch Complete ===" in result.output
        assert "Processed: 5" in result.output
        assert "Requires review: 1" in result.output
        assert "Total approved amount: 23000.00" in result.output

    def test_parallel_with_workers(self, runner, dataset_dir):
        result = runner.invoke(
            main,
            ["--data", str(dataset_dir), "batch", "1001", "1002", "--parallel", "--workers", "2"],
        )

        assert result.exit_code == 0, result.output
        assert "Approved: 2" in result.output

    def test_errors_listed(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "batch", "1001", "4242"])

        assert result.exit_code == 0, result.output
        assert "Claim 4242: Claim 4242 not found" in result.output

    def test_json_output(self, runner, dataset_dir):
        result = runner.invoke(
            main, ["--data", str(dataset_dir), "batch", "1001", "1005", "--json"]
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["processed_claims"] == 2
        assert payload["denied_claims"] == 1

    def test_rejects_zero_workers(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "batch", "1001", "--workers", "0"])

        assert result.exit_code == 1
        assert "--workers must be at least 1" in result.output


class TestValidateConfigCommand:
    def test_valid(self, runner, dataset_dir):
        result = runner.invoke(main, ["--data", str(dataset_dir), "validate-config"])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid." in result.output

    def test_explicit_config_file(self, runner, dataset_dir, tmp_path):
        config_file = tmp_path / "adjudication.yaml"
        config_file.write_text(
            "engine:\n  high_value_threshold: 20000\n"
            "review:\n  medium_priority_threshold: 5000\n  high_priority_threshold: 30000\n"
        )

        result = runner.invoke(
            main, ["--config", str(config_file), "--data", str(dataset_dir), "validate-config"]
        )

        assert result.exit_code == 0, result.output
        assert "review.high_priority_threshold (30000)" in result.output

    def test_invalid_tier_name(self, runner, dataset_dir, tmp_path):
        config_file = tmp_path / "adjudication.yaml"
        config_file.write_text("network:\n  tier_discounts:\n    gold_plated: 5\n")

        result = runner.invoke(
            main, ["--config", str(config_file), "--data", str(dataset_dir), "validate-config"]
        )

        assert result.exit_code == 1
        assert "Unknown network tiers" in result.output

    def test_data_option_overrides_config_file(self, runner, dataset_dir, tmp_path):
        config_file = tmp_path / "adjudication.yaml"
        config_file.write_text(f"data_path: {tmp_path / 'nowhere'}\n")

        result = runner.invoke(
            main, ["--config", str(config_file), "--data", str(dataset_dir), "validate-config"]
        )

        assert result.exit_code == 0, result.output
        assert "Data path does not exist" not in result.output


class TestOptionOverrides:
    """Command-line values are merged over the configuration file."""

    def test_batch_options_merge_into_file_section(self, tmp_path):
        config_file = tmp_path / "adjudication.yaml"
        config_file.write_text("batch:\n  batch_size: 3\n  max_workers: 2\n")
        ctx = SimpleNamespace(obj={"config_path": str(config_file), "data_path": str(tmp_path)})

        config = _config(ctx, max_workers=6, parallel=True)

        assert config.batch.batch_size == 3
        assert config.batch.max_workers == 6
        assert config.batch.parallel is True
        assert config.data_path == tmp_path

    def test_unset_options_keep_file_values(self, tmp_path):
        config_file = tmp_path / "adjudication.yaml"
        config_file.write_text("batch:\n  max_workers: 2\n  parallel: true\n")
        ctx = SimpleNamespace(obj={"config_path": str(config_file), "data_path": None})

        config = _config(ctx, max_workers=None, parallel=None)

        assert config.batch.max_workers == 2
        assert config.batch.parallel is True
