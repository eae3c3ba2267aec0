"""Tests for the ``cdg`` command line interface."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from clinical_data_governance.cli.main import cli


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner(env={"CDG_REDACTION_SALT": "cli-salt"})


@pytest.fixture()
def config_args(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "governance.yaml")]


class TestVersion:
    def test_version(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "version"])
        assert result.exit_code == 0
        assert "clinical-data-governance" in result.output
        assert "2025.1" in result.output


class TestClassifyAndRedact:
    def test_classify_known_field(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "classify", "emiratesId"])
        assert result.exit_code == 0
        assert "restricted" in result.output
        assert "mask-middle-7" in result.output

    def test_classify_unknown_field_warns(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "classify", "favouriteColour"])
        assert result.exit_code == 0
        assert "Warning:" in result.output
        assert "public" in result.output

    def test_classify_unknown_field_with_error_policy(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "governance.yaml"
        config.write_text("classification:\n  unknown_fields: error\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "classify", "favouriteColour"])
        assert result.exit_code == 1
        assert "Unknown field" in result.output

    def test_redact(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "redact", "emiratesId", "784-1990-1234567-1"])
        assert result.exit_code == 0
        assert "784-1*******4567-1" in result.output

    def test_redact_refuses_field_without_rule(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "redact", "nextOfKin", "Omar Hassan"])
        assert result.exit_code == 1
        assert "Refused:" in result.output
        assert "Omar Hassan" not in result.output


class TestScoring:
    def test_score_file(self, runner: CliRunner, config_args: list[str], tmp_path: Path) -> None:
        checks = [{"rule_id": f"R{i}", "passed": i != 0} for i in range(20)]
        path = tmp_path / "checks.json"
        path.write_text(json.dumps(checks), encoding="utf-8")

        result = runner.invoke(cli, [*config_args, "score", str(path)])
        assert result.exit_code == 0
        assert "95" in result.output
        assert "excellent" in result.output
        assert "Passed: 19 of 20" in result.output

    def test_score_stdin_camel_case(self, runner: CliRunner, config_args: list[str]) -> None:
        checks = [{"ruleId": "A", "passed": True, "actualValue": 1}, {"ruleId": "B", "passed": False}]
        result = runner.invoke(cli, [*config_args, "score", "-"], input=json.dumps(checks))
        assert result.exit_code == 0
        assert "needsImprovement" in result.output

    def test_score_empty_list(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "score", "-"], input="[]")
        assert result.exit_code == 0
        assert "Passed: 0 of 0" in result.output

    def test_score_rejects_object(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "score", "-"], input="{}")
        assert result.exit_code == 1

    def test_score_rejects_bad_json(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "score", "-"], input="[{")
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    @pytest.mark.parametrize("passed", ["false", "true", 1, None])
    def test_score_rejects_non_boolean_passed(
        self, runner: CliRunner, config_args: list[str], passed: object
    ) -> None:
        checks = [{"rule_id": "A", "passed": True}, {"rule_id": "B", "passed": passed}]
        result = runner.invoke(cli, [*config_args, "score", "-"], input=json.dumps(checks))
        assert result.exit_code == 1
        assert "Malformed check result at index 1" in result.output
        assert "passed" in result.output
        assert "excellent" not in result.output

    def test_score_rejects_missing_passed(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "score", "-"], input='[{"rule_id": "A"}]')
        assert result.exit_code == 1
        assert "Malformed check result at index 0" in result.output

    @pytest.mark.parametrize("command", ["score", "evaluate"])
    def test_missing_input_file(
        self, runner: CliRunner, config_args: list[str], tmp_path: Path, command: str
    ) -> None:
        missing = tmp_path / "nope.json"
        result = runner.invoke(cli, [*config_args, command, str(missing)])
        assert result.exit_code == 2
        assert "does not exist" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_evaluate_non_numeric_metric_fails_check(
        self, runner: CliRunner, config_args: list[str]
    ) -> None:
        metrics = {"kpiReportingCompleteness": "high", "kpiTrainingCompletion": 99}
        result = runner.invoke(
            cli, [*config_args, "evaluate", "-", "--rule-set", "jawda"], input=json.dumps(metrics)
        )
        assert result.exit_code == 0
        assert "JAWDA-001" in result.output
        assert "FAIL" in result.output
        assert "nan" in result.output

    def test_evaluate_rule_set(self, runner: CliRunner, config_args: list[str]) -> None:
        metrics = {"kpiReportingCompleteness": 97, "kpiTrainingCompletion": 80}
        result = runner.invoke(
            cli, [*config_args, "evaluate", "-", "--rule-set", "jawda"], input=json.dumps(metrics)
        )
        assert result.exit_code == 0
        assert "JAWDA-001" in result.output
        assert "FAIL" in result.output

    def test_evaluate_unknown_rule_set(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "evaluate", "-", "-r", "nope"], input="{}")
        assert result.exit_code == 1
        assert "Unknown rule set" in result.output


class TestCatalogCommands:
    def test_validate_bundled(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "catalog", "validate"])
        assert result.exit_code == 0
        assert "Valid" in result.output

    def test_validate_file(
        self, runner: CliRunner, config_args: list[str], catalog_dict: dict, tmp_path: Path
    ) -> None:
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")
        result = runner.invoke(cli, [*config_args, "catalog", "validate", str(path)])
        assert result.exit_code == 0
        assert "test-1" in result.output

    def test_validate_invalid_file(
        self, runner: CliRunner, config_args: list[str], catalog_dict: dict, tmp_path: Path
    ) -> None:
        catalog_dict["anonymization_rules"]["ghost"] = "hash-with-salt"
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")
        result = runner.invoke(cli, [*config_args, "catalog", "validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid catalog" in result.output
        assert "ghost" in result.output

    def test_show(self, runner: CliRunner, config_args: list[str]) -> None:
        result = runner.invoke(cli, [*config_args, "catalog", "show"])
        assert result.exit_code == 0
        assert "topSecret" in result.output
        assert "daman" in result.output

    def test_invalid_config_exits(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "governance.yaml"
        config.write_text("logging:\n  level: loud\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "catalog", "show"])
        assert result.exit_code == 1
        assert "Invalid config" in result.output
