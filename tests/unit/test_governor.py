"""Tests for convenience.py: DataProtectionGovernor."""
from __future__ import annotations

import threading
import warnings
from pathlib import Path

import pytest
import yaml

from clinical_data_governance import DataProtectionGovernor
from clinical_data_governance.audit.logger import AuditLogger
from clinical_data_governance.catalog.loader import CatalogValidationError, load_default_catalog
from clinical_data_governance.catalog.model import Category, PolicyCatalog
from clinical_data_governance.classification.field_classifier import UnknownFieldError
from clinical_data_governance.compliance.scorer import ComplianceStatus
from clinical_data_governance.config.loader import ConfigLoader
from clinical_data_governance.redaction.engine import MissingRedactionRuleError

SALT = b"governor-salt"


@pytest.fixture()
def audit(tmp_path: Path) -> AuditLogger:
    return AuditLogger(tmp_path / "audit.jsonl", session_id="s-1")


@pytest.fixture()
def governor(small_catalog: PolicyCatalog, audit: AuditLogger) -> DataProtectionGovernor:
    return DataProtectionGovernor(catalog=small_catalog, salt=SALT, audit_logger=audit)


class TestQuickstart:
    def test_zero_config(self) -> None:
        governor = DataProtectionGovernor(salt=SALT)
        assert governor.catalog is load_default_catalog()
        assert governor.redact("emiratesId", "784-1990-1234567-1") == "784-1*******4567-1"

    def test_classify_and_score(self) -> None:
        governor = DataProtectionGovernor(salt=SALT)
        assert governor.classify("diagnosis").category is Category.RESTRICTED
        result = governor.assess({"authorizationSuccessRate": 99.0}, rule_set="daman")
        assert result.total == 6
        assert result.passed == 1

    def test_repr_names_catalog(self, governor: DataProtectionGovernor) -> None:
        assert "test-1" in repr(governor)


class TestDelegation:
    def test_redact(self, governor: DataProtectionGovernor) -> None:
        assert governor.redact("phone", "0501234567") == "050123****"

    def test_redact_fails_closed(self, governor: DataProtectionGovernor) -> None:
        with pytest.raises(MissingRedactionRuleError):
            governor.redact("nextOfKin", "Omar")

    def test_score_components(self, governor: DataProtectionGovernor) -> None:
        result = governor.score_components({"uptime": 100.0, "documentation": 100.0, "security": 100.0})
        assert result.overall == 100

    def test_evaluate_and_score(self, governor: DataProtectionGovernor) -> None:
        results = governor.evaluate({"uptime": 99.9, "latencyMs": 120}, rule_set="demo")
        assert governor.score(results).status is ComplianceStatus.EXCELLENT

    def test_assess(self, governor: DataProtectionGovernor) -> None:
        result = governor.assess({"uptime": 50, "latencyMs": 120}, rule_set="demo")
        assert result.overall == 50
        assert result.status is ComplianceStatus.NEEDS_IMPROVEMENT

    def test_components_share_catalog(self, governor: DataProtectionGovernor, small_catalog: PolicyCatalog) -> None:
        assert governor.classifier.catalog is small_catalog
        assert governor.engine.classifier is governor.classifier
        assert governor.scorer.thresholds == small_catalog.thresholds


class TestConfigWiring:
    def test_unknown_field_policy_from_config(self, small_catalog: PolicyCatalog) -> None:
        config = ConfigLoader().load_string("classification:\n  unknown_fields: error\n")
        governor = DataProtectionGovernor(config=config, catalog=small_catalog, salt=SALT)
        with pytest.raises(UnknownFieldError):
            governor.classify("favouriteColour")

    def test_salt_from_configured_env_var(
        self, small_catalog: PolicyCatalog, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CLINIC_SALT", "clinic-secret")
        config = ConfigLoader().load_string("redaction:\n  salt_env_var: CLINIC_SALT\n")
        from_env = DataProtectionGovernor(config=config, catalog=small_catalog)
        explicit = DataProtectionGovernor(catalog=small_catalog, salt=b"clinic-secret")
        assert from_env.redact("genome", "ACGT") == explicit.redact("genome", "ACGT")

    def test_audit_enabled_from_config_file(
        self, catalog_dict: dict, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CDG_REDACTION_SALT", "file-salt")
        (tmp_path / "catalog.yaml").write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")
        config_path = tmp_path / "governance.yaml"
        config_path.write_text(
            "catalog_path: catalog.yaml\naudit:\n  enabled: true\n  log_path: audit.jsonl\n",
            encoding="utf-8",
        )
        governor = DataProtectionGovernor.from_config_file(config_path)
        assert governor.catalog.version == "test-1"

        governor.redact_record({"memberId": "DM-1"})
        assert AuditLogger(tmp_path / "audit.jsonl").count() == 1


class TestRedactRecordAudit:
    def test_audits_field_names_only(self, governor: DataProtectionGovernor, audit: AuditLogger) -> None:
        redacted = governor.redact_record(
            {"clinicName": "Al Noor", "memberId": "DM-778899", "phone": "0501234567"}
        )
        assert redacted["memberId"] == "DM-***899"

        records = audit.read_all()
        assert len(records) == 1
        event = records[0]
        assert event["event"] == "record_redacted"
        assert event["catalog_version"] == "test-1"
        assert event["fields"] == ["memberId", "phone"]
        assert event["categories"] == {"memberId": "restricted", "phone": "confidential"}
        text = (audit.log_path).read_text(encoding="utf-8")
        assert "DM-778899" not in text
        assert "0501234567" not in text

    def test_no_event_for_public_only_record(
        self, governor: DataProtectionGovernor, audit: AuditLogger
    ) -> None:
        governor.redact_record({"clinicName": "Al Noor"})
        assert audit.count() == 0

    def test_unknown_fields_not_audited(self, governor: DataProtectionGovernor, audit: AuditLogger) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            governor.redact_record({"favouriteColour": "blue", "phone": "0501234567"})
        assert audit.read_all()[0]["fields"] == ["phone"]

    def test_nothing_audited_when_redaction_refused(
        self, governor: DataProtectionGovernor, audit: AuditLogger
    ) -> None:
        with pytest.raises(MissingRedactionRuleError):
            governor.redact_record({"phone": "0501234567", "nextOfKin": "Omar"})
        assert audit.count() == 0

    def test_no_audit_logger(self, small_catalog: PolicyCatalog) -> None:
        governor = DataProtectionGovernor(catalog=small_catalog, salt=SALT)
        assert governor.redact_record({"phone": "0501234567"}) == {"phone": "050123****"}


class TestReload:
    def test_reload_swaps_components(
        self, governor: DataProtectionGovernor, catalog_dict: dict, tmp_path: Path
    ) -> None:
        catalog_dict["version"] = "test-2"
        catalog_dict["field_groups"][3]["anonymization"] = "mask-last-2"
        path = tmp_path / "next.yaml"
        path.write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")

        old_engine = governor.engine
        fresh = governor.reload(path)
        assert fresh.version == "test-2"
        assert governor.catalog is fresh
        assert governor.engine is not old_engine
        assert governor.redact("phone", "0501234567") == "05012345**"
        assert old_engine.redact("phone", "0501234567") == "050123****"

    def test_invalid_reload_keeps_serving(
        self, governor: DataProtectionGovernor, catalog_dict: dict, tmp_path: Path
    ) -> None:
        catalog_dict["anonymization_rules"]["ghost"] = "hash-with-salt"
        path = tmp_path / "broken.yaml"
        path.write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")

        before = governor.catalog
        with pytest.raises(CatalogValidationError):
            governor.reload(path)
        assert governor.catalog is before
        assert governor.redact("phone", "0501234567") == "050123****"

    def test_reload_without_path_uses_bundled(self, governor: DataProtectionGovernor) -> None:
        fresh = governor.reload()
        assert fresh.version == load_default_catalog().version
        assert governor.classify("emiratesId").pii_or_phi == "pii"

    def test_concurrent_reloads_leave_store_and_components_aligned(
        self, governor: DataProtectionGovernor, catalog_dict: dict, tmp_path: Path
    ) -> None:
        paths = []
        for version in ("test-a", "test-b"):
            catalog_dict["version"] = version
            path = tmp_path / f"{version}.yaml"
            path.write_text(yaml.safe_dump(catalog_dict), encoding="utf-8")
            paths.append(path)

        errors: list[Exception] = []

        def reload_many(path: Path) -> None:
            try:
                for _ in range(10):
                    governor.reload(path)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=reload_many, args=(paths[i % 2],)) for i in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert governor._store.current is governor.catalog
        assert governor.engine.classifier.catalog is governor.catalog
        assert governor.catalog.version in {"test-a", "test-b"}
