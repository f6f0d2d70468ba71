"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from stockledger.config.settings import LedgerSettings, StorageSettings, SummarySettings


class TestLedgerSettings:
    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.conflict_retries == 1
        assert (settings.conversion_prefix, settings.production_prefix) == ("CONV", "PROD")

    def test_prefix_normalized(self, monkeypatch):
        monkeypatch.setenv("LEDGER_CONVERSION_PREFIX", " cv ")
        assert LedgerSettings().conversion_prefix == "CV"

    @pytest.mark.parametrize("prefix", ["C", "CONV-1", "TOOLONGPREFIX"])
    def test_bad_prefix(self, prefix):
        with pytest.raises(ValidationError):
            LedgerSettings(conversion_prefix=prefix)

    def test_prefixes_must_differ(self):
        with pytest.raises(ValidationError):
            LedgerSettings(conversion_prefix="PROD")

    def test_retries_bounded(self):
        with pytest.raises(ValidationError):
            LedgerSettings(conflict_retries=-1)


class TestOtherGroups:
    def test_db_path(self, tmp_path):
        settings = StorageSettings(data_dir=tmp_path, db_name="x.db")
        assert settings.db_path == tmp_path / "x.db"

    def test_pool_size_positive(self):
        with pytest.raises(ValidationError):
            StorageSettings(pool_size=0)

    def test_max_parallel_from_env(self, monkeypatch):
        monkeypatch.setenv("SUMMARY_MAX_PARALLEL", "8")
        assert SummarySettings().max_parallel == 8
