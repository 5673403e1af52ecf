"""Tests for IamScopeConfig."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from iamscope import IamScopeConfig, LogLevel, load_config_from_env
from iamscope.config import CLOUD_PLATFORM_SCOPE
from pydantic import ValidationError


class TestIamScopeConfig:
    """Tests for IamScopeConfig model."""

    def test_create_default_config(self) -> None:
        config = IamScopeConfig()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.credentials_path is None
        assert config.scopes == [CLOUD_PLATFORM_SCOPE]
        assert config.default_resource_id is None
        assert config.fetch_concurrency == 1
        assert config.owner_implies_all_roles is True

    def test_log_level_from_string(self) -> None:
        config = IamScopeConfig(log_level="debug")
        assert config.log_level == LogLevel.DEBUG

    def test_log_level_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            IamScopeConfig(log_level="INVALID")

    def test_fetch_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            IamScopeConfig(fetch_concurrency=0)

    def test_scopes_required(self) -> None:
        with pytest.raises(ValueError, match="OAuth scope"):
            IamScopeConfig(scopes=["  "])

    def test_blank_strings_become_none(self) -> None:
        config = IamScopeConfig(default_resource_id="  ", credentials_path="")
        assert config.default_resource_id is None
        assert config.credentials_path is None

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            IamScopeConfig(unknown_field=True)


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.INFO
        assert config.fetch_concurrency == 1
        assert config.owner_implies_all_roles is True

    def test_custom_values(self) -> None:
        env = {
            "LOG_LEVEL": "WARNING",
            "LOG_JSON": "true",
            "SERVICE_NAME": "iam-checker",
            "GOOGLE_APPLICATION_CREDENTIALS": "/secrets/sa.json",
            "IAMSCOPE_SCOPES": "scope-a, scope-b",
            "GOOGLE_CLOUD_PROJECT_ID": "my-project",
            "IAMSCOPE_FETCH_CONCURRENCY": "8",
            "IAMSCOPE_OWNER_IMPLIES_ALL_ROLES": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.WARNING
        assert config.log_json is True
        assert config.service_name == "iam-checker"
        assert config.credentials_path == "/secrets/sa.json"
        assert config.scopes == ["scope-a", "scope-b"]
        assert config.default_resource_id == "my-project"
        assert config.fetch_concurrency == 8
        assert config.owner_implies_all_roles is False
