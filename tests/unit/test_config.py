"""
Unit tests for configuration loading
"""
import logging
from unittest.mock import patch

import pytest

from highscores.config import Settings, load_env_file, load_settings


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert settings.port == 5000
        assert settings.storage_backend == "dynamodb"
        assert settings.table_name == "highscores"
        assert settings.cors_origins == ["*"]
        assert settings.rate_limit_enabled is True
        assert settings.trust_forwarded_for is False

    def test_values_from_environment(self):
        settings = load_settings(
            {
                "PORT": "8080",
                "HOST": "127.0.0.1",
                "STORAGE_BACKEND": "Memory",
                "DDB_TABLE_HIGHSCORES": "puzzle-scores",
                "HIGHSCORES_DOCUMENT_ID": "season-1",
                "AWS_REGION": "eu-west-1",
                "AWS_ENDPOINT_URL": "http://localhost:4566",
                "DDB_CREATE_TABLE": "true",
                "CORS_ORIGINS": "http://a.example, http://b.example,",
                "DISABLE_RATE_LIMIT": "TRUE",
                "RATE_LIMIT_REQUESTS": "30",
                "RATE_LIMIT_WINDOW_SECONDS": "10",
                "TRUST_FORWARDED_FOR": "yes",
                "LOG_LEVEL": "DEBUG",
                "LOG_FILE": "/tmp/highscores.log",
            }
        )
        assert settings.port == 8080
        assert settings.host == "127.0.0.1"
        assert settings.storage_backend == "memory"
        assert settings.table_name == "puzzle-scores"
        assert settings.document_id == "season-1"
        assert settings.aws_region == "eu-west-1"
        assert settings.aws_endpoint_url == "http://localhost:4566"
        assert settings.create_table is True
        assert settings.cors_origins == ["http://a.example", "http://b.example"]
        assert settings.rate_limit_enabled is False
        assert settings.rate_limit_requests == 30
        assert settings.rate_limit_window_seconds == 10
        assert settings.trust_forwarded_for is True
        assert settings.log_level == "DEBUG"
        assert settings.log_file == "/tmp/highscores.log"

    def test_default_region_fallback(self):
        assert load_settings({"AWS_DEFAULT_REGION": "ap-south-1"}).aws_region == "ap-south-1"

    def test_empty_endpoint_treated_as_unset(self):
        assert load_settings({"AWS_ENDPOINT_URL": ""}).aws_endpoint_url is None

    @pytest.mark.parametrize(
        "name,raw,attr,expected",
        [
            ("PORT", "abc", "port", 5000),
            ("PORT", "-1", "port", 5000),
            ("PORT", "70000", "port", 5000),
            ("RATE_LIMIT_REQUESTS", "0", "rate_limit_requests", 120),
            ("RATE_LIMIT_REQUESTS", "20000", "rate_limit_requests", 120),
            ("RATE_LIMIT_WINDOW_SECONDS", "nope", "rate_limit_window_seconds", 60),
            ("RATE_LIMIT_WINDOW_SECONDS", "7200", "rate_limit_window_seconds", 60),
        ],
    )
    def test_invalid_numbers_fall_back(self, caplog, name, raw, attr, expected):
        with caplog.at_level(logging.WARNING):
            settings = load_settings({name: raw})
        assert getattr(settings, attr) == expected
        assert name in caplog.text

    def test_unknown_backend_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert load_settings({"STORAGE_BACKEND": "redis"}).storage_backend == "dynamodb"
        assert "redis" in caplog.text

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("DDB_TABLE_HIGHSCORES", "from-env")
        assert load_settings().table_name == "from-env"


class TestLoadEnvFile:
    def test_falls_back_to_default_location(self):
        with patch("highscores.config.Path.exists", return_value=False), \
             patch("highscores.config.load_dotenv") as mock_load:
            load_env_file()
        mock_load.assert_called_once_with()

    def test_project_env_file(self):
        with patch("highscores.config.Path.exists", return_value=True), \
             patch("highscores.config.load_dotenv") as mock_load:
            load_env_file()
        args, kwargs = mock_load.call_args
        assert args[0].name == ".env"
        assert kwargs == {"encoding": "utf-8-sig"}
