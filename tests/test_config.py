from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from authgate.config import DEFAULT_SESSION_SECRET, Settings, load_settings


def test_defaults_without_environment() -> None:
    settings = load_settings(environ={})

    assert settings.store_backend == "sqlite"
    assert settings.region == "us-east-1"
    assert settings.table_name == "Users"
    assert settings.session_secret == DEFAULT_SESSION_SECRET
    assert settings.session_ttl == timedelta(hours=8)
    assert settings.secure_cookies is False
    assert settings.port == 3000


def test_environment_overrides() -> None:
    settings = load_settings(
        environ={
            "AUTHGATE_STORE": "DynamoDB",
            "AWS_REGION": "eu-west-1",
            "DDB_TABLE": "Accounts",
            "DDB_ENDPOINT_URL": "http://localhost:8000",
            "SESSION_SECRET": "s3cret",
            "AUTHGATE_SESSION_TTL_HOURS": "2",
            "AUTHGATE_SESSION_SECURE": "yes",
            "PORT": "8080",
        }
    )

    assert settings.store_backend == "dynamodb"
    assert settings.region == "eu-west-1"
    assert settings.table_name == "Accounts"
    assert settings.dynamodb_endpoint == "http://localhost:8000"
    assert settings.session_secret == "s3cret"
    assert settings.session_ttl == timedelta(hours=2)
    assert settings.secure_cookies is True
    assert settings.port == 8080


def test_yaml_file_is_overridden_by_environment(tmp_path: Path) -> None:
    config_file = tmp_path / "authgate.yaml"
    config_file.write_text(
        "table: FromFile\nport: 5000\nsession_secret: file-secret\n"
        f"database_path: {tmp_path / 'users.sqlite3'}\n",
        encoding="utf-8",
    )

    settings = load_settings(config_file, environ={"PORT": "6000"})

    assert settings.table_name == "FromFile"
    assert settings.session_secret == "file-secret"
    assert settings.port == 6000
    assert settings.database_path == (tmp_path / "users.sqlite3").resolve()


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_file = tmp_path / "authgate.yaml"
    config_file.write_text("region: ap-south-1\n", encoding="utf-8")

    settings = load_settings(environ={"AUTHGATE_CONFIG": str(config_file)})

    assert settings.region == "ap-south-1"


@pytest.mark.parametrize(
    "data",
    [
        {"store": "redis"},
        {"port": "not-a-port"},
        {"port": 70000},
        {"session_ttl_hours": 0},
    ],
)
def test_invalid_values_are_rejected(data) -> None:
    with pytest.raises(ValueError):
        Settings.from_dict(data)


def test_non_mapping_config_file_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "authgate.yaml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config_file, environ={})
