from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
from botocore.exceptions import ClientError

from authgate.config import Settings
from authgate.errors import StoreError
from authgate.models import UserRecord
from authgate.store import DynamoDBCredentialStore, SQLiteCredentialStore, build_store


ANN = UserRecord(email="ann@x.com", name="Ann", password="$2b$10$hash")


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteCredentialStore:
    db = SQLiteCredentialStore(tmp_path / "authgate.sqlite3")
    db.initialize()
    return db


class FakeTable:
    """Minimal stand-in for a boto3 DynamoDB ``Table`` resource."""

    def __init__(self) -> None:
        self.items: Dict[str, Dict[str, Any]] = {}
        self.fail_with: str | None = None

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_with:
            raise ClientError({"Error": {"Code": self.fail_with, "Message": "boom"}}, operation)

    def get_item(self, *, Key):
        self._maybe_fail("GetItem")
        item = self.items.get(Key["email"])
        return {"Item": dict(item)} if item else {}

    def put_item(self, *, Item, ConditionExpression=None):
        self._maybe_fail("PutItem")
        if ConditionExpression == "attribute_not_exists(email)" and Item["email"] in self.items:
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "exists"}},
                "PutItem",
            )
        self.items[Item["email"]] = dict(Item)
        return {}


def test_sqlite_get_missing_returns_none(store: SQLiteCredentialStore) -> None:
    assert store.get_by_email("nobody@example.com") is None


def test_sqlite_put_if_absent_inserts_once(store: SQLiteCredentialStore) -> None:
    assert store.put_if_absent(ANN) is True
    assert store.put_if_absent(UserRecord(email=ANN.email, name="Bob", password="other")) is False

    stored = store.get_by_email(ANN.email)
    assert stored == ANN


def test_sqlite_put_by_email_overwrites(store: SQLiteCredentialStore) -> None:
    store.put_by_email(ANN)
    replacement = UserRecord(email=ANN.email, name="Ann Updated", password="new-hash")
    store.put_by_email(replacement)

    assert store.get_by_email(ANN.email) == replacement


def test_sqlite_email_lookup_is_exact(store: SQLiteCredentialStore) -> None:
    store.put_if_absent(ANN)
    assert store.get_by_email("ANN@x.com") is None


def test_sqlite_rejects_unsafe_table_name(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        SQLiteCredentialStore(tmp_path / "db.sqlite3", table="users; DROP TABLE users")


def test_sqlite_uninitialised_table_raises_store_error(tmp_path: Path) -> None:
    db = SQLiteCredentialStore(tmp_path / "empty.sqlite3")
    with pytest.raises(StoreError):
        db.get_by_email(ANN.email)


def test_dynamodb_put_if_absent_uses_condition() -> None:
    table = FakeTable()
    db = DynamoDBCredentialStore("Users", table=table)

    assert db.put_if_absent(ANN) is True
    assert db.put_if_absent(UserRecord(email=ANN.email, name="Bob", password="x")) is False
    assert db.get_by_email(ANN.email) == ANN
    assert table.items[ANN.email] == {"email": "ann@x.com", "name": "Ann", "password": "$2b$10$hash"}


def test_dynamodb_put_by_email_overwrites() -> None:
    table = FakeTable()
    db = DynamoDBCredentialStore("Users", table=table)
    db.put_by_email(ANN)
    db.put_by_email(UserRecord(email=ANN.email, name="Other", password="p"))

    assert db.get_by_email(ANN.email).name == "Other"


def test_dynamodb_errors_are_wrapped() -> None:
    table = FakeTable()
    table.fail_with = "ProvisionedThroughputExceededException"
    db = DynamoDBCredentialStore("Users", table=table)

    with pytest.raises(StoreError):
        db.get_by_email(ANN.email)
    with pytest.raises(StoreError):
        db.put_if_absent(ANN)
    with pytest.raises(StoreError):
        db.put_by_email(ANN)


def test_build_store_defaults_to_sqlite(tmp_path: Path) -> None:
    settings = Settings(database_path=tmp_path / "users.sqlite3", table_name="Users")
    db = build_store(settings)

    assert isinstance(db, SQLiteCredentialStore)
    assert db.path == tmp_path / "users.sqlite3"
    db.initialize()
    assert db.put_if_absent(ANN) is True
