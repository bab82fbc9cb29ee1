"""Credential store backends keyed by email address."""
from __future__ import annotations

import logging
import re
import sqlite3
from pathlib import Path
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import StoreError
from .models import UserRecord

logger = logging.getLogger("authgate.store")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


class CredentialStore:
    """Key-value access to user records.

    Implementations must make :meth:`put_if_absent` atomic so that two
    concurrent signups for the same email cannot both succeed.
    """

    def initialize(self) -> None:
        """Prepare the backing table. Backends with managed tables do nothing."""

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        raise NotImplementedError

    def put_by_email(self, record: UserRecord) -> None:
        """Write ``record`` unconditionally, overwriting any existing entry."""
        raise NotImplementedError

    def put_if_absent(self, record: UserRecord) -> bool:
        """Insert ``record`` unless its email is taken. Returns ``False`` on conflict."""
        raise NotImplementedError


class SQLiteCredentialStore(CredentialStore):
    """SQLite-backed store with ``email`` as the primary key."""

    def __init__(self, path: Path, *, table: str = "users") -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name '{table}'")
        _ensure_directory(path)
        self._path = path
        self._table = table

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self._table} (
                        email TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        password TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to initialise table {self._table}") from exc

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT email, name, password FROM {self._table} WHERE email = ?",
                    (email,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError("Failed to read user record") from exc
        if row is None:
            return None
        return UserRecord.from_item(dict(row))

    def put_by_email(self, record: UserRecord) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO {self._table} (email, name, password) VALUES (?, ?, ?)",
                    (record.email, record.name, record.password),
                )
        except sqlite3.Error as exc:
            raise StoreError("Failed to write user record") from exc

    def put_if_absent(self, record: UserRecord) -> bool:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO {self._table} (email, name, password) VALUES (?, ?, ?)",
                    (record.email, record.name, record.password),
                )
        except sqlite3.IntegrityError:
            return False
        except sqlite3.Error as exc:
            raise StoreError("Failed to write user record") from exc
        return True


class DynamoDBCredentialStore(CredentialStore):
    """DynamoDB table whose partition key is ``email``."""

    def __init__(
        self,
        table_name: str,
        *,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        table: Any = None,
    ) -> None:
        if table is None:
            import boto3

            resource = boto3.resource("dynamodb", region_name=region, endpoint_url=endpoint_url)
            table = resource.Table(table_name)
        self._table = table
        self._table_name = table_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        try:
            response = self._table.get_item(Key={"email": email})
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Failed to read from DynamoDB table {self._table_name}") from exc
        item = response.get("Item")
        if not item:
            return None
        return UserRecord.from_item(item)

    def put_by_email(self, record: UserRecord) -> None:
        try:
            self._table.put_item(Item=record.to_item())
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Failed to write to DynamoDB table {self._table_name}") from exc

    def put_if_absent(self, record: UserRecord) -> bool:
        try:
            self._table.put_item(
                Item=record.to_item(),
                ConditionExpression="attribute_not_exists(email)",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return False
            raise StoreError(f"Failed to write to DynamoDB table {self._table_name}") from exc
        except BotoCoreError as exc:
            raise StoreError(f"Failed to write to DynamoDB table {self._table_name}") from exc
        return True


def build_store(settings: Settings) -> CredentialStore:
    """Instantiate the credential store selected by ``settings``."""

    if settings.store_backend == "dynamodb":
        logger.info(
            "Using DynamoDB table %s in %s", settings.table_name, settings.region
        )
        return DynamoDBCredentialStore(
            settings.table_name,
            region=settings.region,
            endpoint_url=settings.dynamodb_endpoint,
        )

    logger.info("Using SQLite credential store at %s (table %s)", settings.database_path, settings.table_name)
    return SQLiteCredentialStore(settings.database_path, table=settings.table_name)


__all__ = [
    "CredentialStore",
    "DynamoDBCredentialStore",
    "SQLiteCredentialStore",
    "build_store",
]
