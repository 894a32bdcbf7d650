from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(data.get("host", "localhost")),
            port=int(data.get("port", 3306)),
            user=str(data.get("user", "root")),
            password=str(data.get("password", "")),
            database=str(data.get("database", "school_attendance")),
            connect_timeout=int(data.get("connect_timeout", 10)),
        )


class DatabaseConnection:
    """Connection factory for the document store.

    One short-lived connection per store operation; `get_instance` shares a
    factory per distinct config.
    """

    _instances: dict[DBConfig, "DatabaseConnection"] = {}

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def database(self) -> str:
        return self._config.database

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if config not in cls._instances:
            logger.debug("New connection factory for %s@%s/%s", config.user, config.host, config.database)
            cls._instances[config] = cls(config)
        return cls._instances[config]

    def connect(self):
        cfg = self._config
        return mysql.connector.connect(
            host=cfg.host,
            port=cfg.port,
            user=cfg.user,
            password=cfg.password,
            database=cfg.database,
            connection_timeout=cfg.connect_timeout,
        )
