from __future__ import annotations

import pytest

from src.school_ops.school_ops.container import build_container
from src.school_ops.school_ops.database.connection import DatabaseConnection, DBConfig


def test_db_config_defaults():
    config = DBConfig.from_mapping({"host": "db.local", "port": "3307"})

    assert config == DBConfig(host="db.local", port=3307, user="root", password="", database="school_ops")


def test_db_config_requires_host():
    with pytest.raises(ValueError):
        DBConfig.from_mapping({"user": "root"})


def test_new_config_replaces_factory():
    first = DatabaseConnection.get_instance(DBConfig.from_mapping({"host": "a"}))
    same = DatabaseConnection.get_instance(DBConfig.from_mapping({"host": "a"}))
    other = DatabaseConnection.get_instance(DBConfig.from_mapping({"host": "b", "database": "school_ops_test"}))

    assert first is same
    assert other is not first
    assert other.config.database == "school_ops_test"


def test_mysql_backend_wires_configured_factory():
    container = build_container(backend="mysql", db_config={"host": "c", "user": "app", "database": "ops"})

    assert container.conn.config == DBConfig(host="c", port=3306, user="app", password="", database="ops")
