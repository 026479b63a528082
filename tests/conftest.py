"""
tests/conftest.py
Shared fixtures for the modelgen test suite.

No external mocking libraries are used: schema readers run against real
SQLite databases created inside pytest's ``tmp_path``, and config files are
written with PyYAML.
"""

from __future__ import annotations

import pathlib
import sqlite3
from typing import Any, Dict, List

import pytest
import yaml

from modelgen.models import Column, ForeignKey, GeneratorConfig


# ---------------------------------------------------------------------------
# SQLite fixtures
# ---------------------------------------------------------------------------

BLOG_SCHEMA_SQL: str = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(255) NOT NULL,
    email VARCHAR(255) NOT NULL UNIQUE,
    password VARCHAR(255) NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME,
    updated_at DATETIME
);

CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title VARCHAR(200) NOT NULL,
    body TEXT,
    status VARCHAR(20) NOT NULL DEFAULT 'draft',
    views INTEGER NOT NULL DEFAULT 0,
    price DECIMAL(10,2),
    published_at DATETIME,
    created_at DATETIME,
    updated_at DATETIME,
    deleted_at DATETIME
);

CREATE INDEX posts_status_index ON posts (status);

CREATE TABLE comments (
    id INTEGER PRIMARY KEY,
    post_id INTEGER NOT NULL REFERENCES posts,
    body TEXT NOT NULL,
    created_at DATETIME,
    updated_at DATETIME
);

CREATE TABLE post_tag (
    post_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL,
    PRIMARY KEY (post_id, tag_id)
);

CREATE TABLE migrations (
    id INTEGER PRIMARY KEY,
    migration VARCHAR(255) NOT NULL
);
"""

BLOG_TABLES: List[str] = ["comments", "post_tag", "posts", "users"]


@pytest.fixture()
def sqlite_db(tmp_path: pathlib.Path) -> pathlib.Path:
    """A blog database file with users, posts, comments and a pivot table."""
    path = tmp_path / "blog.sqlite"
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(BLOG_SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture()
def config_dict(sqlite_db: pathlib.Path) -> Dict[str, Any]:
    return {
        "modelgen": {
            "default_connection": "main",
            "connections": {
                "main": {"driver": "sqlite", "database": str(sqlite_db)},
            },
        }
    }


@pytest.fixture()
def sqlite_config(config_dict: Dict[str, Any]) -> GeneratorConfig:
    return GeneratorConfig.from_mapping(config_dict)


@pytest.fixture()
def config_yaml_path(config_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the config dict to a temporary YAML file and return its path."""
    path = tmp_path / "modelgen.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(config_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "out"


# ---------------------------------------------------------------------------
# Canonical column fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_columns() -> List[Column]:
    return [
        Column(name="id", type="integer", primary=True, nullable=False, extra="auto_increment"),
        Column(name="name", type="varchar(255)", nullable=False),
        Column(name="email", type="varchar(255)", nullable=False),
        Column(name="password", type="varchar(255)", nullable=False),
        Column(name="is_active", type="tinyint(1)", nullable=False, default="1"),
        Column(name="settings", type="json"),
        Column(name="created_at", type="timestamp"),
        Column(name="updated_at", type="timestamp"),
    ]


@pytest.fixture()
def post_columns() -> List[Column]:
    return [
        Column(name="id", type="integer", primary=True, nullable=False, extra="auto_increment"),
        Column(name="user_id", type="integer", nullable=False),
        Column(name="title", type="varchar(200)", nullable=False),
        Column(
            name="status",
            type="enum",
            type_extra="enum('draft','published')",
            nullable=False,
            default="draft",
        ),
        Column(name="views", type="integer", nullable=False, default="0"),
        Column(name="published_at", type="datetime"),
        Column(name="created_at", type="timestamp"),
        Column(name="updated_at", type="timestamp"),
        Column(name="deleted_at", type="timestamp"),
    ]


@pytest.fixture()
def post_foreign_keys() -> List[ForeignKey]:
    return [ForeignKey.model_validate({"from": "user_id", "table": "users", "to": "id"})]


@pytest.fixture()
def pivot_columns() -> List[Column]:
    return [
        Column(name="post_id", type="integer", primary=True, nullable=False),
        Column(name="tag_id", type="integer", primary=True, nullable=False),
    ]
