"""Tests for environment-driven settings."""

import os
from unittest.mock import patch

import pytest

from staybook.infra.config import Settings


def _from(env: dict) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings.from_env()


def test_defaults():
    assert _from({}) == Settings(store="postgres", key_locks=True, port=8000)


def test_memory_store():
    assert _from({"STAYBOOK_STORE": "Memory"}).store == "memory"


def test_unknown_store_rejected():
    with pytest.raises(ValueError, match="STAYBOOK_STORE"):
        _from({"STAYBOOK_STORE": "sqlite"})


@pytest.mark.parametrize("raw,expected", [("0", False), ("false", False), ("off", False), ("1", True), ("yes", True), ("", True)])
def test_key_locks_flag(raw, expected):
    assert _from({"STAYBOOK_KEY_LOCKS": raw}).key_locks is expected


def test_bad_flag_rejected():
    with pytest.raises(ValueError, match="STAYBOOK_KEY_LOCKS"):
        _from({"STAYBOOK_KEY_LOCKS": "maybe"})


def test_port():
    assert _from({"PORT": "8081"}).port == 8081
