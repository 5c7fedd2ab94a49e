from __future__ import annotations

import os

from smartenv import DictEnvStore, ProcessEnvStore


def test_process_env_store_reads_and_deletes_variables(monkeypatch):
    monkeypatch.setenv("SMARTENV_TEST_HOST", "localhost")
    monkeypatch.delenv("SMARTENV_TEST_MISSING", raising=False)

    store = ProcessEnvStore()

    assert store.get("SMARTENV_TEST_HOST") == "localhost"
    assert store.get("SMARTENV_TEST_MISSING") is None
    assert store.get_all()["SMARTENV_TEST_HOST"] == "localhost"

    store.delete("SMARTENV_TEST_HOST")
    assert "SMARTENV_TEST_HOST" not in os.environ

    # Deleting an absent key is a no-op
    store.delete("SMARTENV_TEST_MISSING")


def test_process_env_store_accepts_custom_mapping():
    environ = {"PORT": "3000"}
    store = ProcessEnvStore(environ)

    store.delete("PORT")

    assert environ == {}


def test_dict_env_store_get_all_returns_copy():
    store = DictEnvStore({"KEY": "value"})

    snapshot = store.get_all()
    snapshot["KEY"] = "changed"

    assert store.get("KEY") == "value"
    store.delete("KEY")
    assert store.get_all() == {}
