"""
Tests for ModelStore: atomic reload, rejected reloads, and concurrent readers.
Run with: python -m pytest tests/test_store.py -v
"""

import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cubebrain.errors import CorpusParseError  # noqa: E402
from cubebrain.markov import build_model  # noqa: E402
from cubebrain.store import ModelStore  # noqa: E402

CORPUS_A = b'{"intents":{"greet":{"examples":["hello there friend","hello there world"]}}}'
CORPUS_B = (
    b'{"brain":{"intents":{'
    b'"solve":{"keywords":["cube"],"examples":["start with the white cross","then solve the corners"]},'
    b'"bye":{"examples":["goodbye for now"]}}}}'
)


# ─────────────────────────────────────────────────────────────
# reload / snapshot
# ─────────────────────────────────────────────────────────────

class TestReload:

    def test_starts_empty(self):
        snap = ModelStore().snapshot()
        assert snap.version == 0
        assert snap.brain.intents == {}
        assert snap.model.is_empty

    def test_reload_publishes_brain_and_model_together(self):
        store = ModelStore()
        new = store.reload(CORPUS_A)
        assert store.snapshot() is new
        assert new.version == 1
        assert list(new.brain.intents) == ["greet"]
        assert new.model == build_model(new.brain)

    def test_published_brain_cannot_be_changed_by_a_reader(self):
        store = ModelStore()
        store.reload(CORPUS_A)
        snap = store.snapshot()
        with pytest.raises(TypeError):
            snap.brain.intents.pop("greet")
        with pytest.raises(TypeError):
            snap.brain.global_keywords["x"] = ("evil",)
        assert list(store.snapshot().brain.intents) == ["greet"]
        assert "x" not in store.snapshot().brain.global_keywords

    def test_reload_accepts_str(self):
        store = ModelStore()
        store.reload(CORPUS_A.decode("utf-8"))
        assert "greet" in store.snapshot().brain.intents

    def test_malformed_reload_keeps_previous_snapshot(self):
        store = ModelStore()
        store.reload(CORPUS_A)
        before = store.snapshot()
        with pytest.raises(CorpusParseError):
            store.reload(b'{"intents": [oops')
        assert store.snapshot() is before

    def test_malformed_first_load_keeps_empty_snapshot(self):
        store = ModelStore()
        before = store.snapshot()
        with pytest.raises(CorpusParseError):
            store.reload(b"not json at all")
        assert store.snapshot() is before

    def test_identical_bytes_give_equal_models(self):
        store = ModelStore()
        first = store.reload(CORPUS_B)
        second = store.reload(CORPUS_B)
        assert first.model == second.model
        assert first.brain == second.brain
        assert first.digest == second.digest
        assert second.version == first.version + 1

    def test_reload_replaces_model_in_full(self):
        store = ModelStore()
        store.reload(CORPUS_A)
        store.reload(CORPUS_B)
        model = store.snapshot().model
        assert model.next_tokens(("^START", "hello")) == ()
        assert model.next_tokens(("^START", "goodbye")) == ("for",)

    def test_empty_corpus_is_a_valid_reload(self):
        store = ModelStore()
        store.reload(CORPUS_A)
        snap = store.reload(b"{}")
        assert snap.model.is_empty
        assert snap.version == 2


# ─────────────────────────────────────────────────────────────
# Concurrency
# ─────────────────────────────────────────────────────────────

class TestConcurrentReaders:

    def test_readers_never_see_mismatched_pairs(self):
        """Each snapshot's model must match its own brain, whatever reload is in flight."""
        store = ModelStore()
        store.reload(CORPUS_A)
        errors = []
        done = threading.Event()

        def reader():
            while not done.is_set():
                snap = store.snapshot()
                names = set(snap.brain.intents)
                has_hello = bool(snap.model.next_tokens(("^START", "hello")))
                if has_hello != ("greet" in names):
                    errors.append((snap.version, names))

        def writer():
            for i in range(50):
                store.reload(CORPUS_A if i % 2 else CORPUS_B)
            done.set()

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        w = threading.Thread(target=writer)
        w.start()
        w.join(timeout=30)
        done.set()
        for t in readers:
            t.join(timeout=5)

        assert errors == []
        assert store.snapshot().version == 51

    def test_concurrent_reloads_are_serialized(self):
        store = ModelStore()
        threads = [threading.Thread(target=store.reload, args=(CORPUS_B,)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert store.snapshot().version == 8
