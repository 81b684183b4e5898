# Model store for Cube Brain.
# Holds the live (Brain, MarkovModel) pair and swaps it atomically on reload.
#
# Readers grab the current Snapshot reference and keep using it for the whole
# request; a reload builds a complete new Snapshot off to the side and only then
# replaces the reference, so nobody ever sees a half-built model. Reloads are
# serialized with a lock that readers never touch.

import hashlib
import threading
import time
from dataclasses import dataclass, field

from cubebrain.corpus import Brain, load_corpus
from cubebrain.errors import CorpusParseError
from cubebrain.markov import MarkovModel, build_model


@dataclass(frozen=True)
class Snapshot:
    brain: Brain = field(default_factory=Brain)
    model: MarkovModel = field(default_factory=MarkovModel)
    digest: str = ""
    version: int = 0
    loaded_at: float = 0.0


class ModelStore:
    """Single owner of the live snapshot. Starts out empty (version 0)."""

    def __init__(self):
        self._snapshot = Snapshot()
        self._reload_lock = threading.Lock()

    def snapshot(self) -> Snapshot:
        """Current snapshot. Never blocks."""
        return self._snapshot

    def reload(self, raw) -> Snapshot:
        """
        Parse raw corpus bytes, build a model and publish both together.

        On CorpusParseError the previous snapshot stays live and the error is
        re-raised so the caller (watcher, startup code, CLI) can report it.
        """
        with self._reload_lock:
            t0 = time.time()
            data = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
            digest = hashlib.sha256(data).hexdigest()
            try:
                brain = load_corpus(data)
            except CorpusParseError as e:
                print(f"[RELOAD] rejected corpus ({e}), keeping snapshot v{self._snapshot.version}")
                raise

            model = build_model(brain)
            new = Snapshot(
                brain=brain,
                model=model,
                digest=digest,
                version=self._snapshot.version + 1,
                loaded_at=time.time(),
            )
            self._snapshot = new
            print(
                f"[RELOAD] v{new.version}: {len(brain.intents)} intents, "
                f"{model.transition_count} transitions, digest {digest[:12]} "
                f"({time.time() - t0:.3f}s)"
            )
            return new
