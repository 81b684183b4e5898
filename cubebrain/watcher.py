# Corpus file watcher for Cube Brain.
# Polls brain.json and feeds changed content to ModelStore.reload, so edits to
# the knowledge base go live without restarting the server.

import os
import threading

from cubebrain.errors import CorpusParseError


def read_corpus(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _file_signature(path: str):
    """(mtime_ns, size) of the file, or None if it can't be stat'ed."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


class CorpusWatcher:
    """
    Poll a corpus file and reload the store whenever its signature changes.

    A rejected corpus or an unreadable file is logged and otherwise ignored:
    the store keeps serving the last good snapshot. A rejected corpus is
    retried on the next change, a failed read on the next poll.
    """

    def __init__(self, store, path: str, interval: float = 2.0):
        self.store = store
        self.path = path
        self.interval = interval
        self._last_signature = None
        self._missing_reported = False
        self._stop = threading.Event()
        self._thread = None

    def prime(self) -> None:
        """Treat the file as it is right now as already loaded."""
        self._last_signature = _file_signature(self.path)

    def check_once(self) -> bool:
        """Poll once. Returns True if a new snapshot was published."""
        signature = _file_signature(self.path)
        if signature is None:
            if not self._missing_reported:
                print(f"[WATCH] corpus file missing: {self.path}, keeping current snapshot")
                self._missing_reported = True
            return False
        self._missing_reported = False

        if signature == self._last_signature:
            return False

        print(f"[WATCH] change detected in {self.path}")
        try:
            raw = read_corpus(self.path)
        except OSError as e:
            # Signature left unchanged so the next poll tries again.
            print(f"[WATCH] could not read {self.path}: {e}")
            return False
        self._last_signature = signature
        try:
            self.store.reload(raw)
        except CorpusParseError:
            # Already reported by the store; the old snapshot is still live.
            return False
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.check_once()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="corpus-watcher", daemon=True)
        self._thread.start()
        print(f"[WATCH] polling {self.path} every {self.interval}s")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)
            self._thread = None
