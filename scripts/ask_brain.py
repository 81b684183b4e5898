#!/usr/bin/env python3
"""
Ask the Cube Brain a question from the command line, without the HTTP server.

Usage
-----
Generate a reply from the default brain.json:
    python scripts/ask_brain.py hello there

Show every scored candidate, reproducibly:
    python scripts/ask_brain.py --candidates --seed 7 how do I solve the cube

Validate a corpus file (exit code 1 if it doesn't parse):
    python scripts/ask_brain.py --check --corpus path/to/brain.json

The script goes through the same ModelStore.reload path as the server, so a
corpus that passes --check here will load there too.
"""

import argparse
import os
import random
import sys

# Make sure project root is on the path so we can import cubebrain/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cubebrain import config
from cubebrain.errors import CorpusParseError, GenerationFailure
from cubebrain.pipeline import generate
from cubebrain.store import ModelStore
from cubebrain.watcher import read_corpus


def load_store(path: str) -> ModelStore:
    store = ModelStore()
    store.reload(read_corpus(path))
    return store


def print_candidates(result) -> None:
    print(f"Intent: {result.intent}")
    for i, c in enumerate(result.candidates):
        marker = "*" if i == result.chosen_index else " "
        text = c.text.replace("\n", " / ")
        print(f" {marker} [{c.label:<20}] {c.score:6.3f}  {text}")
    print()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a Cube Brain reply from a local corpus file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("prompt", nargs="*", help="Prompt text (words are joined with spaces).")
    parser.add_argument("--corpus", default=config.CORPUS_PATH, help="Path to the brain JSON file.")
    parser.add_argument("--max-tokens", type=int, default=config.MAX_TOKENS, help="Token budget per Markov walk.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible output.")
    parser.add_argument("--candidates", action="store_true", help="Print every scored candidate.")
    parser.add_argument("--check", action="store_true", help="Only load and build the model, then report.")
    args = parser.parse_args()

    try:
        store = load_store(args.corpus)
    except OSError as e:
        print(f"Could not read {args.corpus}: {e}", file=sys.stderr)
        return 1
    except CorpusParseError as e:
        print(f"Invalid corpus {args.corpus}: {e}", file=sys.stderr)
        return 1

    snap = store.snapshot()
    if args.check:
        print(
            f"OK: {len(snap.brain.intents)} intents, "
            f"{len(snap.model.transitions)} contexts, "
            f"{snap.model.transition_count} transitions."
        )
        return 0

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        result = generate(snap, " ".join(args.prompt), args.max_tokens, rng=rng)
    except GenerationFailure as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        return 2

    if args.candidates:
        print_candidates(result)
    print(result.chosen)
    return 0


if __name__ == "__main__":
    sys.exit(main())
