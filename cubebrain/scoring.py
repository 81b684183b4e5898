# Candidate scoring for Cube Brain.
#
#   score = 2 * keyword_overlap + 1.5 * length_preference + 1 * novelty + jitter
#
# Component scores move in steps of 2, 1 and 0.075 (one word of length), so two
# substantively different candidates differ by at least 1 - 13 * 0.075 = 0.025.
# Jitter stays below that and only separates exact ties.

import random
import re

from cubebrain.generators import LABEL_PRIORITY

OVERLAP_WEIGHT = 2.0
LENGTH_WEIGHT = 1.5
NOVELTY_WEIGHT = 1.0

LENGTH_FLOOR = 6
LENGTH_SPAN = 20

JITTER_MAX = 0.02


def keyword_overlap(text: str, keywords) -> int:
    """Number of distinct keywords present as whole tokens (or whole phrases) in text."""
    lowered = text.lower()
    hits = 0
    for kw in {k.lower() for k in keywords if k.strip()}:
        if re.search(r"(?<!\w)" + re.escape(kw) + r"(?!\w)", lowered):
            hits += 1
    return hits


def length_preference(text: str) -> float:
    words = len(text.split())
    return min(max((words - LENGTH_FLOOR) / LENGTH_SPAN, 0.0), 1.0)


def novelty(text: str, prompt: str) -> int:
    """1 unless the candidate contains the whole trimmed prompt (case-insensitive)."""
    return 0 if prompt.strip().lower() in text.lower() else 1


def score_candidate(text: str, prompt: str, keywords, rng: random.Random) -> float:
    return (
        OVERLAP_WEIGHT * keyword_overlap(text, keywords)
        + LENGTH_WEIGHT * length_preference(text)
        + NOVELTY_WEIGHT * novelty(text, prompt)
        + rng.uniform(0.0, JITTER_MAX)
    )


def _priority(label: str) -> int:
    try:
        return LABEL_PRIORITY.index(label)
    except ValueError:
        return len(LABEL_PRIORITY)


def pick_best(candidates) -> int:
    """
    Index of the highest-scoring candidate, or -1 for an empty list.
    Equal scores go to the label earlier in LABEL_PRIORITY, then to list order.
    """
    if not candidates:
        return -1
    return min(
        range(len(candidates)),
        key=lambda i: (-candidates[i].score, _priority(candidates[i].label), i),
    )


def rank(candidates, prompt: str, keywords, rng: random.Random) -> int:
    """Score every candidate in place and return the winning index."""
    for c in candidates:
        c.score = score_candidate(c.text, prompt, keywords, rng)
    return pick_best(candidates)
