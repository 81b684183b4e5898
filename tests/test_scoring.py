"""
Tests for candidate scoring and selection.
Run with: python -m pytest tests/test_scoring.py -v
"""

import os
import random
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cubebrain.generators import EXAMPLE, FILLER, MARKOV, SUMMARY, TEMPLATE, Candidate  # noqa: E402
from cubebrain.scoring import (  # noqa: E402
    JITTER_MAX,
    keyword_overlap,
    length_preference,
    novelty,
    pick_best,
    rank,
    score_candidate,
)


# ─────────────────────────────────────────────────────────────
# Score components
# ─────────────────────────────────────────────────────────────

class TestComponents:

    def test_overlap_counts_whole_tokens_only(self):
        assert keyword_overlap("I love cubes", ["cube"]) == 0
        assert keyword_overlap("I love this cube.", ["cube"]) == 1

    def test_overlap_case_insensitive_and_distinct(self):
        assert keyword_overlap("Cube cube CUBE layer", ["cube", "CUBE", "layer"]) == 2

    def test_overlap_multi_word_keyword(self):
        assert keyword_overlap("finish the first layer now", ["first layer"]) == 1

    def test_overlap_ignores_blank_keywords(self):
        assert keyword_overlap("anything", ["", "  "]) == 0

    @pytest.mark.parametrize("words,expected", [
        (0, 0.0),
        (6, 0.0),
        (16, 0.5),
        (26, 1.0),
        (40, 1.0),
    ])
    def test_length_preference(self, words, expected):
        assert length_preference(" ".join(["w"] * words)) == pytest.approx(expected)

    def test_novelty(self):
        assert novelty("hello there friend", "  Hello there ") == 0
        assert novelty("hello friend", "hello there") == 1

    def test_jitter_is_bounded(self):
        rng = random.Random(0)
        for _ in range(200):
            score = score_candidate("short", "unrelated prompt", [], rng)
            assert 1.0 <= score < 1.0 + JITTER_MAX

    def test_weights_combined(self):
        text = "the cube has six faces and each face of the cube has nine stickers"
        score = score_candidate(text, "stickers please", ["cube", "faces"], random.Random(0))
        # 2*2 overlap + 1.5*(14-6)/20 length + 1 novelty
        assert score == pytest.approx(5.6 + JITTER_MAX / 2, abs=JITTER_MAX / 2 + 1e-9)


# ─────────────────────────────────────────────────────────────
# Selection
# ─────────────────────────────────────────────────────────────

class TestSelection:

    def test_empty_list(self):
        assert pick_best([]) == -1

    def test_highest_score_wins(self):
        cands = [Candidate(MARKOV, "a", 1.0), Candidate(TEMPLATE, "b", 3.0), Candidate(SUMMARY, "c", 2.0)]
        assert pick_best(cands) == 1

    def test_exact_tie_uses_label_priority(self):
        cands = [
            Candidate(SUMMARY, "a", 2.0),
            Candidate(EXAMPLE, "b", 2.0),
            Candidate(TEMPLATE, "c", 2.0),
        ]
        assert pick_best(cands) == 2

    def test_exact_tie_between_fillers_keeps_list_order(self):
        cands = [Candidate(FILLER, "a", 2.0), Candidate(FILLER, "b", 2.0)]
        assert pick_best(cands) == 0

    def test_echo_never_outranks_distinct_candidate(self):
        prompt = "how do I solve the cube"
        echo = "how do I solve the cube today"
        distinct = "you can solve the cube layer by"
        for seed in range(200):
            cands = [Candidate(MARKOV, echo), Candidate(TEMPLATE, distinct)]
            best = rank(cands, prompt, ["cube"], random.Random(seed))
            assert cands[best].text == distinct

    def test_rank_sets_scores(self):
        cands = [Candidate(MARKOV, "one two"), Candidate(TEMPLATE, "three four")]
        rank(cands, "x", [], random.Random(0))
        assert all(c.score >= 1.0 for c in cands)
