# Order-2 Markov model for Cube Brain.
# Builds the transition table from a Brain and walks it to produce text.
# A model is built once per reload and never mutated afterwards.

import random
import re
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType

from cubebrain.errors import GenerationFailure

ORDER = 2
START = "^START"
END = "^END"

# ASCII unit separator, never produced by whitespace tokenization of prose.
KEY_SEP = "\x1f"

_WHITESPACE_RE = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([,.!?;:])")


def tokenize(text: str) -> list:
    """Split on whitespace after collapsing runs of it; empty tokens are dropped."""
    return [t for t in _WHITESPACE_RE.sub(" ", text or "").strip().split(" ") if t]


def key_for(tokens) -> str:
    return KEY_SEP.join(tokens)


def split_key(key: str) -> tuple:
    return tuple(key.split(KEY_SEP))


def tidy(text: str) -> str:
    """Collapse whitespace and pull run-together punctuation back onto its word."""
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)


@dataclass(frozen=True)
class MarkovModel:
    """
    Transition table keyed by KEY_SEP-joined contexts of exactly `order` tokens.

    Each value is the tuple of every token observed right after that context,
    duplicates included, so a uniform pick over it is frequency weighted.
    start_keys lists (sorted) the contexts that open a training line.
    """

    order: int = ORDER
    transitions: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    start_keys: tuple = ()

    @property
    def is_empty(self) -> bool:
        return not self.transitions

    @property
    def transition_count(self) -> int:
        return sum(len(nexts) for nexts in self.transitions.values())

    def next_tokens(self, context) -> tuple:
        return self.transitions.get(key_for(context), ())

    def random_start(self, rng: random.Random) -> tuple:
        """A random context that begins with START (any context if none exists)."""
        keys = self.start_keys or tuple(sorted(self.transitions))
        if not keys:
            raise GenerationFailure("cannot pick a start context from an empty model")
        return split_key(rng.choice(keys))


def build_model(brain, order: int = ORDER) -> MarkovModel:
    """
    Compile every intent's training lines into a fresh MarkovModel.

    Intents are visited in sorted name order; an intent contributes its
    examples, or its responses when it has no examples. Each line is padded
    with one START and one END; every window of order+1 tokens adds one
    transition. Lines too short to fill a window are skipped.
    """
    table: dict = defaultdict(list)

    for name in brain.intent_names:
        for line in brain.intents[name].training_lines:
            padded = [START] + tokenize(line) + [END]
            if len(padded) < order + 1:
                continue
            for i in range(len(padded) - order):
                table[key_for(padded[i:i + order])].append(padded[i + order])

    transitions = {key: tuple(nexts) for key, nexts in table.items()}
    start_keys = tuple(sorted(k for k in transitions if split_key(k)[0] == START))
    return MarkovModel(
        order=order,
        transitions=MappingProxyType(transitions),
        start_keys=start_keys,
    )


def continue_text(model: MarkovModel, prompt: str, max_tokens: int, rng: random.Random) -> str:
    """
    Walk the model from a context derived from the prompt.

    With at least `order` prompt tokens, the walk is seeded from the last
    `order` of them and only newly picked tokens are emitted. Otherwise, or
    when that context was never seen, it starts from a random START context
    and that context's own words lead the output. The walk stops at END or
    after max_tokens picks. Returns "" for an empty model.
    """
    if model.is_empty:
        return ""

    budget = max(1, int(max_tokens))
    tokens = tokenize(prompt)
    context = None
    if len(tokens) >= model.order:
        seed = tuple(tokens[-model.order:])
        if model.next_tokens(seed):
            context = seed

    output: list = []
    if context is None:
        context = model.random_start(rng)
        output.extend(t for t in context if t not in (START, END))

    for _ in range(budget):
        nexts = model.next_tokens(context)
        if not nexts:
            # Every context reachable by sliding the window was seen in training.
            raise GenerationFailure(
                f"context {' '.join(context)!r} has no next-token entry"
            )
        picked = rng.choice(nexts)
        if picked == END:
            break
        output.append(picked)
        context = context[1:] + (picked,)

    return tidy(" ".join(output))
