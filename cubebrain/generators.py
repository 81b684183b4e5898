# Candidate generators for Cube Brain.
# Four independent strategies, each turning (prompt, intent, brain, model) into
# one reply candidate. Missing data gives an empty string, never an exception.

import random
from dataclasses import dataclass

from cubebrain.markov import continue_text, tidy, tokenize

MARKOV = "markov"
TEMPLATE = "template"
EXAMPLE = "example+continuation"
SUMMARY = "summary"
FILLER = "filler"

# Ranking falls back to this order when scores tie exactly.
LABEL_PRIORITY = (MARKOV, TEMPLATE, EXAMPLE, SUMMARY, FILLER)

CANDIDATE_COUNT = 4
EXAMPLE_CONTINUATION_TOKENS = 12
SUMMARY_KEYWORDS = 5
MAX_FILLER_ATTEMPTS = 8

# Template phrasings, one list per sentence slot. {0}..{3} are keyword positions.
_OPENERS = (
    "Let's talk about {0}.",
    "Here is what I know about {0}.",
    "You asked about {0}.",
)
_PAIR_LINKS = (
    "It ties in with {1} and {2}.",
    "It goes hand in hand with {1} and {2}.",
)
_SINGLE_LINKS = (
    "It ties in with {1}.",
    "It goes hand in hand with {1}.",
)
_FOLLOW_UPS = (
    "You might also look into {3}.",
    "A good next step is {3}.",
)
_CLOSERS = (
    "Ask me anything else about {0}.",
    "There is more to say about {0} if you want it.",
)


@dataclass
class Candidate:
    label: str
    text: str
    score: float = 0.0


def _intent(brain, intent_name: str):
    return brain.intents.get(intent_name)


def combined_keywords(brain, intent_name: str) -> list:
    """Intent keywords then global keywords, de-duplicated case-insensitively."""
    intent = _intent(brain, intent_name)
    words = list(intent.keywords) if intent else []
    words += brain.all_global_keywords

    seen: set = set()
    merged = []
    for w in words:
        if w.lower() not in seen:
            seen.add(w.lower())
            merged.append(w)
    return merged


def markov_candidate(prompt, intent_name, brain, model, max_tokens, rng: random.Random) -> str:
    return continue_text(model, prompt, max_tokens, rng)


def template_candidate(prompt, intent_name, brain, model, max_tokens, rng: random.Random) -> str:
    """
    Two or three templated sentences: keyword 1 opens, keywords 2-3 are
    linked, keyword 4 is a follow-up. A lone keyword gets a closing line.
    """
    kws = combined_keywords(brain, intent_name)
    if not kws:
        return ""

    sentences = [rng.choice(_OPENERS)]
    if len(kws) >= 3:
        sentences.append(rng.choice(_PAIR_LINKS))
    elif len(kws) == 2:
        sentences.append(rng.choice(_SINGLE_LINKS))
    if len(kws) >= 4:
        sentences.append(rng.choice(_FOLLOW_UPS))
    if len(sentences) < 2:
        sentences.append(rng.choice(_CLOSERS))

    slots = kws[:4] + [""] * (4 - min(len(kws), 4))
    return " ".join(s.format(*slots) for s in sentences)


def example_candidate(prompt, intent_name, brain, model, max_tokens, rng: random.Random) -> str:
    intent = _intent(brain, intent_name)
    if intent is None or not intent.examples:
        return ""
    example = rng.choice(intent.examples)
    budget = min(max_tokens, EXAMPLE_CONTINUATION_TOKENS)
    continuation = continue_text(model, f"{example} {prompt}", budget, rng)
    if not continuation:
        return example
    return f"{example}\n{continuation}"


def summary_candidate(prompt, intent_name, brain, model, max_tokens, rng: random.Random) -> str:
    intent = _intent(brain, intent_name)
    if intent is None or not intent.keywords:
        return ""
    return tidy(f"Key points: {', '.join(intent.keywords[:SUMMARY_KEYWORDS])}.")


STRATEGIES = (
    (MARKOV, markov_candidate),
    (TEMPLATE, template_candidate),
    (EXAMPLE, example_candidate),
    (SUMMARY, summary_candidate),
)


def _filler_prompts(prompt: str, keywords):
    """
    Prompt variants for re-running the Markov walk, cycled in this order:
    the prompt itself, its first two words, its last word followed by the top
    keyword, then the empty prompt (a random start).
    """
    words = tokenize(prompt)
    variants = [prompt, " ".join(words[:2])]
    if words and keywords:
        variants.append(f"{words[-1]} {keywords[0]}")
    variants.append("")
    while True:
        yield from variants


def build_candidates(prompt, intent_name, brain, model, max_tokens, rng: random.Random) -> list:
    """
    Run every strategy, keep the non-empty results in priority order, then top
    up with Markov fillers until there are CANDIDATE_COUNT of them. Filler
    attempts are bounded, so an empty model simply yields fewer candidates.
    """
    candidates = []
    for label, strategy in STRATEGIES:
        text = strategy(prompt, intent_name, brain, model, max_tokens, rng)
        if text:
            candidates.append(Candidate(label=label, text=text))

    variants = _filler_prompts(prompt, combined_keywords(brain, intent_name))
    attempts = 0
    while len(candidates) < CANDIDATE_COUNT and attempts < MAX_FILLER_ATTEMPTS:
        attempts += 1
        text = continue_text(model, next(variants), max_tokens, rng)
        if text:
            candidates.append(Candidate(label=FILLER, text=text))
    return candidates
