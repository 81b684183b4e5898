# Generation pipeline for Cube Brain.
# intent detection -> candidate generators -> scorer -> best candidate,
# all against one snapshot taken at the start of the request.

import random
import time
from dataclasses import dataclass, field

from cubebrain.errors import GenerationFailure
from cubebrain.generators import build_candidates, combined_keywords
from cubebrain.intents import detect_intent
from cubebrain.scoring import rank

NO_DATA_REPLY = "I don't have enough data to answer yet."


@dataclass
class GenerationResult:
    intent: str
    candidates: list = field(default_factory=list)
    chosen_index: int = -1
    chosen: str = NO_DATA_REPLY

    def to_dict(self) -> dict:
        return {
            "intent": self.intent,
            "candidates": [
                {"label": c.label, "text": c.text, "score": round(c.score, 4)}
                for c in self.candidates
            ],
            "chosenIndex": self.chosen_index,
            "chosen": self.chosen,
        }


def generate(snapshot, prompt: str, max_tokens: int, rng: random.Random = None) -> GenerationResult:
    """
    Produce the single best reply to prompt from a (Brain, MarkovModel) snapshot.

    A model with no transitions is a normal state: the result carries
    NO_DATA_REPLY, no candidates and chosen_index -1. GenerationFailure is
    raised only for a corrupt transition table.
    """
    t0 = time.time()
    rng = rng or random.Random()
    prompt = prompt or ""
    brain, model = snapshot.brain, snapshot.model

    intent = detect_intent(prompt, brain)
    if model.is_empty:
        print(f"[GENERATE] intent={intent}: model is empty, returning no-data reply")
        return GenerationResult(intent=intent)

    try:
        candidates = build_candidates(prompt, intent, brain, model, max_tokens, rng)
    except GenerationFailure as e:
        raise GenerationFailure(f"generation failed for intent {intent!r}: {e}") from e

    if not candidates:
        # Only possible if every Markov walk came back empty.
        return GenerationResult(intent=intent)

    best = rank(candidates, prompt, combined_keywords(brain, intent), rng)
    result = GenerationResult(
        intent=intent,
        candidates=candidates,
        chosen_index=best,
        chosen=candidates[best].text,
    )
    print(
        f"[GENERATE] intent={intent} chosen={candidates[best].label} "
        f"({len(candidates)} candidates, {time.time() - t0:.3f}s)"
    )
    return result
