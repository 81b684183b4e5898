# Intent detection for Cube Brain.

FALLBACK_INTENT = "fallback"

TRIGGER_WEIGHT = 5
KEYWORD_WEIGHT = 2
GLOBAL_KEYWORD_WEIGHT = 1


def score_intent(prompt_lower: str, intent, global_keywords: list) -> int:
    """
    Substring score of one intent against an already lower-cased prompt:
    +5 per trigger phrase, +2 per intent keyword, +1 per global keyword.
    """
    score = 0
    for trigger in intent.triggers:
        if trigger.lower() in prompt_lower:
            score += TRIGGER_WEIGHT
    for kw in intent.keywords:
        if kw.lower() in prompt_lower:
            score += KEYWORD_WEIGHT
    for kw in global_keywords:
        if kw.lower() in prompt_lower:
            score += GLOBAL_KEYWORD_WEIGHT
    return score


def detect_intent(prompt: str, brain) -> str:
    """
    Return the name of the best-scoring intent, or FALLBACK_INTENT when
    nothing scores above zero.

    Intents are scored in sorted name order and only a strictly higher score
    replaces the current best, so ties go to the lexicographically first name.
    """
    prompt_lower = (prompt or "").lower()
    global_keywords = brain.all_global_keywords

    best_name = FALLBACK_INTENT
    best_score = 0
    for name in brain.intent_names:
        score = score_intent(prompt_lower, brain.intents[name], global_keywords)
        if score > best_score:
            best_name, best_score = name, score
    return best_name
