import random
from typing import Optional

from .loader import FALLBACK_INTENT
from .types import KnowledgeBase, MatchResult, Reply

DEFAULT_FALLBACK_ANSWER = "Sorry, I'm not sure how to answer that yet. Could you try asking something else?"
CONFIDENCE_DIGITS = 4


def compose(result: MatchResult, kb: KnowledgeBase, rng: Optional[random.Random] = None) -> Reply:
    chooser = rng or random
    pattern = result.pattern

    if pattern is None:
        if kb.fallback is not None:
            answer = chooser.choice(kb.fallback.answers)
        else:
            answer = DEFAULT_FALLBACK_ANSWER
        return Reply(
            reply=answer,
            intent=FALLBACK_INTENT,
            language=result.language,
            confidence=0.0,
            matched=False,
        )

    return Reply(
        reply=chooser.choice(pattern.answers),
        intent=pattern.intent_name,
        language=result.language,
        confidence=round(result.confidence, CONFIDENCE_DIGITS),
        entities=pattern.entities,
        next_context=pattern.next_context,
        matched=True,
    )
