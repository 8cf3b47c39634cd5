import random
from typing import Optional

from .answerer import compose
from .language import LanguageDetector
from .matcher import IntentMatcher
from .querylog import QueryLogSink
from .types import KnowledgeBase, QueryLogRecord, Reply


class IntentBot:
    def __init__(
        self,
        kb: KnowledgeBase,
        sink: Optional[QueryLogSink] = None,
        detector: Optional[LanguageDetector] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.kb = kb
        self.sink = sink
        self.matcher = IntentMatcher(kb, detector=detector)
        self.rng = rng

    def respond(self, query: str) -> Reply:
        result = self.matcher.match(query)
        reply = compose(result, self.kb, rng=self.rng)
        self._log(query, reply)
        return reply

    def _log(self, query: str, reply: Reply) -> None:
        if self.sink is None:
            return
        self.sink.submit(
            QueryLogRecord(
                query=query,
                intent_detected=reply.intent,
                language=reply.language,
                confidence_score=reply.confidence,
            )
        )
