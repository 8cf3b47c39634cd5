from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class AnnotatedText:
    text: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Entity:
    name: str
    value: str


@dataclass(frozen=True)
class Pattern:
    question: str
    intent_name: str
    threshold: float
    answers: Tuple[str, ...]
    entities: Tuple[Entity, ...] = ()
    next_context: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FallbackRecord:
    answers: Tuple[str, ...]


@dataclass(frozen=True)
class KnowledgeBase:
    patterns: Tuple[Pattern, ...]
    fallback: Optional[FallbackRecord] = None
    intent_names: Tuple[str, ...] = ()
    source: str = ""

    @property
    def active_intent_count(self) -> int:
        return len(self.intent_names)


@dataclass(frozen=True)
class MatchResult:
    pattern: Optional[Pattern]
    distance: float = 1.0
    language: str = "unknown"

    @property
    def matched(self) -> bool:
        return self.pattern is not None

    @property
    def confidence(self) -> float:
        if self.pattern is None:
            return 0.0
        return 1.0 - self.distance


@dataclass(frozen=True)
class Reply:
    reply: str
    intent: str
    language: str
    confidence: float
    entities: Optional[Tuple[Entity, ...]] = None
    next_context: Optional[Tuple[str, ...]] = None
    matched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"reply": self.reply, "intent": self.intent}
        if self.matched:
            payload["entities"] = [{"name": e.name, "value": e.value} for e in self.entities or ()]
            payload["next_context"] = list(self.next_context or ())
        payload["language"] = self.language
        payload["confidence_score"] = self.confidence
        return payload


@dataclass(frozen=True)
class QueryLogRecord:
    query: str
    intent_detected: str = "unknown"
    language: str = "unknown"
    confidence_score: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
