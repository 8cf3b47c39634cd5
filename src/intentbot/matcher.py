from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from loguru import logger
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .language import UNKNOWN_LANGUAGE, LanguageDetector, detect_language
from .text import normalize_text
from .types import KnowledgeBase, MatchResult, Pattern


@dataclass(frozen=True)
class IntentGroup:
    intent_name: str
    threshold: float
    patterns: Tuple[Pattern, ...]
    questions: Tuple[str, ...]

    def best(self, query: str) -> Optional[Tuple[Pattern, float]]:
        found = process.extractOne(query, self.questions, scorer=Levenshtein.normalized_distance)
        if found is None:
            return None
        _, distance, index = found
        # a distance equal to the threshold is still admitted
        if distance > self.threshold:
            return None
        return self.patterns[index], float(distance)


def group_patterns(kb: KnowledgeBase) -> Tuple[IntentGroup, ...]:
    ordered: Dict[str, List[Pattern]] = {}
    for pattern in kb.patterns:
        ordered.setdefault(pattern.intent_name, []).append(pattern)

    groups = []
    for name, patterns in ordered.items():
        groups.append(
            IntentGroup(
                intent_name=name,
                # all patterns of an intent share its threshold
                threshold=patterns[0].threshold,
                patterns=tuple(patterns),
                questions=tuple(p.question for p in patterns),
            )
        )
    return tuple(groups)


class IntentMatcher:
    def __init__(self, kb: KnowledgeBase, detector: Optional[LanguageDetector] = None) -> None:
        self.kb = kb
        self.detector = detector or detect_language
        self.groups = group_patterns(kb)

    def match(self, query: str) -> MatchResult:
        normalized = normalize_text(query)

        best_pattern: Optional[Pattern] = None
        best_distance = 1.0
        for group in self.groups:
            found = group.best(normalized)
            if found is None:
                continue
            pattern, distance = found
            # strict comparison: on equal distance the earlier intent keeps the win
            if distance < best_distance:
                best_pattern = pattern
                best_distance = distance

        language = self.detector(query) or UNKNOWN_LANGUAGE
        if best_pattern is None:
            logger.debug(f"No intent admitted query {query!r}")
            return MatchResult(pattern=None, distance=1.0, language=language)

        logger.debug(f"Query {query!r} matched intent '{best_pattern.intent_name}' at distance {best_distance:.4f}")
        return MatchResult(pattern=best_pattern, distance=best_distance, language=language)
