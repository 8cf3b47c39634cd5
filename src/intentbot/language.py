from typing import Callable

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

UNKNOWN_LANGUAGE = "unknown"

LanguageDetector = Callable[[str], str]

# deterministic detection
DetectorFactory.seed = 0


def detect_language(text: str) -> str:
    try:
        candidates = detect_langs(text)
    except LangDetectException:
        return UNKNOWN_LANGUAGE
    if not candidates:
        return UNKNOWN_LANGUAGE
    return candidates[0].lang or UNKNOWN_LANGUAGE
