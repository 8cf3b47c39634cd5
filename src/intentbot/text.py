import re
from typing import List

SPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    normalized = text.replace("\u3000", " ").strip().lower()
    normalized = SPACE_RE.sub(" ", normalized)
    return normalized


def split_tags(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]
