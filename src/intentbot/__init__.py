from .errors import ConfigError, LoadError
from .loader import load_knowledge_base
from .pipeline import IntentBot
from .types import KnowledgeBase, MatchResult, Pattern, Reply

__all__ = [
    "ConfigError",
    "IntentBot",
    "KnowledgeBase",
    "LoadError",
    "MatchResult",
    "Pattern",
    "Reply",
    "load_knowledge_base",
]
