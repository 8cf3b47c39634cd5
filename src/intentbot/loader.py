import json
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .errors import LoadError
from .text import normalize_text, split_tags
from .types import AnnotatedText, Entity, FallbackRecord, KnowledgeBase, Pattern

DEFAULT_THRESHOLD = 0.4
FALLBACK_INTENT = "fallback"


def load_knowledge_base(path: str) -> KnowledgeBase:
    kb_path = Path(path)
    if not kb_path.exists():
        raise LoadError(f"Knowledge base not found: {kb_path}")

    suffix = kb_path.suffix.lower()
    try:
        raw = kb_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot read knowledge base {kb_path}: {exc}") from exc

    if suffix == ".xml":
        intents = parse_xml(raw)
    elif suffix == ".json":
        intents = _parse_mapping(_decode_json(raw))
    elif suffix in {".yml", ".yaml"}:
        intents = _parse_mapping(_decode_yaml(raw))
    else:
        raise LoadError(f"Unsupported knowledge base format: {kb_path.suffix}")

    kb = build_knowledge_base(intents, source=str(kb_path))
    logger.info(
        f"Loaded {len(kb.patterns)} question patterns from {kb.active_intent_count} active intents ({kb_path})"
    )
    return kb


def parse_xml(raw: str) -> List[Dict[str, Any]]:
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise LoadError(f"Invalid knowledge base XML: {exc}") from exc

    if root.tag != "chatbot" or root.find("intent") is None:
        raise LoadError("Invalid knowledge base structure: <chatbot> or <intent> not found")

    intents: List[Dict[str, Any]] = []
    for intent_el in root.findall("intent"):
        groups = []
        for qa_el in intent_el.findall("qa"):
            entities_el = qa_el.find("entities")
            entities = []
            if entities_el is not None:
                entities = [dict(e.attrib) for e in entities_el.findall("entity")]
            context_el = qa_el.find("next_context")
            groups.append(
                {
                    "questions": [_element_text(q) for q in qa_el.findall("question")],
                    "answers": [_xml_answer(a) for a in qa_el.findall("answer")],
                    "entities": entities,
                    "next_context": _element_text(context_el) if context_el is not None else None,
                }
            )
        intents.append(
            {
                "name": intent_el.get("name"),
                "threshold": intent_el.get("threshold"),
                "qa": groups,
            }
        )
    return intents


def build_knowledge_base(intents: List[Dict[str, Any]], source: str = "") -> KnowledgeBase:
    if not intents:
        raise LoadError("Knowledge base contains no intent definitions")

    patterns: List[Pattern] = []
    thresholds: Dict[str, float] = {}
    fallback: Optional[FallbackRecord] = None

    for intent in intents:
        name = str(intent.get("name") or "").strip()
        if not name:
            raise LoadError("Intent definition without a name")
        groups = _mappings(intent.get("qa"), f"intent '{name}' qa group")

        if name == FALLBACK_INTENT:
            answers = _answers(groups[0].get("answers")) if groups else ()
            if not answers:
                raise LoadError("Fallback intent must define at least one answer")
            fallback = FallbackRecord(answers=answers)
            continue

        threshold = parse_threshold(intent.get("threshold"))
        if name in thresholds:
            # repeated declarations extend the first one and keep its threshold
            if thresholds[name] != threshold:
                logger.warning(f"Intent '{name}' redeclared with threshold {threshold}, keeping {thresholds[name]}")
            threshold = thresholds[name]
        else:
            thresholds[name] = threshold

        for group in groups:
            answers = _answers(group.get("answers"))
            if not answers:
                logger.warning(f"Intent '{name}' has a question group without answers, skipping it")
                continue
            entities = tuple(
                Entity(name=str(e.get("name", "")), value=str(e.get("value", "")))
                for e in _mappings(group.get("entities"), f"intent '{name}' entity")
            )
            next_context = _next_context(group.get("next_context"))

            for question in _as_list(group.get("questions")):
                text = unwrap_text(question)
                if not text.strip():
                    continue
                patterns.append(
                    Pattern(
                        question=normalize_text(text),
                        intent_name=name,
                        threshold=threshold,
                        answers=answers,
                        entities=entities,
                        next_context=next_context,
                    )
                )

    return KnowledgeBase(
        patterns=tuple(patterns),
        fallback=fallback,
        intent_names=tuple(thresholds),
        source=source,
    )


def parse_threshold(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return DEFAULT_THRESHOLD
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_THRESHOLD
    if math.isnan(value):
        return DEFAULT_THRESHOLD
    return min(max(value, 0.0), 1.0)


def unwrap_text(value: Any) -> str:
    if isinstance(value, AnnotatedText):
        return value.text
    if isinstance(value, dict):
        return str(value.get("text") or value.get("_") or "")
    if value is None:
        return ""
    return str(value)


def _as_list(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    # a single scalar or tagged entry stands for a one-element list
    return [raw]


def _mappings(raw: Any, what: str) -> List[Dict[str, Any]]:
    items = _as_list(raw)
    for item in items:
        if not isinstance(item, dict):
            raise LoadError(f"Invalid knowledge base structure: {what} must be a mapping, got {item!r}")
    return items


def _answers(raw: Any) -> Tuple[str, ...]:
    texts = (unwrap_text(a).strip() for a in _as_list(raw))
    return tuple(t for t in texts if t)


def _next_context(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        return tuple(t for t in (unwrap_text(v).strip() for v in raw) if t)
    return tuple(split_tags(unwrap_text(raw)))


def _element_text(el: ET.Element) -> str:
    return "".join(el.itertext())


def _xml_answer(el: ET.Element) -> Any:
    text = _element_text(el)
    if el.attrib:
        return AnnotatedText(text=text, metadata=dict(el.attrib))
    return text


def _parse_mapping(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get("intents")
    if not isinstance(data, list) or not data:
        raise LoadError("Invalid knowledge base structure: 'intents' list not found")
    if not all(isinstance(item, dict) for item in data):
        raise LoadError("Invalid knowledge base structure: every intent must be a mapping")
    return data


def _decode_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LoadError(f"Invalid knowledge base JSON: {exc}") from exc


def _decode_yaml(raw: str) -> Any:
    import yaml

    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise LoadError(f"Invalid knowledge base YAML: {exc}") from exc
