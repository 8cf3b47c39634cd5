"""
Knowledge base loading: XML / JSON / YAML sources into the pattern table.
"""

import json

import pytest

from intentbot.errors import LoadError
from intentbot.loader import (
    DEFAULT_THRESHOLD,
    build_knowledge_base,
    load_knowledge_base,
    parse_threshold,
    unwrap_text,
)
from intentbot.types import AnnotatedText, Entity, FallbackRecord


class TestXmlLoading:

    def test_patterns_are_lowercase_and_non_empty(self, sample_kb):
        questions = [p.question for p in sample_kb.patterns]
        assert questions == ["hello", "good morning", "what is the weather today"]
        assert all(q and q == q.lower() for q in questions)

    def test_thresholds_declared_or_default(self, sample_kb):
        thresholds = {p.intent_name: p.threshold for p in sample_kb.patterns}
        assert thresholds == {"greeting": 0.3, "weather": DEFAULT_THRESHOLD}

    def test_fallback_is_separate_record(self, sample_kb):
        assert sample_kb.fallback == FallbackRecord(answers=("try again",))
        assert "fallback" not in {p.intent_name for p in sample_kb.patterns}
        assert sample_kb.intent_names == ("greeting", "weather")
        assert sample_kb.active_intent_count == 2

    def test_annotated_answers_are_unwrapped(self, sample_kb):
        greeting = sample_kb.patterns[0]
        assert greeting.answers == ("hi", "hey there")

    def test_next_context_is_split_and_trimmed(self, sample_kb):
        assert sample_kb.patterns[0].next_context == ("smalltalk", "onboarding")
        assert sample_kb.patterns[2].next_context == ()

    def test_entities_are_attached(self, sample_kb):
        weather = sample_kb.patterns[2]
        assert weather.entities == (Entity("topic", "weather"), Entity("date", "today"))
        assert sample_kb.patterns[0].entities == ()

    def test_knowledge_base_is_immutable(self, sample_kb):
        with pytest.raises(AttributeError):
            sample_kb.patterns = ()
        with pytest.raises(AttributeError):
            sample_kb.patterns[0].threshold = 0.9

    def test_without_fallback_intent(self, write_kb):
        kb = load_knowledge_base(str(write_kb(
            '<chatbot><intent name="greeting"><qa><question>hello</question>'
            "<answer>hi</answer></qa></intent></chatbot>"
        )))
        assert kb.fallback is None
        assert len(kb.patterns) == 1

    def test_group_without_answers_is_skipped(self, write_kb):
        kb = load_knowledge_base(str(write_kb(
            '<chatbot><intent name="a"><qa><question>one</question></qa>'
            "<qa><question>two</question><answer>yes</answer></qa></intent></chatbot>"
        )))
        assert [p.question for p in kb.patterns] == ["two"]


class TestLoadErrors:

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            load_knowledge_base(str(tmp_path / "missing.xml"))

    def test_malformed_xml(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("<chatbot><intent>")))

    def test_missing_root_structure(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("<bot><intent name='x'/></bot>")))
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("<chatbot></chatbot>")))

    def test_intent_without_name(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("<chatbot><intent><qa/></intent></chatbot>")))

    def test_fallback_without_answers(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb('<chatbot><intent name="fallback"/></chatbot>')))

    def test_unsupported_format(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("intent,question", name="data.csv")))

    def test_empty_intent_list(self):
        with pytest.raises(LoadError):
            build_knowledge_base([])


class TestMappingSources:

    INTENTS = {
        "intents": [
            {
                "name": "greeting",
                "threshold": "0.2",
                "qa": [
                    {
                        "questions": ["Hello", ""],
                        "answers": ["hi", {"text": "hey", "lang": "en"}],
                        "entities": [{"name": "kind", "value": "social"}],
                        "next_context": ["smalltalk"],
                    }
                ],
            },
            {"name": "fallback", "qa": [{"answers": ["try again"]}]},
        ]
    }

    def test_json_source(self, write_kb):
        kb = load_knowledge_base(str(write_kb(json.dumps(self.INTENTS), name="kb.json")))
        assert len(kb.patterns) == 1
        pattern = kb.patterns[0]
        assert pattern.question == "hello"
        assert pattern.threshold == 0.2
        assert pattern.answers == ("hi", "hey")
        assert pattern.entities == (Entity("kind", "social"),)
        assert pattern.next_context == ("smalltalk",)
        assert kb.fallback.answers == ("try again",)

    def test_yaml_source(self, write_kb):
        content = (
            "intents:\n"
            "  - name: goodbye\n"
            "    qa:\n"
            "      - questions: [Bye, See you]\n"
            "        answers: [later]\n"
            "        next_context: farewell, end\n"
        )
        kb = load_knowledge_base(str(write_kb(content, name="kb.yaml")))
        assert [p.question for p in kb.patterns] == ["bye", "see you"]
        assert kb.patterns[0].next_context == ("farewell", "end")
        assert kb.patterns[0].threshold == DEFAULT_THRESHOLD

    def test_invalid_json(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb("{not json", name="kb.json")))

    def test_missing_intents_key(self, write_kb):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb('{"other": []}', name="kb.json")))

    def test_scalar_fields_are_single_entries(self, write_kb):
        content = (
            "intents:\n"
            "  - name: greeting\n"
            "    qa:\n"
            "      - questions: Hello\n"
            "        answers: hi\n"
            "        entities: {name: kind, value: social}\n"
        )
        kb = load_knowledge_base(str(write_kb(content, name="kb.yaml")))
        assert [p.question for p in kb.patterns] == ["hello"]
        assert kb.patterns[0].answers == ("hi",)
        assert kb.patterns[0].entities == (Entity("kind", "social"),)

    def test_scalar_qa_group(self, write_kb):
        content = (
            "intents:\n"
            "  - name: greeting\n"
            "    qa: {questions: [hello], answers: [hi]}\n"
        )
        kb = load_knowledge_base(str(write_kb(content, name="kb.yaml")))
        assert [p.question for p in kb.patterns] == ["hello"]

    @pytest.mark.parametrize(
        "intents",
        [
            [{"name": "a", "qa": ["hello"]}],
            [{"name": "a", "qa": [{"questions": ["hi"], "answers": ["yo"], "entities": ["topic"]}]}],
            [{"name": "fallback", "qa": "try again"}],
        ],
    )
    def test_non_mapping_entries_raise_load_error(self, write_kb, intents):
        with pytest.raises(LoadError):
            load_knowledge_base(str(write_kb(json.dumps({"intents": intents}), name="kb.json")))


class TestHelpers:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, DEFAULT_THRESHOLD),
            ("", DEFAULT_THRESHOLD),
            ("abc", DEFAULT_THRESHOLD),
            ("nan", DEFAULT_THRESHOLD),
            ("0.25", 0.25),
            (0.6, 0.6),
            ("1.5", 1.0),
            ("-0.2", 0.0),
        ],
    )
    def test_parse_threshold(self, raw, expected):
        assert parse_threshold(raw) == expected

    def test_unwrap_text(self):
        assert unwrap_text("plain") == "plain"
        assert unwrap_text(AnnotatedText("tagged", {"lang": "en"})) == "tagged"
        assert unwrap_text({"_": "xml2js style", "$": {}}) == "xml2js style"
        assert unwrap_text(None) == ""
