from pathlib import Path

import pytest

from intentbot.loader import load_knowledge_base

SAMPLE_XML = """<?xml version="1.0" encoding="utf-8"?>
<chatbot>
  <intent name="greeting" threshold="0.3">
    <qa>
      <question>hello</question>
      <question>Good Morning</question>
      <question>   </question>
      <answer>hi</answer>
      <answer lang="en">hey there</answer>
      <next_context>smalltalk, onboarding ,</next_context>
    </qa>
  </intent>
  <intent name="weather">
    <qa>
      <question>what is the weather today</question>
      <answer>sunny</answer>
      <entities>
        <entity name="topic" value="weather"/>
        <entity name="date" value="today"/>
      </entities>
    </qa>
  </intent>
  <intent name="fallback">
    <qa>
      <answer>try again</answer>
    </qa>
  </intent>
</chatbot>
"""


def english(query: str) -> str:
    return "en"


@pytest.fixture
def write_kb(tmp_path: Path):
    def _write(content: str, name: str = "data.xml") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_kb(write_kb):
    return load_knowledge_base(str(write_kb(SAMPLE_XML)))
