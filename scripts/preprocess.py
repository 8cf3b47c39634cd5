"""
Convert spreadsheet intent sheets (XLSX/CSV) into the XML knowledge base.

Input assumptions:
- One row per question/answer group.
- Columns: intent, threshold, questions, answers, entities, next_context
  - questions / answers: several values separated by "|"
  - entities: "name=value" pairs separated by ";"
  - next_context: comma-separated tags, copied verbatim
- Rows with intent "fallback" form the fallback pool; only the first such row is kept.

Output: <chatbot><intent name=".." threshold=".."><qa>...</qa></intent></chatbot>

Usage:
  python scripts/preprocess.py --input_dir sheets --output data.xml
"""

from __future__ import annotations

import argparse
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd


def _to_str(x: object) -> str:
    if x is None:
        return ""
    if isinstance(x, float) and pd.isna(x):
        return ""
    s = str(x)
    return s.strip()


def _split(value: str, sep: str) -> List[str]:
    return [part.strip() for part in value.split(sep) if part.strip()]


def _parse_entities(value: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for chunk in _split(value, ";"):
        name, _, val = chunk.partition("=")
        if name.strip():
            pairs.append((name.strip(), val.strip()))
    return pairs


def build_tree(df: pd.DataFrame) -> ET.Element:
    root = ET.Element("chatbot")
    intents: Dict[str, ET.Element] = {}

    for _, row in df.iterrows():
        name = _to_str(row.get("intent"))
        questions = _split(_to_str(row.get("questions")), "|")
        answers = _split(_to_str(row.get("answers")), "|")
        if not name or not answers:
            continue

        intent_el = intents.get(name)
        if intent_el is None:
            intent_el = ET.SubElement(root, "intent", name=name)
            threshold = _to_str(row.get("threshold"))
            if threshold:
                intent_el.set("threshold", threshold)
            intents[name] = intent_el
        elif name == "fallback":
            continue

        qa_el = ET.SubElement(intent_el, "qa")
        for q in questions:
            ET.SubElement(qa_el, "question").text = q
        for a in answers:
            ET.SubElement(qa_el, "answer").text = a

        entities = _parse_entities(_to_str(row.get("entities")))
        if entities:
            entities_el = ET.SubElement(qa_el, "entities")
            for ent_name, ent_value in entities:
                ET.SubElement(entities_el, "entity", name=ent_name, value=ent_value)

        next_context = _to_str(row.get("next_context"))
        if next_context:
            ET.SubElement(qa_el, "next_context").text = next_context

    return root


def read_sheet(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        return pd.read_csv(path)
    return pd.read_excel(path)


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert XLSX/CSV intent sheets to the XML knowledge base.")
    parser.add_argument("--input_dir", default="sheets", help="Directory containing .xlsx or .csv files")
    parser.add_argument("--output", default="data.xml", help="Output XML file path")
    args = parser.parse_args()

    input_dir = Path(args.input_dir)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    sheets = sorted(p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in {".xlsx", ".csv"})
    if not sheets:
        print(f"No .xlsx or .csv files found in {input_dir}")
        return

    df = pd.concat([read_sheet(p) for p in sheets], ignore_index=True)
    root = build_tree(df)
    ET.indent(root)
    ET.ElementTree(root).write(output_path, encoding="utf-8", xml_declaration=True)

    print(f"Wrote {len(root)} intents to {output_path}")


if __name__ == "__main__":
    main()
