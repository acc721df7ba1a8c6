"""
Module: extractor.prompts

Purpose:
    Extraction instructions sent with each PDF chunk. The instructions
    enumerate every output field with its exact spelling, the canonical
    question labeling convention, the figure region rules and the topic
    taxonomy. Field names here must match the batch schemas in
    core/schemas.

Key Functions:
    - question_instruction(): Instruction for question paper chunks
    - mark_scheme_instruction(): Instruction for mark scheme chunks

Used By:
    - extractor.client
"""

from __future__ import annotations

from typing import Iterable

from pastpaper_rag.common.topics import DEFAULT_TOPICS

LABELING_RULES = """\
QUESTION NUMBERING (canonical labels):
- Question number first, then the part letter in parentheses, then the
  sub-part lowercase roman numeral in parentheses: "1(a)", "2(b)(i)", "3(c)(ii)".
- Never write "1a", "2bi" or "Q3(c)".
- Always fully qualify. If a part has sub-parts, the first sub-part carries
  its numeral: write "1(b)(i)", never "1(b)" for the first sub-part.
- A part with sub-parts may appear on its own only as its stem text, with
  marks 0.
- Examples: "1(a)", "1(b)(i)", "1(b)(ii)", "2(a)", "2(d)(i)", "2(d)(ii)"."""

QUESTION_FIELDS = """\
Return a JSON array. Each element is an object with EXACTLY these fields:
- "questionNumber" (string, required): canonical label, see rules below.
- "text" (string, required, non-empty): full question text. Describe any
  figure in square brackets inside the text, e.g. "[Figure: a 1.5 V cell in
  series with a 2.5 ohm resistor.]", with every value and label shown.
  Multiple choice questions list all options A-D on separate lines.
- "marks" (integer or null, required): marks for this part. 0 for a stem
  whose marks belong to its sub-parts.
- "topic" (string, required): exactly one of: {topics}.
- "difficulty" (string): "easy" (1-3 marks), "medium" (4-6 marks) or
  "hard" (7+ marks).
- "hasImage" (boolean): true only if THIS part needs a figure, diagram,
  graph or table.
- "pageNumber" (integer): page where the figure is, 1-based, counted from
  the first page of THIS document. Required when hasImage is true.
- "figureBoundingBox" (array of 4 numbers): [ymin, xmin, ymax, xmax] of the
  figure on a 0-1000 scale of that page. Required when hasImage is true."""

FIGURE_RULES = """\
FIGURE REGIONS:
- The box must enclose the figure only: no question text, no page header,
  no barcode, no page number.
- If you are not sure which figure belongs to a part, set hasImage to false
  and omit pageNumber and figureBoundingBox."""

MARK_SCHEME_FIELDS = """\
Return a JSON array. Each element is an object with EXACTLY these fields:
- "questionNumber" (string, required): canonical label, see rules below.
- "markScheme" (string, required, non-empty): complete marking points with
  every acceptable answer, equation, unit and mark allocation.
- "examinerRemarks" (string): examiner notes or common mistakes, ONLY if the
  document states them. Omit otherwise."""

OUTPUT_RULES = """\
OUTPUT:
- Include every part and sub-part on these pages, even when a part's text
  continues from an earlier page.
- Return ONLY the JSON array. No markdown, no code fences, no commentary."""


def question_instruction(topics: Iterable[str] = DEFAULT_TOPICS) -> str:
    """
    Instruction for a question paper chunk.

    Args:
        topics: Allowed topic labels, listed verbatim in the instruction.
    """
    return "\n\n".join(
        [
            "You are parsing pages of an exam question paper. "
            "Extract ALL questions on these pages.",
            QUESTION_FIELDS.format(topics=", ".join(topics)),
            LABELING_RULES,
            FIGURE_RULES,
            OUTPUT_RULES,
        ]
    )


def mark_scheme_instruction() -> str:
    """Instruction for a mark scheme chunk."""
    return "\n\n".join(
        [
            "You are parsing pages of an exam mark scheme. "
            "Extract the mark scheme of EVERY question part on these pages.",
            MARK_SCHEME_FIELDS,
            LABELING_RULES,
            OUTPUT_RULES,
        ]
    )
