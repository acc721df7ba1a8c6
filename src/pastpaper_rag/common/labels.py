"""Hierarchical question label helpers.

Question numbers are labels such as ``"2(b)(ii)"``: the question number,
then a lowercase letter part, then a lowercase roman numeral sub-part,
each wrapped in parentheses. These helpers canonicalize model output into
that form and answer parent/child questions used by merge and pruning.
"""

from __future__ import annotations

import re
from typing import List

_LEADING_Q_RE = re.compile(r"^\s*(?:question|q)\s*\.?\s*", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^(\d+)")
_TOKEN_RE = re.compile(r"\(\s*([A-Za-z0-9]+)\s*\)")
_BARE_LETTER_RE = re.compile(r"^([a-z])")
_BARE_ROMAN_RE = re.compile(r"^(iv|ix|vi{0,3}|i{1,3}|x)", re.IGNORECASE)


def label_tokens(label: str) -> List[str]:
    """Parse a question label into hierarchical tokens.

    Accepts the canonical form as well as the loose variants models tend to
    produce (``"Q1(a)"``, ``"1 (a) (ii)"``, ``"1a"``, ``"1(b)ii"``).

    Args:
        label: Question label.

    Returns:
        List of tokens, e.g. ``["1", "b", "ii"]``. Empty list when the label
        has no leading question number or trailing text that is not a part
        (``"2(b)(ii) and (iii)"`` names two parts, not one).

    Examples:
        >>> label_tokens("1(b)(ii)")
        ['1', 'b', 'ii']
        >>> label_tokens("Q3 (a)")
        ['3', 'a']
        >>> label_tokens("2bi")
        ['2', 'b', 'i']
    """
    remainder = _LEADING_Q_RE.sub("", label or "").strip()
    match = _NUMBER_RE.match(remainder)
    if not match:
        return []

    tokens = [str(int(match.group(1)))]
    remainder = remainder[match.end():].replace(" ", "")

    while remainder:
        paren = _TOKEN_RE.match(remainder)
        if paren:
            tokens.append(paren.group(1).lower())
            remainder = remainder[paren.end():]
            continue
        # Unparenthesised parts: a letter first, then roman numerals
        pattern = _BARE_LETTER_RE if len(tokens) == 1 else _BARE_ROMAN_RE
        bare = pattern.match(remainder.lower())
        if not bare:
            break
        tokens.append(bare.group(1).lower())
        remainder = remainder[bare.end():]

    if remainder.rstrip(".:"):
        return []
    return tokens


def canonical_label(label: str) -> str:
    """Normalize a question label to ``N(x)(y)`` form.

    Returns the stripped input unchanged when it cannot be parsed, so the
    validator can reject it with the original text in the message.

    Examples:
        >>> canonical_label(" q1 (A) (ii) ")
        '1(a)(ii)'
        >>> canonical_label("12")
        '12'
    """
    tokens = label_tokens(label)
    if not tokens:
        return (label or "").strip()
    return tokens[0] + "".join(f"({token})" for token in tokens[1:])


def is_child_label(candidate: str, parent: str) -> bool:
    """True if ``candidate`` is nested anywhere under ``parent``.

    A child starts with the parent label immediately followed by an opening
    parenthesis, so ``"1(a)(i)"`` is a child of ``"1(a)"`` and of ``"1"``,
    while ``"1(a)"`` is not a child of itself and ``"11(a)"`` is not a
    child of ``"1"``.
    """
    return candidate != parent and candidate.startswith(parent + "(")

