"""
Text normalization and set similarity used by extraction, dedup and retrieval.

All helpers are pure and total: ``None`` and empty strings are valid input.
"""

from __future__ import annotations

import re
from typing import AbstractSet, FrozenSet, List, Optional

STOPWORDS: FrozenSet[str] = frozenset(
    {
        "i", "me", "my", "we", "our", "you", "your", "he", "she", "it", "they",
        "a", "an", "the", "is", "am", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "can", "may", "might", "shall", "must", "need",
        "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
        "into", "about", "between", "through", "during", "after", "before",
        "and", "but", "or", "nor", "not", "so", "if", "then", "than", "that",
        "this", "these", "those", "what", "which", "who", "whom", "how", "when",
        "where", "there", "here", "all", "each", "every", "both", "few", "more",
        "some", "any", "no", "only", "very", "just", "also", "too", "really",
        "much", "many", "such", "own", "same", "other", "another",
        "up", "out", "off", "over", "again", "still", "already",
        "going", "get", "got", "go", "went", "come", "came",
        "bit", "like", "thing", "things", "lot",
    }
)

_NON_WORD = re.compile(r"[^a-z0-9'-]")

# A period between digits ("3.5 miles") does not end a sentence.
_SENTENCE_END = re.compile(r"[.!?](?!\d)|\n")


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase, blank out punctuation (keeping ' and -), drop 1-char tokens."""
    if not text:
        return []
    return [w for w in _NON_WORD.sub(" ", text.lower()).split() if len(w) > 1]


def content_words(text: Optional[str]) -> FrozenSet[str]:
    return frozenset(w for w in tokenize(text) if w not in STOPWORDS)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """|A & B| / |A | B|; two empty sets count as identical."""
    if not a and not b:
        return 1.0
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    return jaccard(content_words(a), content_words(b))


def context_window(text: str, index: int, max_len: int = 200) -> str:
    """
    Return the sentence around ``index``.

    Sentences longer than ``max_len`` are cut to a ``max_len`` span centered on
    ``index``.
    """
    if not text:
        return ""
    index = max(0, min(index, len(text)))

    start = 0
    for m in _SENTENCE_END.finditer(text, 0, index):
        start = m.end()
    m = _SENTENCE_END.search(text, index)
    end = m.end() if m else len(text)

    sentence = text[start:end]
    if len(sentence.strip()) > max_len:
        relative = index - start
        window_start = max(0, relative - max_len // 2)
        sentence = sentence[window_start:window_start + max_len]
    return sentence.strip()


def clip(text: Optional[str], limit: int) -> str:
    return (text or "")[:limit]
