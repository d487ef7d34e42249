"""
Extractive fallback summarizer.
Picks the highest scoring sentences by word frequency and returns them in document order.
"""
from __future__ import annotations

import re
from collections import Counter
from typing import AbstractSet, Dict, List, Optional, Pattern

# Dutch function words, never counted
STOP_WORDS: AbstractSet[str] = frozenset(
    {
        "de", "het", "een", "en", "van", "ik", "je", "u", "we", "dat", "die", "in", "op",
        "te", "is", "om", "aan", "voor", "met", "als", "zijn", "was", "werd", "bij", "door", "naar",
    }
)

# Whitespace as JavaScript's \s and String.prototype.trim define it. Python's \s and
# str.split() also take \x1c-\x1f and \x85, and miss \ufeff.
WHITESPACE = (
    "\t\n\x0b\x0c\r \u00a0\u1680"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000\ufeff"
)
_WS_CLASS = r"\t\n\x0b\x0c\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

# Anything outside a-z, 0-9, Latin-1 Supplement / Latin Extended-A letters and whitespace
NON_WORD_CHARS: Pattern[str] = re.compile(r"[^a-z0-9\u00c0-\u017f" + _WS_CLASS + "]")

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])[" + _WS_CLASS + "]+")
_WORD_SEPARATOR = re.compile("[" + _WS_CLASS + "]+")


def normalize(text: Optional[str]) -> str:
    return (text or "").replace("\r\n", " ").replace("\n", " ")


def split_sentences(text: str) -> List[str]:
    """
    Split normalized text after '.', '!' or '?' followed by whitespace.
    Punctuation stays with its sentence; empty pieces are dropped.
    """
    pieces = (s.strip(WHITESPACE) for s in _SENTENCE_BOUNDARY.split(text))
    return [s for s in pieces if s]


def tokenize(text: str, *, strip_pattern: Pattern[str] = NON_WORD_CHARS) -> List[str]:
    return [w for w in _WORD_SEPARATOR.split(strip_pattern.sub(" ", text.lower())) if w]


def word_frequencies(
    text: str,
    *,
    stop_words: AbstractSet[str] = STOP_WORDS,
    strip_pattern: Pattern[str] = NON_WORD_CHARS,
) -> Dict[str, int]:
    return dict(Counter(w for w in tokenize(text, strip_pattern=strip_pattern) if w not in stop_words))


def summarize_extractive(
    document: Optional[str],
    max_sentences: int = 3,
    *,
    stop_words: AbstractSet[str] = STOP_WORDS,
    strip_pattern: Pattern[str] = NON_WORD_CHARS,
) -> str:
    """
    Return at most `max_sentences` sentences of `document`, joined by single spaces.

    Sentences are scored by the summed document-wide frequency of their non-stop words.
    Ties go to the earlier sentence, and the selection is emitted in original order.
    Selection is tracked by position, so repeated sentence text never changes the count.
    """
    if max_sentences < 1:
        raise ValueError(f"max_sentences must be >= 1 (got {max_sentences})")

    text = normalize(document)
    sentences = split_sentences(text)
    if len(sentences) <= max_sentences:
        return " ".join(sentences)

    freq = word_frequencies(text, stop_words=stop_words, strip_pattern=strip_pattern)

    scores = [
        sum(freq.get(w, 0) for w in tokenize(s, strip_pattern=strip_pattern))
        for s in sentences
    ]

    # sorted() is stable: equal scores keep document order
    ranked = sorted(range(len(sentences)), key=lambda i: scores[i], reverse=True)
    selected = sorted(ranked[:max_sentences])

    return " ".join(sentences[i] for i in selected[:max_sentences])
