"""Text normalization helpers shared by the matchers."""

import re

_WORD_RE = re.compile(r"\w+")


def normalize(text: str) -> str:
    """Lower-case and trim an utterance."""
    return text.lower().strip()


def tokenize(text: str) -> list[str]:
    """Split text into lower-cased word tokens, dropping punctuation."""
    return _WORD_RE.findall(text.lower())
