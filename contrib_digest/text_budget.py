"""
Word budgeting for text headed into an LLM prompt.

Two strategies, both deterministic and free of I/O:

1. ``strip_quoted_and_budget`` drops quoted / fenced blocks from a post, then
   keeps the head and tail of what is left, dropping the middle. The start of
   a post usually states the problem and the end holds the latest activity.
2. ``allocate_budget`` splits a combined word cap between two texts,
   preferring to keep whichever side is shorter than its share intact.

Words are whitespace-delimited, as counted by ``str.split()``.
"""

import math

from contrib_digest.models import Budget


def word_count(text: str) -> int:
    return len(text.split())


def apply_budget(words: list[str], budget: Budget) -> list[str]:
    """Keep ``budget.head_count`` words from the front and the rest from the end."""
    if len(words) <= budget.max_units:
        return words
    tail_start = len(words) - budget.tail_count
    return words[: budget.head_count] + words[tail_start:]


def _lines(text: str) -> list[str]:
    r"""
    Split on ``\n`` only, dropping a trailing ``\r`` from each line.

    Other separators that ``str.splitlines`` honours (form feed, U+2028, ...)
    stay inside the line. A final newline does not start an empty line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def strip_quoted_blocks(text: str, quote_marker: str) -> str:
    """
    Remove every span between pairs of lines containing ``quote_marker``.

    Marker lines are dropped themselves. An unmatched marker drops every
    line after it. Kept lines are each terminated by a newline.
    """
    kept: list[str] = []
    inside_quote = False

    for line in _lines(text):
        if quote_marker in line:
            inside_quote = not inside_quote
            continue
        if not inside_quote:
            kept.append(line + "\n")

    return "".join(kept)


def strip_quoted_and_budget(
    text: str, quote_marker: str, max_words: int, split_ratio: float
) -> str:
    """
    Strip quoted blocks, then squeeze the result to at most ``max_words`` words.

    Text already within budget after stripping is returned verbatim (line
    breaks included). Longer text keeps ``floor(max_words * split_ratio)``
    words from the start and the remainder from the end, joined by single
    spaces.
    """
    body = strip_quoted_blocks(text, quote_marker)
    budget = Budget(max_units=max_words, head_fraction=split_ratio)

    words = body.split()
    if len(words) <= budget.max_units:
        return body
    return " ".join(apply_budget(words, budget))


def allocate_budget(
    text_a: str, text_b: str, total_word_cap: int, split_ratio: float
) -> tuple[str, str]:
    """
    Fit two texts under a combined word cap.

    If A is longer than its ``split_ratio`` share, only A is cut (to its
    share) and B is left as is, so the total can still exceed the cap.
    Otherwise A is kept whole and B is cut to whatever the cap leaves.
    """
    words_a = text_a.split()
    words_b = text_b.split()

    if len(words_a) + len(words_b) <= total_word_cap:
        return text_a, text_b

    take_a = math.floor(total_word_cap * split_ratio)
    if len(words_a) > take_a:
        return " ".join(words_a[:take_a]), text_b

    take_b = total_word_cap - len(words_a)
    return text_a, " ".join(words_b[:take_b])
