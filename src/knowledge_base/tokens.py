import math
import re

_WHITESPACE = re.compile(r"\s+")


def estimate_tokens(text: str) -> int:
    """Rough token estimate without a tokenizer.

    Takes the larger of ~4 characters per token and the word count, so
    text made of many short words is not undercounted.
    """
    normalized = text.strip()
    char_estimate = math.ceil(len(normalized) / 4)
    word_estimate = len(_WHITESPACE.split(normalized))
    return max(char_estimate, word_estimate)


def exceeds_token_limit(text: str, limit: int) -> bool:
    return estimate_tokens(text) > limit
