"""Split document text into bounded, ordered, overlapping chunks.

Strategy:
1. Split into paragraphs (two or more newlines).
2. Greedily merge paragraphs into chunks up to max_chunk_size tokens.
3. If a single paragraph exceeds max_chunk_size, split it by sentences
   (or straight by characters when sentences are not preserved).
4. A sentence that still exceeds max_chunk_size is split by characters.
5. Optionally copy overlap_size words across each chunk boundary.

Character offsets are accumulated from the lengths of the processed text
rather than located in the source, so they approximate source positions.
"""

import re
from typing import List, NamedTuple, Optional

from loguru import logger

from knowledge_base.models import Chunk, ChunkingOptions, ChunkMetadata
from knowledge_base.tokens import estimate_tokens, exceeds_token_limit

_PARAGRAPH_SEPARATOR = re.compile(r"\n\n+")
_SENTENCE_ENDING = re.compile(r"[.!?]+\s")

# Inverse of the estimator's ~4 characters per token.
CHARS_PER_TOKEN = 4


class _Span(NamedTuple):
    text: str
    start_char: int
    end_char: int


class ChunkingEngine:
    """Stateless chunker; `options` are the defaults for calls that pass none."""

    def __init__(self, options: Optional[ChunkingOptions] = None):
        self.options = options or ChunkingOptions()

    def chunk(
        self,
        content: str,
        document_id: str,
        options: Optional[ChunkingOptions] = None,
    ) -> List[Chunk]:
        """
        Split a document into chunks.

        Args:
            content: Full document text
            document_id: Identifier of the owning document
            options: Chunking options, defaults to the engine's options

        Returns:
            Chunks in document order with positions 0, 1, 2, ...
        """
        options = options or self.options

        if not content or not content.strip():
            return []

        spans = _pack_paragraphs(_split_paragraphs(content), options)

        if options.overlap_size > 0 and len(spans) > 1:
            limit = options.max_chunk_size if options.bound_overlap else None
            spans = _add_overlap(spans, options.overlap_size, limit)

        chunks = [
            Chunk(
                document_id=document_id,
                content=span.text,
                position=position,
                metadata=ChunkMetadata(
                    start_char=span.start_char,
                    end_char=span.end_char,
                    token_count=estimate_tokens(span.text),
                ),
            )
            for position, span in enumerate(spans)
        ]

        logger.debug(f"Split document {document_id} into {len(chunks)} chunk(s)")
        return chunks


def chunk_text(
    content: str,
    document_id: str,
    options: Optional[ChunkingOptions] = None,
) -> List[Chunk]:
    """Chunk `content` with a default engine."""
    return ChunkingEngine(options).chunk(content, document_id)


def _split_paragraphs(content: str) -> List[str]:
    paragraphs = (p.strip() for p in _PARAGRAPH_SEPARATOR.split(content))
    return [p for p in paragraphs if p]


def _pack_paragraphs(paragraphs: List[str], options: ChunkingOptions) -> List[_Span]:
    spans: List[_Span] = []
    current = ""
    start_char = 0

    for paragraph in paragraphs:
        if exceeds_token_limit(paragraph, options.max_chunk_size):
            # Flush current buffer first
            if current.strip():
                spans.append(_Span(current.strip(), start_char, start_char + len(current)))
                current = ""

            spans.extend(_split_large_paragraph(paragraph, start_char, options))
            start_char += len(paragraph)
            continue

        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if not exceeds_token_limit(candidate, options.max_chunk_size):
            current = candidate
            continue

        if current.strip():
            spans.append(_Span(current.strip(), start_char, start_char + len(current)))
        start_char += len(current)
        current = paragraph

    if current.strip():
        spans.append(_Span(current.strip(), start_char, start_char + len(current)))

    return spans


def _split_large_paragraph(
    paragraph: str, start_char: int, options: ChunkingOptions
) -> List[_Span]:
    if not options.preserve_sentences:
        return _split_characters(paragraph, start_char, options.max_chunk_size)

    spans: List[_Span] = []
    current = ""
    cursor = start_char

    for sentence in _split_sentences(paragraph):
        candidate = f"{current} {sentence}" if current else sentence
        if not exceeds_token_limit(candidate, options.max_chunk_size):
            current = candidate
            continue

        if current.strip():
            spans.append(_Span(current.strip(), cursor, cursor + len(current)))
            cursor += len(current)

        if exceeds_token_limit(sentence, options.max_chunk_size):
            spans.extend(_split_characters(sentence, cursor, options.max_chunk_size))
            cursor += len(sentence)
            current = ""
        else:
            current = sentence

    if current.strip():
        spans.append(_Span(current.strip(), cursor, cursor + len(current)))

    return spans


def _split_sentences(text: str) -> List[str]:
    """Split on runs of '.', '!' or '?' followed by whitespace."""
    sentences = []
    last_index = 0

    for match in _SENTENCE_ENDING.finditer(text):
        sentence = text[last_index : match.end()].strip()
        if sentence:
            sentences.append(sentence)
        last_index = match.end()

    remaining = text[last_index:].strip()
    if remaining:
        sentences.append(remaining)

    return sentences or [text]


def _split_characters(text: str, start_char: int, max_tokens: int) -> List[_Span]:
    """Last resort: cut `text` into consecutive slices of max_tokens * 4 characters.

    A slice dense enough in words to still exceed max_tokens is shortened
    to its longest prefix that fits.
    """
    max_chars = max_tokens * CHARS_PER_TOKEN
    spans: List[_Span] = []
    cursor = start_char
    offset = 0

    while offset < len(text):
        piece = text[offset : offset + max_chars]
        if exceeds_token_limit(piece, max_tokens):
            piece = piece[: _longest_fitting_prefix(piece, max_tokens)]

        if piece.strip():
            spans.append(_Span(piece.strip(), cursor, cursor + len(piece)))
        cursor += len(piece)
        offset += len(piece)

    return spans


def _longest_fitting_prefix(text: str, max_tokens: int) -> int:
    # The estimate never decreases as a prefix grows, so binary search it.
    low, high = 1, len(text)
    while low < high:
        middle = (low + high + 1) // 2
        if exceeds_token_limit(text[:middle], max_tokens):
            high = middle - 1
        else:
            low = middle
    return low


def _add_overlap(
    spans: List[_Span], overlap_size: int, max_tokens: Optional[int] = None
) -> List[_Span]:
    """Copy trailing words of the previous chunk and leading words of the next.

    Overlap words always come from the chunks as they were before overlap.
    With `max_tokens`, fewer words are borrowed until the chunk fits.
    """
    overlapped: List[_Span] = []
    last = len(spans) - 1

    for i, span in enumerate(spans):
        previous_words = spans[i - 1].text.split() if i > 0 else []
        next_words = spans[i + 1].text.split() if i < last else []

        size = overlap_size
        while True:
            text, start_char = _with_overlap(span, previous_words, next_words, size)
            if max_tokens is None or size == 0:
                break
            if not exceeds_token_limit(text, max_tokens):
                break
            size -= 1

        overlapped.append(_Span(text, start_char, start_char + len(text)))

    return overlapped


def _with_overlap(
    span: _Span, previous_words: List[str], next_words: List[str], size: int
) -> tuple[str, int]:
    text = span.text
    start_char = span.start_char

    if size > 0 and previous_words:
        prefix = " ".join(previous_words[-size:])
        text = f"{prefix} {text}"
        start_char = max(0, start_char - len(prefix) - 1)

    if size > 0 and next_words:
        text = f"{text} {' '.join(next_words[:size])}"

    return text.strip(), start_char
