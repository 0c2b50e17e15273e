"""Text chunking for knowledge base indexing."""

from typing import Any

# A natural break only counts if it falls this far into the window
_NATURAL_BREAK_RATIO = 0.7


def _last_index(text: str, needle: str, at_or_before: int) -> int:
    """Last position <= at_or_before where needle starts, or -1."""
    return text.rfind(needle, 0, at_or_before + len(needle))


def chunk_knowledge_text(
    text: str,
    max_chars: int = 2500,
    min_chars: int = 200,
    overlap: int = 200,
) -> list[dict[str, Any]]:
    """
    Split extracted document text into overlapping chunks.

    Each window holds up to max_chars characters and is cut at the best natural
    boundary found in its last 30%: a paragraph break, then a sentence end, then
    otherwise the last space. Chunks shorter than min_chars after trimming are
    dropped, and the tail is not chunked once fewer than min_chars remain.

    Args:
        text: Text to chunk
        max_chars: Maximum characters per window
        min_chars: Minimum characters for a chunk to be kept
        overlap: Characters shared between consecutive windows

    Returns:
        List of chunk dicts with:
            - chunk_index: int (0-based, over kept chunks)
            - content: str (trimmed)
            - start_char: int
            - end_char: int

    Raises:
        ValueError: If max_chars <= overlap
    """
    if max_chars <= overlap:
        raise ValueError(f"max_chars ({max_chars}) must be greater than overlap ({overlap})")

    if not text:
        return []

    chunks: list[dict[str, Any]] = []
    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + max_chars, text_length)

        if end < text_length:
            floor = start + max_chars * _NATURAL_BREAK_RATIO
            paragraph_break = _last_index(text, "\n\n", end)
            sentence_break = _last_index(text, ". ", end)
            space_break = _last_index(text, " ", end)

            if paragraph_break > floor:
                end = paragraph_break + 2
            elif sentence_break > floor:
                end = sentence_break + 2
            elif space_break > start:
                end = space_break + 1

        content = text[start:end].strip()
        if len(content) >= min_chars:
            chunks.append(
                {
                    "chunk_index": len(chunks),
                    "content": content,
                    "start_char": start,
                    "end_char": end,
                }
            )

        if end >= text_length:
            break

        next_start = end - overlap
        if next_start <= start:
            start += max(max_chars // 4, 1)
        else:
            start = next_start

        if text_length - start < min_chars:
            break

    return chunks
