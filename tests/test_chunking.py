"""Tests for knowledge text chunking."""

import pytest

from copygen.core.chunking import chunk_knowledge_text


def test_chunk_text_basic():
    """Test basic chunking with known input."""
    text = "A" * 100
    chunks = chunk_knowledge_text(text, max_chars=30, min_chars=0, overlap=10)

    # Chunk 0: 0-30, Chunk 1: 20-50, Chunk 2: 40-70, Chunk 3: 60-90, Chunk 4: 80-100
    assert len(chunks) == 5
    assert chunks[0]["chunk_index"] == 0
    assert chunks[0]["start_char"] == 0
    assert chunks[0]["end_char"] == 30
    assert chunks[-1]["start_char"] == 80
    assert chunks[-1]["end_char"] == 100


def test_chunk_text_with_overlap():
    """Test that chunks have proper overlap."""
    text = "0123456789" * 10
    chunks = chunk_knowledge_text(text, max_chars=30, min_chars=0, overlap=10)

    assert chunks[0]["end_char"] - chunks[1]["start_char"] == 10
    assert chunks[1]["end_char"] - chunks[2]["start_char"] == 10


def test_chunk_text_empty():
    assert chunk_knowledge_text("") == []


def test_chunk_text_below_minimum_is_dropped():
    assert chunk_knowledge_text("Short text") == []

    chunks = chunk_knowledge_text("Short text", min_chars=1)
    assert len(chunks) == 1
    assert chunks[0]["content"] == "Short text"
    assert chunks[0]["end_char"] == len("Short text")


def test_chunk_text_prefers_late_paragraph_break():
    text = "A" * 80 + "\n\n" + "B" * 100
    chunks = chunk_knowledge_text(text, max_chars=100, min_chars=0, overlap=10)

    assert chunks[0]["content"] == "A" * 80
    assert chunks[0]["end_char"] == 82
    assert chunks[1]["start_char"] == 72


def test_chunk_text_uses_sentence_break():
    text = "A" * 80 + ". " + "B" * 100
    chunks = chunk_knowledge_text(text, max_chars=100, min_chars=0, overlap=10)

    assert chunks[0]["content"] == "A" * 80 + "."
    assert chunks[0]["end_char"] == 82


def test_chunk_text_ignores_early_paragraph_break():
    """A break in the first 70% of the window would make the chunk too small."""
    text = "A" * 20 + "\n\n" + "B" * 200
    chunks = chunk_knowledge_text(text, max_chars=100, min_chars=0, overlap=10)

    assert chunks[0]["end_char"] == 100


def test_chunk_text_short_tail_not_chunked():
    text = "A" * 225
    chunks = chunk_knowledge_text(text, max_chars=100, min_chars=50, overlap=10)

    # Window 180-225 would leave only 45 characters
    assert [(c["start_char"], c["end_char"]) for c in chunks] == [(0, 100), (90, 190)]


def test_chunk_text_indexes_are_contiguous():
    text = "Refunds are processed within five days. " * 200
    chunks = chunk_knowledge_text(text)

    assert len(chunks) > 1
    assert [c["chunk_index"] for c in chunks] == list(range(len(chunks)))
    for chunk in chunks:
        assert 200 <= len(chunk["content"]) <= 2500


def test_chunk_text_invalid_params():
    """Test that invalid parameters raise ValueError."""
    with pytest.raises(ValueError, match="must be greater than overlap"):
        chunk_knowledge_text("text", max_chars=10, overlap=10)


def test_chunk_text_tiny_window_still_advances():
    """A window cut back to the overlap must still move forward by at least one character."""
    chunks = chunk_knowledge_text("ab cd", max_chars=3, min_chars=0, overlap=2)

    assert [(c["start_char"], c["end_char"]) for c in chunks] == [(0, 3), (1, 3), (2, 5)]
    assert chunks[-1]["content"] == "cd"
