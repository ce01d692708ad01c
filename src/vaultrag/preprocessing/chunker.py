"""
Fixed-size chunker.

Packs whole lines into chunks of at most ``chunk_size`` tiktoken tokens and
records the 1-based line span of each chunk so search results can point
back into the note.
"""
from dataclasses import dataclass
from typing import List, Optional

import tiktoken

ENCODING_NAME = "cl100k_base"

_encoding = None


def _get_encoding():
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding(ENCODING_NAME)
    return _encoding


@dataclass
class TextChunk:
    content: str
    start_line: int
    end_line: int


class _ChunkBuffer:
    def __init__(self):
        self.lines: List[str] = []
        self.tokens = 0
        self.start_line: Optional[int] = None
        self.end_line: Optional[int] = None

    def add(self, line: str, line_number: int, tokens: int):
        if self.start_line is None:
            self.start_line = line_number
        self.lines.append(line)
        self.tokens += tokens
        if line.strip():
            self.end_line = line_number

    def drain(self) -> Optional[TextChunk]:
        chunk = None
        content = "\n".join(self.lines).rstrip()
        if content.strip():
            chunk = TextChunk(content=content, start_line=self.start_line, end_line=self.end_line)
        self.__init__()
        return chunk


def chunk_text(text: str, chunk_size: int) -> List[TextChunk]:
    """
    Split ``text`` into line-aligned chunks of at most ``chunk_size`` tokens.

    A single line longer than ``chunk_size`` is cut on token boundaries and
    every piece keeps that line's number.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not text.strip():
        return []

    encoding = _get_encoding()
    chunks: List[TextChunk] = []
    buffer = _ChunkBuffer()

    def flush():
        chunk = buffer.drain()
        if chunk:
            chunks.append(chunk)

    for line_number, line in enumerate(text.splitlines(), start=1):
        # Leading blank lines never start a chunk
        if not buffer.lines and not line.strip():
            continue

        line_tokens = encoding.encode(line)
        cost = len(line_tokens) + 1  # newline

        if len(line_tokens) > chunk_size:
            flush()
            for i in range(0, len(line_tokens), chunk_size):
                piece = encoding.decode(line_tokens[i:i + chunk_size])
                if piece.strip():
                    chunks.append(TextChunk(content=piece, start_line=line_number, end_line=line_number))
            continue

        if buffer.lines and buffer.tokens + cost > chunk_size:
            flush()
            if not line.strip():
                continue

        buffer.add(line, line_number, cost)

    flush()
    return chunks
