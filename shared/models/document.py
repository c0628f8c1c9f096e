"""Pydantic models for document chunks.

Hierarchy:
  ChunkMetadata: source metadata plus the position of one chunk.
  DocumentChunk: one text window of a source document, ready for embedding.
"""

from typing import Literal

from pydantic import BaseModel

ChunkSource = Literal["jira", "confluence"]


class ChunkMetadata(BaseModel):
    """Metadata carried by each chunk into the vector payload.

    chunk_index is zero-based and dense; chunk_index < total_chunks.
    """

    source: ChunkSource
    title: str
    url: str | None = None
    page_id: str | None = None
    issue_key: str | None = None
    type: str | None = None
    chunk_index: int = 0
    total_chunks: int = 1


class DocumentChunk(BaseModel):
    """A single text window of a document."""

    id: str
    content: str
    metadata: ChunkMetadata
