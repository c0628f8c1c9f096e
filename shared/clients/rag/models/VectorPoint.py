"""VectorPoint model: the payload stored alongside each vector chunk in a RAG backend."""

from pydantic import BaseModel

from shared.models.document import ChunkSource, DocumentChunk


class VectorPayload(BaseModel):
    """Flat metadata payload stored with each vector.

    Attributes:
        content:           Raw text content of this chunk.
        source:            Origin system of the chunk ("jira" or "confluence").
        title:             Human-readable title of the source page or issue.
        url:               Browser URL of the source, if known.
        page_id:           Wiki page ID (wiki chunks only).
        issue_key:         Ticket key (ticket chunks only).
        type:              Free-form document type (e.g. the issue type).
        chunk_index:       Zero-based position of this chunk within the document.
        total_chunks:      Number of chunks the document was split into.
        embedding_mocked:  True when the vector is random filler because the
                           embedding backend was unavailable. Such points carry
                           no semantic signal.
    """

    content: str
    source: ChunkSource
    title: str
    url: str | None = None
    page_id: str | None = None
    issue_key: str | None = None
    type: str | None = None
    chunk_index: int = 0
    total_chunks: int = 1
    embedding_mocked: bool = False

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk, embedding_mocked: bool = False) -> "VectorPayload":
        return cls(content=chunk.content, embedding_mocked=embedding_mocked, **chunk.metadata.model_dump())


class VectorPoint(BaseModel):
    """A point ready for upsert: ID, vector and payload."""

    id: str
    vector: list[float]
    payload: VectorPayload


class SearchHit(BaseModel):
    """A single scored point returned by a similarity search."""

    id: str | int
    score: float
    payload: dict = {}


class CollectionInfo(BaseModel):
    """Status and size of a collection."""

    name: str
    status: str | None = None
    points_count: int | None = None
    indexed_vectors_count: int | None = None
    segments_count: int | None = None
    vector_size: int | None = None
    distance: str | None = None
