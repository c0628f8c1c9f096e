from pydantic import BaseModel


class SearchResultItem(BaseModel):
    id: str
    score: float
    source: str | None
    title: str
    content: str | None
    url: str | None
    page_id: str | None
    issue_key: str | None
    chunk_index: int | None
    total_chunks: int | None
    embedding_mocked: bool


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultItem]
    total: int
    query_embedding_mocked: bool = False


class StatsResponse(BaseModel):
    collection: str
    status: str | None
    points_count: int | None
    indexed_vectors_count: int | None
    segments_count: int | None
    vector_size: int | None
    distance: str | None
