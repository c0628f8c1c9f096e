from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import RelatedPagesRequest, SearchRequest
from server.models.responses import SearchResponse, StatsResponse

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_documents(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> SearchResponse:
    """Execute a semantic search query against the RAG backend.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (SearchRequest): JSON body with query string, limit and optional source.
        _ (None): Auth dependency result (unused).

    Returns:
        SearchResponse: Matching chunks with metadata.
    """
    query_service = request.app.state.query_service
    return await query_service.search(body)


@router.post("/related")
async def query_related_pages(
    request: Request,
    body: RelatedPagesRequest,
    _: None = Depends(verify_api_key),
) -> SearchResponse:
    """Find wiki chunks related to a ticket (the posted markdown or the saved ticket file)."""
    query_service = request.app.state.query_service
    try:
        return await query_service.find_related_pages(limit=body.limit, ticket_markdown=body.ticket_markdown)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/stats")
async def query_stats(
    request: Request,
    _: None = Depends(verify_api_key),
) -> StatsResponse:
    """Status and point counts of the vector collection."""
    query_service = request.app.state.query_service
    return await query_service.get_stats()
