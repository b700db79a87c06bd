"""Query endpoints: free-text questions and structured retrieval."""

import logging

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from neolink_insight.dashboard.api.dependencies import AnalyzerDep, RecordsDep
from neolink_insight.dashboard.models.query import QueryRequest, QueryResponse
from neolink_insight.domain.query_spec import QuerySpec
from neolink_insight.domain.services.filter_engine import retrieve_relevant_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["query"])


@router.post("/query", response_model=QueryResponse)
async def answer_query(request: QueryRequest, records: RecordsDep, analyzer: AnalyzerDep) -> QueryResponse:
    """Analyze a free-text question and retrieve the matching records.

    Intent analysis never fails the request: an unreachable or confused
    language model yields the fallback or default spec.
    """
    spec = await analyzer.analyze_async(request.query)
    if request.limit is not None:
        spec = spec.model_copy(update={"limit": request.limit})

    result = await run_in_threadpool(retrieve_relevant_data, records, spec)
    logger.info(
        f"Query answered by {analyzer.name}: {result.matched_count} matched, "
        f"{len(result.returned_records)} returned"
    )
    return QueryResponse.from_result(spec, result)


@router.post("/retrieve", response_model=QueryResponse)
def retrieve(spec: QuerySpec, records: RecordsDep) -> QueryResponse:
    """Apply an explicit QuerySpec without intent analysis."""
    result = retrieve_relevant_data(records, spec)
    return QueryResponse.from_result(spec, result)
