"""Page analysis and provider connectivity endpoints"""
from fastapi import APIRouter, HTTPException, Depends
import logging

from ...errors import ComicTranslatorError
from ...models.analysis import AnalysisResult
from ...models.response import AnalyzeRequest, ConnectionTestRequest, ConnectionTestResult
from ...services import AnalysisClient, ComicPipeline
from ..dependencies import get_analysis_client, get_comic_pipeline

logger = logging.getLogger(__name__)
router = APIRouter(tags=["analysis"])


@router.post("/process", response_model=AnalysisResult)
async def process_comic(
    request: AnalyzeRequest,
    pipeline: ComicPipeline = Depends(get_comic_pipeline)
):
    """
    Extract and translate the text of an uploaded page

    A result already cached for the session and file is returned without
    calling the provider.
    """
    try:
        outcome = await pipeline.analyze_page(request)
        logger.info(
            f"Processed {request.filename} for session {request.session_id} "
            f"({'cached' if outcome.cached else 'fresh'}, {len(outcome.result.reading_order)} texts)"
        )
        return outcome.result

    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Processing error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to process comic: {str(e)}")


@router.post("/test-connection")
async def test_connection(
    request: ConnectionTestRequest,
    analysis_client: AnalysisClient = Depends(get_analysis_client)
):
    """Send a minimal prompt to check provider credentials"""
    try:
        result: ConnectionTestResult = await analysis_client.test_connection(
            request.provider,
            request.model,
            request.api_key
        )
        return {
            "success": result.success,
            "message": result.message,
            "details": result.model_dump()
        }

    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"API test error: {e}")
        raise HTTPException(status_code=500, detail=f"API connection test failed: {str(e)}")
