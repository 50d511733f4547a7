"""Analyze stored comic pages and keep sessions in step with the results"""
import logging

from ..errors import ComicTranslatorError, ValidationError
from ..models.analysis import AnalysisOptions, AnalysisResult
from ..models.response import AnalyzeOutcome, AnalyzeRequest, NewPage
from ..models.session import PageStatus, ResultReference
from ..utils.helpers import utc_now
from .content_store import ContentStore
from .image_processor import detected_mime_type
from .llm_service import AnalysisClient
from .result_store import ResultStore
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class ComicPipeline:
    """Content lookup, result cache, LLM analysis and page bookkeeping for one request"""

    def __init__(
        self,
        content_store: ContentStore,
        result_store: ResultStore,
        session_store: SessionStore,
        analysis_client: AnalysisClient
    ):
        self.content_store = content_store
        self.result_store = result_store
        self.session_store = session_store
        self.analysis_client = analysis_client

    async def analyze_page(self, request: AnalyzeRequest) -> AnalyzeOutcome:
        """
        Analyze one stored page for a session, reusing a cached result when present

        Args:
            request: Stored filename, session id and provider parameters

        Returns:
            AnalyzeOutcome with ``cached`` set when no network call was made

        Raises:
            ValidationError: malformed filename or a hash that does not match it
            NotFoundError: stored content, session or page is absent
            ComicTranslatorError: any analysis failure (the page is marked ``error``)
        """
        digest, extension = self.content_store.resolve(request.filename)
        if request.hash and request.hash != digest:
            raise ValidationError(f"Hash {request.hash} does not match file {request.filename}")
        image_bytes = self.content_store.get(digest, extension)

        cached = self.result_store.load(request.session_id, digest)
        if cached is not None:
            logger.info(f"Reusing existing result for file hash: {digest}")
            self._record(request, digest, cached)
            return AnalyzeOutcome(result=cached, cached=True, content_digest=digest, session_id=request.session_id)

        mime_type = detected_mime_type(image_bytes)
        if request.page_id:
            self.session_store.update_page(
                request.session_id, request.page_id, {"status": PageStatus.PROCESSING}
            )

        options = AnalysisOptions(
            provider=request.provider,
            model=request.model,
            api_key=request.api_key,
            temperature=request.temperature,
            mime_type=mime_type
        )
        try:
            result = await self.analysis_client.analyze(image_bytes, options)
        except ComicTranslatorError as e:
            logger.error(f"Processing error for {request.filename}: {e.message}")
            self._mark_failed(request)
            raise

        self.result_store.save(digest, request.session_id, result)
        self._record(request, digest, result)
        return AnalyzeOutcome(result=result, cached=False, content_digest=digest, session_id=request.session_id)

    def _reference(self, session_id: str, digest: str, result: AnalysisResult) -> ResultReference:
        return ResultReference(
            session_id=session_id,
            content_digest=digest,
            page_number=result.page_number,
            text_count=len(result.reading_order),
            processed_at=utc_now()
        )

    def _record(self, request: AnalyzeRequest, digest: str, result: AnalysisResult) -> None:
        reference = self._reference(request.session_id, digest, result)
        if request.page_id:
            self.session_store.update_page(
                request.session_id,
                request.page_id,
                {"status": PageStatus.COMPLETED, "result": reference}
            )
        elif request.add_to_session:
            self.session_store.add_page(
                request.session_id,
                NewPage(
                    content_digest=digest,
                    stored_filename=request.filename,
                    original_name=request.original_name or request.filename,
                    status=PageStatus.COMPLETED,
                    result=reference
                )
            )

    def _mark_failed(self, request: AnalyzeRequest) -> None:
        if request.page_id:
            self.session_store.update_page(request.session_id, request.page_id, {"status": PageStatus.ERROR})
