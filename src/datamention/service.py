"""FastAPI application entry point."""

from __future__ import annotations

import logging
import os
import tempfile
from functools import lru_cache
from typing import List

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from lxml import etree
from pydantic import BaseModel

from .config import settings
from .errors import AlignmentError, MalformedResponse, ServiceUnavailable
from .pipeline import DatasetAnnotator

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"

app = FastAPI(
    title="datamention",
    description="Dataset mention classification and TEI annotation API",
    version=settings.version,
)


class SentenceRequest(BaseModel):
    text: str


@lru_cache(maxsize=1)
def get_annotator() -> DatasetAnnotator:
    return DatasetAnnotator.from_settings(settings)


# ---------- error mapping ----------
@app.exception_handler(ServiceUnavailable)
async def service_unavailable(_request: Request, exc: ServiceUnavailable) -> JSONResponse:
    logger.error("collaborator unavailable (%s): %s", exc.service, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc), "service": exc.service})


@app.exception_handler(MalformedResponse)
async def malformed_response(_request: Request, exc: MalformedResponse) -> JSONResponse:
    logger.error("malformed answer from %s: %s", exc.service, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc), "service": exc.service})


@app.exception_handler(AlignmentError)
async def alignment_error(_request: Request, exc: AlignmentError) -> JSONResponse:
    logger.error("relevance alignment failed: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(etree.XMLSyntaxError)
async def invalid_xml(_request: Request, exc: etree.XMLSyntaxError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": f"invalid XML: {exc}"})


# ---------- routes ----------
@app.get("/health")
def health() -> dict:
    """Simple readiness probe."""
    return {"status": "ok", "version": settings.version}


@app.post("/classify/sentence")
def classify_sentence(payload: SentenceRequest, annotator: DatasetAnnotator = Depends(get_annotator)):
    """Cascade verdict for one sentence."""
    if not payload.text.strip():
        return Response(status_code=204)
    return annotator.classify_sentences([payload.text])


@app.post("/classify/sentences")
def classify_sentences(texts: List[str] = Body(...), annotator: DatasetAnnotator = Depends(get_annotator)):
    """Cascade verdicts for a JSON array of sentences."""
    texts = [t for t in texts if t.strip()]
    if not texts:
        return Response(status_code=204)
    return annotator.classify_sentences(texts)


@app.post("/process/tei")
async def process_tei(request: Request, segment_sentences: bool = False,
                      annotator: DatasetAnnotator = Depends(get_annotator)) -> Response:
    """Annotate a TEI document sent as the raw request body."""
    body = await request.body()
    if not body.strip():
        raise HTTPException(status_code=400, detail="empty TEI document")
    tei = await run_in_threadpool(annotator.process_tei, body, segment_sentences)
    return Response(content=tei, media_type=XML_MEDIA_TYPE)


@app.post("/process/pdf")
async def process_pdf(request: Request, segment_sentences: bool = False,
                      annotator: DatasetAnnotator = Depends(get_annotator)) -> Response:
    """Run GROBID on a PDF sent as the raw request body, then annotate."""
    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="empty PDF")
    fd, path = tempfile.mkstemp(suffix=".pdf")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(body)
        tei = await run_in_threadpool(annotator.process_pdf, path, segment_sentences)
    finally:
        os.unlink(path)
    return Response(content=tei, media_type=XML_MEDIA_TYPE)
