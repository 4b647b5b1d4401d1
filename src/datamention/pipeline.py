#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dataset mention annotation, end to end.
Library:
  annotator = DatasetAnnotator.from_settings(settings)
  tei = annotator.process_pdf("paper.pdf")               # GROBID -> annotated TEI
  tei = annotator.process_tei(xml, segment_sentences=True)
  out = annotator.classify_sentences(["The data is on Zenodo."])
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .annotate import AnnotationInjector
from .context import RunContext
from .document import Document
from .fusion import CascadeFusion
from .gateway import BinaryClassifier, DatatypeClassifier, ReuseClassifier
from .grobid import grobid_fulltext_tei
from .relevance import HeadingRelevanceModel, HttpRelevanceModel
from .sections import RelevanceGate, SectionFeatureBuilder
from .segmenter import SentenceSegmenter
from .tei import apply_annotations, document_from_tree, parse_tree, to_tei_string

logger = logging.getLogger(__name__)


def normalize_sentence(text: str) -> str:
    return text.replace("\n", " ").replace("\t", " ")


class DatasetAnnotator:
    """
    Stateless between calls: every document gets its own RunContext, so one
    annotator can serve several documents at once.
    """

    def __init__(self, fusion: CascadeFusion, relevance_model, segmenter: Optional[SentenceSegmenter] = None,
                 grobid_url: str = "http://localhost:8070", grobid_timeout: int = 120):
        self.fusion = fusion
        self.relevance_model = relevance_model
        self.segmenter = segmenter
        self.grobid_url = grobid_url
        self.grobid_timeout = grobid_timeout
        self.builder = SectionFeatureBuilder(fusion)
        self.gate = RelevanceGate()
        self.injector = AnnotationInjector(fusion)

    @classmethod
    def from_settings(cls, settings) -> "DatasetAnnotator":
        kw = dict(timeout=settings.service_timeout, max_retries=settings.service_max_retries)
        fusion = CascadeFusion(
            BinaryClassifier(settings.binary_classifier_url, **kw),
            DatatypeClassifier(settings.datatype_classifier_url, **kw),
            ReuseClassifier(settings.reuse_classifier_url, **kw),
        )
        if settings.relevance_model_url:
            relevance_model = HttpRelevanceModel(settings.relevance_model_url, **kw)
        else:
            logger.info("no relevance model configured, using heading heuristic")
            relevance_model = HeadingRelevanceModel()
        return cls(fusion, relevance_model, SentenceSegmenter.from_spacy(settings.spacy_model),
                   grobid_url=settings.grobid_url)

    # ---------- document ----------
    def annotate(self, document: Document) -> RunContext:
        run = RunContext()
        document.assign_sentence_ids()
        features = self.builder.build(document, run)
        flags = self.relevance_model.label(features)
        sections = self.gate.relevant_sections(document, features, flags)
        self.injector.inject(document, sections, run)
        return run

    def annotate_tei(self, xml: Union[str, bytes], segment_sentences: bool = False) -> Tuple[Document, RunContext]:
        root = parse_tree(xml)
        if segment_sentences:
            if self.segmenter is None:
                raise ValueError("sentence segmentation requested but no segmenter is configured")
            self.segmenter.segment(root)
        document = document_from_tree(root)
        run = self.annotate(document)
        apply_annotations(document)
        return document, run

    def process_tei(self, xml: Union[str, bytes], segment_sentences: bool = False) -> str:
        document, _run = self.annotate_tei(xml, segment_sentences)
        return to_tei_string(document)

    def process_pdf(self, pdf_path: Union[str, Path], segment_sentences: bool = False) -> str:
        tei = grobid_fulltext_tei(self.grobid_url, pdf_path, timeout=self.grobid_timeout)
        return self.process_tei(tei, segment_sentences)

    # ---------- sentences ----------
    def classify_sentences(self, texts: Sequence[str]) -> Dict[str, Any]:
        return self.fusion.classify_to_json([normalize_sentence(t) for t in texts])
