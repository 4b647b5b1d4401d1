"""
Annotation of qualifying sentences inside relevant sections.

For each qualifying sentence: next N from the run, `corresponds_to` set to
dataInstance-N, dataset-N / dataInstance-N registered, and the enclosing
section flagged. The registries end up in `document.metadata` only when
something was annotated.
"""
from __future__ import annotations

import logging
from typing import Iterable

from .context import RunContext
from .document import Document, Section, enclosing_section

logger = logging.getLogger(__name__)


class AnnotationInjector:

    def __init__(self, fusion):
        self.fusion = fusion

    def inject(self, document: Document, sections: Iterable[Section], run: RunContext) -> int:
        """Annotate sentences of `sections` in order; returns how many were annotated."""
        annotated = 0
        for section in sections:
            for paragraph in section.paragraphs:
                texts = [sentence.text for sentence in paragraph.sentences]
                run.classify_missing(self.fusion, texts)
                for sentence in paragraph.sentences:
                    verdict = run.verdict(sentence.text)
                    if verdict is None or not verdict.qualifies:
                        continue
                    data_type, score = verdict.best_type()
                    instance = run.register(data_type, score, verdict.is_reuse)
                    sentence.corresponds_to = instance.identifier
                    owner = enclosing_section(sentence)
                    if owner is not None:
                        owner.has_dataset = True
                    annotated += 1
                    logger.debug("%s -> %s (%s, %.3f)", sentence.identifier, instance.identifier, data_type, score)

        metadata = run.metadata()
        if metadata is not None:
            document.metadata = metadata
        logger.info("annotated %d data instance(s)", annotated)
        return annotated
