"""
Section relevance models: given the segment features of a document, one
boolean per segment.
"""
from __future__ import annotations

import logging
from typing import List

from .errors import MalformedResponse, RelevanceModelUnavailable
from .gateway import ServiceClient
from .grobid import map_head_to_hint
from .models import SectionFeatures
from .sections import feature_vectors, has_materials_and_methods

logger = logging.getLogger(__name__)

RELEVANT_HINTS = frozenset({"METHODS", "DATA"})


class HttpRelevanceModel(ServiceClient):
    """Remote sequence labeler. Answers {"relevant": [bool, ...]}."""

    unavailable = RelevanceModelUnavailable

    def __init__(self, url: str, **kwargs):
        super().__init__("relevance-model", url, **kwargs)

    def label(self, features: SectionFeatures) -> List[bool]:
        if len(features) == 0:
            return []
        payload = self.post_json({
            "texts": features.texts,
            "kinds": features.kinds,
            "dataset_counts": features.dataset_counts,
            "dataset_types": features.dataset_types,
            "vectors": feature_vectors(features),
        })
        flags = payload.get("relevant") if isinstance(payload, dict) else None
        if not isinstance(flags, list) or not all(isinstance(f, bool) for f in flags):
            raise MalformedResponse(f"{self.name}: no boolean 'relevant' list", service=self.name)
        return flags


class HeadingRelevanceModel:
    """
    Local stand-in for the sequence labeler: methods/data headings are
    relevant, and so is any paragraph with a qualifying sentence.
    """

    def label(self, features: SectionFeatures) -> List[bool]:
        flags = []
        for text, kind, count in zip(features.texts, features.kinds, features.dataset_counts):
            if kind == "head":
                flags.append(map_head_to_hint(text) in RELEVANT_HINTS or has_materials_and_methods(text))
            else:
                flags.append(count > 0)
        logger.debug("heading heuristic: %d/%d segment(s) relevant", sum(flags), len(flags))
        return flags
