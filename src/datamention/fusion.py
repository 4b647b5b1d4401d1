"""
Cascade of the three text classifiers.

Stage 1 (binary) runs on the whole batch. Only sentences where
has_dataset > no_dataset go on to stage 2 (data type) and stage 3 (reuse),
two independent calls on the same subset. The stricter annotation test
(`ClassificationVerdict.qualifies`, > DATASET_THRESHOLD) is applied later,
by the section builder and the injector.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .errors import ClassifierUnavailable, MalformedResponse
from .models import ClassificationVerdict

logger = logging.getLogger(__name__)


class CascadeFusion:

    def __init__(self, binary, datatype, reuse, model_name: str = "datamention"):
        self.binary = binary
        self.datatype = datatype
        self.reuse = reuse
        self.model_name = model_name

    def classify_batch(self, texts: Sequence[str]) -> List[Optional[ClassificationVerdict]]:
        """
        One verdict per text, same order. None where the binary classifier
        gave no usable record. Binary failures propagate; secondary failures
        leave the batch with binary-only verdicts.
        """
        if not texts:
            return []
        logger.info("classify: %d sentence(s)", len(texts))

        verdicts: List[Optional[ClassificationVerdict]] = [
            None if b is None else ClassificationVerdict(has_dataset_score=b.has_dataset, no_dataset_score=b.no_dataset)
            for b in self.binary.classify_batch(texts)
        ]
        cascaded = [i for i, v in enumerate(verdicts) if v is not None and v.dataset_likely]
        if not cascaded:
            return verdicts

        cascaded_texts = [texts[i] for i in cascaded]
        try:
            type_verdicts = self.datatype.classify_batch(cascaded_texts)
            reuse_verdicts = self.reuse.classify_batch(cascaded_texts)
        except (ClassifierUnavailable, MalformedResponse) as exc:
            logger.warning("secondary classification failed, binary verdicts kept for %d sentence(s): %s",
                           len(cascaded), exc)
            return verdicts

        for i, type_verdict, reuse_verdict in zip(cascaded, type_verdicts, reuse_verdicts):
            verdicts[i] = verdicts[i].model_copy(update={
                "type_scores": dict(type_verdict.scores) if type_verdict is not None else {},
                "is_reuse": reuse_verdict is not None and reuse_verdict.is_reuse,
            })
        return verdicts

    def classify_to_json(self, texts: Sequence[str]) -> Dict[str, Any]:
        """Service-style output: binary scores for every text, types and reuse for cascaded ones."""
        classifications = []
        for text, verdict in zip(texts, self.classify_batch(texts)):
            entry: Dict[str, Any] = {"text": text}
            if verdict is not None:
                entry["has_dataset"] = verdict.has_dataset_score
                entry["no_dataset"] = verdict.no_dataset_score
                if verdict.dataset_likely and verdict.type_scores:
                    entry.update(verdict.type_scores)
                    entry["reuse"] = verdict.is_reuse
            classifications.append(entry)
        return {
            "model": self.model_name,
            "software": "DeLFT",
            "date": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "classifications": classifications,
        }
