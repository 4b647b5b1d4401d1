"""
Section level gating.

`iter_segments` is the single traversal shared by the feature builder and
the relevance gate, so the flat relevance flags always map back onto the
same headings and paragraphs they were computed for.
"""
from __future__ import annotations

import logging
import re
from typing import Iterator, List, Sequence, Tuple, Union

from .context import RunContext
from .document import Document, Paragraph, Section
from .errors import AlignmentError
from .models import SectionFeatures, SegmentKind

logger = logging.getLogger(__name__)

MAT_AND_MET_PATTERN = re.compile(r"material(s?)\s*(and|&)\s*method", re.I)
NB_BINS = 12


def iter_segments(document: Document) -> Iterator[Tuple[Section, SegmentKind, Union[str, Paragraph]]]:
    """
    (section, kind, heading text or paragraph) in document order.
    Skips sections under abstract/figDesc, sections whose heading is empty,
    and paragraphs without text.
    """
    for section in document.iter_sections():
        if section.excluded:
            continue
        if section.heading is not None:
            if not section.heading:
                continue
            yield section, "head", section.heading
        for paragraph in section.paragraphs:
            if not paragraph.text:
                continue
            yield section, "p", paragraph


def count_qualifying(run: RunContext, texts: Sequence[str]) -> int:
    count = 0
    for text in texts:
        verdict = run.verdict(text)
        if verdict is not None and verdict.qualifies:
            count += 1
    return count


class SectionFeatureBuilder:
    """Builds the relevance model input and fills the run's verdict cache."""

    def __init__(self, fusion):
        self.fusion = fusion

    def build(self, document: Document, run: RunContext) -> SectionFeatures:
        features = SectionFeatures()
        for _section, kind, node in iter_segments(document):
            if kind == "head":
                features.append(node, "head", 0)
                continue
            texts = [sentence.text for sentence in node.sentences]
            run.classify_missing(self.fusion, texts)
            # the relevance model was trained with a constant type on paragraphs too
            features.append(node.text, "p", count_qualifying(run, texts))
        logger.debug("built %d segment(s), %d sentence verdict(s) cached", len(features), len(run.verdicts))
        return features


class RelevanceGate:
    """Folds per-segment flags back into relevant sections (OR over a section's segments)."""

    def relevant_sections(self, document: Document, features: SectionFeatures,
                          flags: Sequence[bool]) -> List[Section]:
        segments = list(iter_segments(document))
        if len(features) != len(segments):
            raise AlignmentError(f"{len(features)} feature row(s) for {len(segments)} segment(s)")
        if len(flags) != len(segments):
            raise AlignmentError(f"{len(flags)} relevance flag(s) for {len(segments)} segment(s)")

        relevant: List[Section] = []
        seen = set()
        for (section, _kind, _node), flag in zip(segments, flags):
            if flag and id(section) not in seen:
                seen.add(id(section))
                relevant.append(section)
        logger.info("%d relevant section(s) out of %d segment(s)", len(relevant), len(segments))
        return relevant


# ---------- sequence labeler feature lines ----------
def has_materials_and_methods(text: str) -> bool:
    if len(text.strip()) < 15:
        return False
    return MAT_AND_MET_PATTERN.search(text) is not None


def _discretize(value: int, total: int, bins: int = NB_BINS) -> int:
    if total <= 0:
        return 0
    return min(bins - 1, value * bins // total)


def feature_vectors(features: SectionFeatures) -> List[str]:
    """One whitespace separated feature line per segment."""
    total = len(features)
    longest = max((len(t) for t in features.texts), default=0)
    lines = []
    for i, (text, kind, count, data_type) in enumerate(
            zip(features.texts, features.kinds, features.dataset_counts, features.dataset_types)):
        tokens = text.split() or ["_"]
        first = tokens[0]
        second = tokens[1] if len(tokens) > 1 else first
        third = tokens[2] if len(tokens) > 2 else first
        lines.append(" ".join([
            first, second, third, first.lower(),
            kind,
            "1" if count > 0 else "0",
            str(count),
            data_type or "no_dataset",
            str(_discretize(i, total)),
            str(_discretize(len(text), longest)),
            "1" if has_materials_and_methods(text) else "0",
        ]))
    return lines
