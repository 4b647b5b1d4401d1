"""
Shared test fixtures: in-memory classifier and relevance fakes, sample TEI.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from datamention.fusion import CascadeFusion
from datamention.models import BinaryVerdict, DatatypeVerdict, ReuseVerdict, SectionFeatures


# ============================================================================
# Fakes
# ============================================================================

class FakeClassifier:
    """classify_batch answered from a text -> record mapping; records every call."""

    def __init__(self, records: Dict[str, object], default=None, error: Optional[Exception] = None):
        self.records = records
        self.default = default
        self.error = error
        self.calls: List[List[str]] = []

    def classify_batch(self, texts: Sequence[str]):
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [self.records.get(t, self.default) for t in texts]

    @property
    def seen(self) -> List[str]:
        return [t for call in self.calls for t in call]


class FakeRelevanceModel:
    """Flags computed by a function of the features; keeps the last features seen."""

    def __init__(self, decide: Callable[[SectionFeatures], List[bool]]):
        self.decide = decide
        self.features: Optional[SectionFeatures] = None

    def label(self, features: SectionFeatures) -> List[bool]:
        self.features = features
        return self.decide(features)


def all_relevant(features: SectionFeatures) -> List[bool]:
    return [True] * len(features)


def none_relevant(features: SectionFeatures) -> List[bool]:
    return [False] * len(features)


# ============================================================================
# Fixtures
# ============================================================================

NO_DATASET = BinaryVerdict(has_dataset=0.05, no_dataset=0.95)


@pytest.fixture
def make_fusion():
    """
    Build a CascadeFusion over fakes.

    scores: text -> (has_dataset, no_dataset); texts not listed get (0.05, 0.95)
    types:  text -> {type: score}; default {"Generic data": 0.6}
    reuse:  text -> (reuse, not_reuse); default (0.2, 0.8)
    """
    def factory(scores: Dict[str, Tuple[float, float]],
                types: Optional[Dict[str, Dict[str, float]]] = None,
                reuse: Optional[Dict[str, Tuple[float, float]]] = None,
                binary_error: Optional[Exception] = None,
                datatype_error: Optional[Exception] = None,
                reuse_error: Optional[Exception] = None) -> CascadeFusion:
        binary = FakeClassifier(
            {t: BinaryVerdict(has_dataset=h, no_dataset=n) for t, (h, n) in scores.items()},
            default=NO_DATASET, error=binary_error,
        )
        datatype = FakeClassifier(
            {t: DatatypeVerdict(scores=s) for t, s in (types or {}).items()},
            default=DatatypeVerdict(scores={"Generic data": 0.6}), error=datatype_error,
        )
        reuse_classifier = FakeClassifier(
            {t: ReuseVerdict(reuse=r, not_reuse=nr) for t, (r, nr) in (reuse or {}).items()},
            default=ReuseVerdict(reuse=0.2, not_reuse=0.8), error=reuse_error,
        )
        return CascadeFusion(binary, datatype, reuse_classifier)
    return factory


ZENODO = "The data used is available at Zenodo."
R_SOFTWARE = "We used R for all analyses."
GEO = "Raw reads were deposited in GEO under GSE12345."
INTRO = "Prior work studied this question."
ABSTRACT = "Our data is on Figshare."
CAPTION = "Distribution of the measured values."

SAMPLE_TEI = f"""<?xml version="1.0" encoding="UTF-8"?>
<TEI xmlns="http://www.tei-c.org/ns/1.0">
  <teiHeader>
    <fileDesc><titleStmt><title>Sample</title></titleStmt></fileDesc>
    <profileDesc>
      <abstract><div><p><s>{ABSTRACT}</s></p></div></abstract>
    </profileDesc>
  </teiHeader>
  <text>
    <body>
      <div><head>Introduction</head><p><s>{INTRO}</s></p></div>
      <div><head>Materials and Methods</head>
        <p><s>{ZENODO}</s> <s>{R_SOFTWARE}</s></p>
        <div><head>Data collection</head><p><s>{GEO}</s></p></div>
      </div>
      <figure><head>Figure 1</head><figDesc><div><p><s>{CAPTION}</s></p></div></figDesc></figure>
    </body>
  </text>
</TEI>
"""


@pytest.fixture
def sample_tei() -> str:
    return SAMPLE_TEI
