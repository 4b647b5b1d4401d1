from __future__ import annotations
from typing import Annotated, Dict, List, Literal, Optional, Tuple
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Fixed policy: a sentence is annotated only above this binary probability.
DATASET_THRESHOLD = 0.9

# Classifier fields that are never data types.
NON_TYPE_FIELDS = frozenset({"text", "has_dataset", "no_dataset", "reuse", "not_reuse"})

SegmentKind = Literal["head", "p"]


# ---------- raw classifier records ----------
class BinaryVerdict(BaseModel):
    """Dataset / no-dataset probabilities for one sentence."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    # the raw classifier calls it "dataset", which clashes with the "Dataset" data type
    has_dataset: float = Field(ge=0.0, le=1.0, validation_alias=AliasChoices("has_dataset", "dataset"))
    no_dataset: float = Field(ge=0.0, le=1.0)


class DatatypeVerdict(BaseModel):
    """First-level data type probabilities, in classifier field order."""
    model_config = ConfigDict(frozen=True)

    scores: Dict[str, Annotated[float, Field(ge=0.0, le=1.0)]]


class ReuseVerdict(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    reuse: float = Field(ge=0.0, le=1.0)
    not_reuse: float = Field(ge=0.0, le=1.0)

    @property
    def is_reuse(self) -> bool:
        return self.reuse > self.not_reuse


# ---------- fused verdict ----------
class ClassificationVerdict(BaseModel):
    """Cascade result for one sentence."""
    model_config = ConfigDict(frozen=True)

    has_dataset_score: float = Field(ge=0.0, le=1.0)
    no_dataset_score: float = Field(ge=0.0, le=1.0)
    type_scores: Dict[str, float] = Field(default_factory=dict)
    is_reuse: bool = False

    @property
    def dataset_likely(self) -> bool:
        """Cascade selection: forwarded to the datatype and reuse classifiers."""
        return self.has_dataset_score > self.no_dataset_score

    @property
    def qualifies(self) -> bool:
        """Strict annotation test, distinct from `dataset_likely`."""
        return self.dataset_likely and self.has_dataset_score > DATASET_THRESHOLD

    def best_type(self) -> Tuple[Optional[str], float]:
        """
        Highest scoring data type. Ties keep the first type in classifier
        field order; no positive score gives (None, 0.0).
        """
        best, best_score = None, 0.0
        for name, score in self.type_scores.items():
            if score > best_score:
                best, best_score = name, score
        return best, best_score


# ---------- document registries ----------
class DatasetEntity(BaseModel):
    identifier: str
    type: Optional[str] = None
    subtype: Optional[str] = None


class DataInstance(BaseModel):
    """One mention of a dataset, anchored on a sentence."""
    identifier: str
    dataset: str
    score: float
    reuse: bool = False


# ---------- relevance model input ----------
class SectionFeatures(BaseModel):
    """Four parallel sequences, one entry per heading/paragraph segment."""
    texts: List[str] = Field(default_factory=list)
    kinds: List[SegmentKind] = Field(default_factory=list)
    dataset_counts: List[int] = Field(default_factory=list)
    dataset_types: List[str] = Field(default_factory=list)

    def append(self, text: str, kind: SegmentKind, count: int, dataset_type: str = "no_dataset") -> None:
        self.texts.append(text)
        self.kinds.append(kind)
        self.dataset_counts.append(count)
        self.dataset_types.append(dataset_type)

    def __len__(self) -> int:
        return len(self.texts)
