"""Per-document run state: verdict cache, identifier counter, registries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from .document import DocumentMetadata
from .models import ClassificationVerdict, DataInstance, DatasetEntity


@dataclass
class RunContext:
    """
    Everything mutable in one annotation run. One instance per document;
    never shared between concurrent runs.

    The verdict cache is keyed by raw sentence text: identical sentences
    share one verdict. A cached None means the classifier gave no usable
    record for that text, and it is not asked again.
    """
    verdicts: Dict[str, Optional[ClassificationVerdict]] = field(default_factory=dict)
    datasets: Dict[str, DatasetEntity] = field(default_factory=dict)
    data_instances: Dict[str, DataInstance] = field(default_factory=dict)
    last_id: int = 0

    def classify_missing(self, fusion, texts: Iterable[str]) -> None:
        """Classify, in one batch, the non-blank texts not cached yet."""
        missing = list(dict.fromkeys(t for t in texts if t.strip() and t not in self.verdicts))
        if not missing:
            return
        for text, verdict in zip(missing, fusion.classify_batch(missing)):
            self.verdicts[text] = verdict

    def verdict(self, text: str) -> Optional[ClassificationVerdict]:
        return self.verdicts.get(text)

    def register(self, data_type: Optional[str], score: float, reuse: bool) -> DataInstance:
        """Allocate the next N and record dataset-N / dataInstance-N."""
        self.last_id += 1
        dataset = DatasetEntity(identifier=f"dataset-{self.last_id}", type=data_type)
        instance = DataInstance(
            identifier=f"dataInstance-{self.last_id}",
            dataset=dataset.identifier,
            score=score,
            reuse=reuse,
        )
        self.datasets[dataset.identifier] = dataset
        self.data_instances[instance.identifier] = instance
        return instance

    def metadata(self) -> Optional[DocumentMetadata]:
        if not self.datasets and not self.data_instances:
            return None
        return DocumentMetadata(
            datasets=list(self.datasets.values()),
            data_instances=list(self.data_instances.values()),
        )
