"""
Document tree: sections, paragraphs and sentences with parent back-references.

Nodes built from TEI keep the lxml element they came from (`element`), so
annotations can be written back in place; nodes built in code leave it None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Union

from .models import DataInstance, DatasetEntity

# sections directly under these containers are never considered
EXCLUDED_CONTAINERS = frozenset({"abstract", "figDesc"})


@dataclass(eq=False)
class Sentence:
    text: str
    identifier: Optional[str] = None
    corresponds_to: Optional[str] = None
    parent: Optional["Paragraph"] = field(default=None, repr=False)
    element: Any = field(default=None, repr=False)


@dataclass(eq=False)
class Paragraph:
    sentences: List[Sentence] = field(default_factory=list)
    text: Optional[str] = None
    parent: Optional["Section"] = field(default=None, repr=False)
    element: Any = field(default=None, repr=False)

    def __post_init__(self):
        for sentence in self.sentences:
            sentence.parent = self
        if self.text is None:
            self.text = " ".join(s.text for s in self.sentences)

    def add_sentence(self, sentence: Sentence) -> Sentence:
        sentence.parent = self
        self.sentences.append(sentence)
        return sentence


@dataclass(eq=False)
class Section:
    heading: Optional[str] = None
    paragraphs: List[Paragraph] = field(default_factory=list)
    subsections: List["Section"] = field(default_factory=list)
    container: Optional[str] = None  # local name of the enclosing element
    has_dataset: bool = False
    parent: Union["Section", "Document", None] = field(default=None, repr=False)
    element: Any = field(default=None, repr=False)

    def __post_init__(self):
        for paragraph in self.paragraphs:
            paragraph.parent = self
        for section in self.subsections:
            section.parent = self

    @property
    def excluded(self) -> bool:
        return self.container in EXCLUDED_CONTAINERS

    def add_paragraph(self, paragraph: Paragraph) -> Paragraph:
        paragraph.parent = self
        self.paragraphs.append(paragraph)
        return paragraph

    def add_subsection(self, section: "Section") -> "Section":
        section.parent = self
        self.subsections.append(section)
        return section

    def iter_sentences(self) -> Iterator[Sentence]:
        """Sentences of this section's own paragraphs (not of subsections)."""
        for paragraph in self.paragraphs:
            yield from paragraph.sentences


@dataclass
class DocumentMetadata:
    """Header registries, serialized in insertion order."""
    datasets: List[DatasetEntity] = field(default_factory=list)
    data_instances: List[DataInstance] = field(default_factory=list)


@dataclass(eq=False)
class Document:
    sections: List[Section] = field(default_factory=list)
    metadata: Optional[DocumentMetadata] = None
    element: Any = field(default=None, repr=False)

    def __post_init__(self):
        for section in self.sections:
            section.parent = self

    def add_section(self, section: Section) -> Section:
        section.parent = self
        self.sections.append(section)
        return section

    def iter_sections(self) -> Iterator[Section]:
        """All sections, nested ones included, in document (pre-)order."""
        return _walk(self.sections)

    def iter_sentences(self) -> Iterator[Sentence]:
        for section in self.iter_sections():
            yield from section.iter_sentences()

    def assign_sentence_ids(self) -> int:
        """Give `sentence-<i>` to sentences without identifier; returns how many were set."""
        assigned = 0
        for i, sentence in enumerate(self.iter_sentences()):
            if not sentence.identifier:
                sentence.identifier = f"sentence-{i}"
                assigned += 1
        return assigned


def _walk(sections: Iterable[Section]) -> Iterator[Section]:
    for section in sections:
        yield section
        yield from _walk(section.subsections)


def enclosing_section(node: Union[Sentence, Paragraph, Section]) -> Optional[Section]:
    """First Section above `node`, never going past the document root."""
    current = node.parent
    while current is not None and not isinstance(current, Document):
        if isinstance(current, Section):
            return current
        current = current.parent
    return None
