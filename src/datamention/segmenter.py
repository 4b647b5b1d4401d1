#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sentence segmentation pre-pass over a TEI tree: wraps the content of every
<p> / <figDesc> without sentences into <s> elements.
Library:
  segmenter = SentenceSegmenter.from_spacy("en_core_web_sm")
  n = segmenter.segment(root)
CLI:
  poetry run python -m datamention.segmenter in.tei.xml out.tei.xml
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

import spacy
from lxml import etree

from .errors import MalformedMarkup
from .tei import local_name

logger = logging.getLogger(__name__)

TEXTUAL_CONTAINERS = frozenset({"p", "figDesc"})

Boundaries = Callable[[str], Sequence[Tuple[int, int]]]

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)
_SPACES = re.compile(r"[ \t\r\n]+")


# ---------- spaCy ----------
def build_nlp(model: str = "en_core_web_sm"):
    try:
        nlp = spacy.load(model)
    except OSError as e:
        raise RuntimeError(
            f"spaCy model {model!r} missing. In Poetry:\n"
            f"  poetry run python -m spacy download {model}\n"
        ) from e
    if "parser" not in nlp.pipe_names and "senter" not in nlp.pipe_names:
        nlp.add_pipe("sentencizer")
    return nlp


_cached_nlp = lru_cache(maxsize=4)(build_nlp)


def spacy_boundaries(nlp) -> Boundaries:
    def detect(text: str) -> List[Tuple[int, int]]:
        return [(sent.start_char, sent.end_char) for sent in nlp(text).sents]
    return detect


# ---------- segmenter ----------
class SentenceSegmenter:
    """
    Boundaries are detected on the serialized inner markup, so a cut may
    land inside an inline element. Such a slice does not parse on its own;
    it is buffered and glued to the following one until the result is
    well-formed. Text is never dropped.
    """

    def __init__(self, detect_boundaries: Boundaries):
        self.detect_boundaries = detect_boundaries

    @classmethod
    def from_spacy(cls, model: str = "en_core_web_sm") -> "SentenceSegmenter":
        # model is loaded on first use
        return cls(lambda text: spacy_boundaries(_cached_nlp(model))(text))

    def segment(self, root) -> int:
        """Segment every textual container under `root`; returns the number of <s> created."""
        created = 0
        for container in list(_textual_containers(root)):
            # already segmented at any depth (GROBID puts figDesc sentences under div/p)
            if any(local_name(el) == "s" for el in container.iter()):
                continue
            markup = _inner_markup(container)
            if not markup.strip():
                continue
            ns = etree.QName(container).namespace
            sentences = self.split_markup(markup, ns)
            if sentences is None:
                logger.warning("could not segment <%s>, left as is", local_name(container))
                continue
            _replace_content(container, sentences, ns)
            created += len(sentences)
        logger.info("segmented %d sentence(s)", created)
        return created

    def split_markup(self, markup: str, ns: Optional[str] = None) -> Optional[list]:
        """<s> elements covering all of `markup`, or None when no well-formed split exists."""
        done: List[Tuple[str, object]] = []
        buffered: List[str] = []
        for piece in self._pieces(markup):
            candidate = _normalize("".join(buffered) + piece)
            if not candidate:
                continue
            try:
                done.append((candidate, _wrap(candidate, ns)))
            except MalformedMarkup:
                buffered.append(piece)
                continue
            buffered = []

        if buffered:
            if not done:
                return None
            last_text, _ = done.pop()
            merged = _normalize(last_text + " " + "".join(buffered))
            try:
                done.append((merged, _wrap(merged, ns)))
            except MalformedMarkup:
                return None
        return [element for _text, element in done]

    def _pieces(self, markup: str) -> List[str]:
        starts = sorted({start for start, _end in self.detect_boundaries(markup) if 0 < start < len(markup)})
        cuts = [0] + starts + [len(markup)]
        return [markup[a:b] for a, b in zip(cuts, cuts[1:])]


# ---------- helpers ----------
def _textual_containers(el):
    for child in el:
        # a figDesc already shaped as div/p: segment the inner p instead
        if local_name(child) in TEXTUAL_CONTAINERS and not any(
                local_name(d) in TEXTUAL_CONTAINERS for d in child.iterdescendants()):
            yield child
        else:
            yield from _textual_containers(child)


def _inner_markup(el) -> str:
    parts = [escape(el.text or "")]
    parts.extend(etree.tostring(child, encoding="unicode", with_tail=True) for child in el)
    return "".join(parts)


def _normalize(text: str) -> str:
    return _SPACES.sub(" ", text).strip()


def _wrap(candidate: str, ns: Optional[str]):
    xmlns = f' xmlns="{ns}"' if ns else ""
    try:
        return etree.fromstring(f"<s{xmlns}>{candidate}</s>", _PARSER)
    except etree.XMLSyntaxError as exc:
        raise MalformedMarkup(f"cannot wrap {candidate[:60]!r}: {exc}") from exc


def _tag(name: str, ns: Optional[str]) -> str:
    return f"{{{ns}}}{name}" if ns else name


def _replace_content(container, sentences: list, ns: Optional[str]) -> None:
    for child in list(container):
        container.remove(child)
    container.text = None

    target = container
    if local_name(container) == "figDesc":
        # figure descriptions get the same div/p shape as body paragraphs
        div = etree.SubElement(container, _tag("div", ns))
        target = etree.SubElement(div, _tag("p", ns))

    for i, s in enumerate(sentences):
        s.tail = " " if i < len(sentences) - 1 else None
        target.append(s)


if __name__ == "__main__":
    import sys
    from pathlib import Path
    if len(sys.argv) < 3:
        print("Usage: python -m datamention.segmenter <in.tei.xml> <out.tei.xml>")
        sys.exit(1)
    tree = etree.parse(sys.argv[1], _PARSER)
    n = SentenceSegmenter.from_spacy().segment(tree.getroot())
    Path(sys.argv[2]).write_bytes(etree.tostring(tree, xml_declaration=True, encoding="UTF-8"))
    print(f"✅ Segmented {n} sentences → {sys.argv[2]}")
