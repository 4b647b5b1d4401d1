"""
Lexical resources for dataset mentions: data repository domains, DataCite
DOI prefixes, English stopwords, a biomedical blacklist and optional term IDF.
Library:
  lexicon = DatasetLexicon()
  lexicon.is_dataset_url_or_doi("https://zenodo.org/record/123")   # True
"""
from __future__ import annotations

import gzip
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).resolve().parent / "resources"

URL_PATTERN = re.compile(r"(https?|ftp)\s?:\s?//\s?[-A-Z0-9+&@#/%=~_:.]*[-A-Z0-9+&@#/%=~_]", re.I)

# not enough content for a named dataset
BLACKLISTED_NAMED_DATASETS = frozenset({
    "data", "dataset", "datasets", "data set", "data sets", "cell", "cells", "file", "files",
    "model", "models", "record", "records", "column", "columns", "line", "lines", "tnbc", "pam",
    "patient", "patients", "uhrf", "normal", "discovery", "manuscript", "draft", "database",
    "data base", "databases", "data bases", "base", "bases", "square", "mission", "missions",
    "subject", "subjects",
})

PathLike = Union[str, Path]


def _read_lines(path: Path, skip_comments: bool = False) -> List[str]:
    if not path.is_file():
        raise FileNotFoundError(f"lexicon file not found: {path}")
    lines = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or (skip_comments and line.startswith("#")):
            continue
        lines.append(line)
    return lines


def _read_idf(path: Path) -> Dict[str, float]:
    """`term<TAB>idf` lines, gzip compressed. Bad lines are skipped."""
    if not path.is_file():
        raise FileNotFoundError(f"lexicon file not found: {path}")
    idf: Dict[str, float] = {}
    with gzip.open(path, "rt", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\n")
            if not line:
                continue
            pieces = line.split("\t")
            if len(pieces) != 2:
                logger.warning("invalid term/idf line: %r", line)
                continue
            try:
                idf[pieces[0]] = float(pieces[1])
            except ValueError:
                logger.warning("invalid idf value: %r", pieces[1])
    return idf


class DatasetLexicon:

    def __init__(self, resource_dir: Optional[PathLike] = None, idf_path: Optional[PathLike] = None):
        base = Path(resource_dir) if resource_dir else RESOURCES_DIR
        self.url_domains = set(_read_lines(base / "domains.txt"))
        self.doi_prefixes = set(_read_lines(base / "doi_prefixes.txt"))
        # list: prefix stripping follows file order
        self.english_stopwords = _read_lines(base / "stopwords_en.txt")
        self._stopword_set = set(self.english_stopwords)
        self.biomed_blacklist = {l.lower() for l in _read_lines(base / "biomed_blacklist.txt", skip_comments=True)}
        self.term_idfs = _read_idf(Path(idf_path)) if idf_path else {}
        logger.info("lexicon: %d domain(s), %d DOI prefix(es), %d stopword(s), %d IDF term(s)",
                    len(self.url_domains), len(self.doi_prefixes), len(self.english_stopwords), len(self.term_idfs))

    @classmethod
    def from_settings(cls, settings) -> "DatasetLexicon":
        return cls(settings.lexicon_dir_path, settings.term_idf_path)

    # ---------- URLs / DOIs ----------
    def is_dataset_url(self, url: Optional[str]) -> bool:
        """Known data repository domain (protocol, `www.` and path ignored)."""
        if not url or not url.strip():
            return False
        url = url.strip()
        for prefix in ("https://", "http://", "www."):
            if url.startswith(prefix):
                url = url[len(prefix):]
        return url.split("/", 1)[0] in self.url_domains

    def is_dataset_doi(self, doi: Optional[str]) -> bool:
        """DOI whose prefix is a DataCite data prefix."""
        if not doi:
            return False
        doi = doi.strip().replace("https://doi.org/", "").replace("http://doi.org/", "")
        return doi.split("/", 1)[0] in self.doi_prefixes

    def is_dataset_url_or_doi(self, value: Optional[str]) -> bool:
        if not value or not value.strip():
            return False
        return self.is_dataset_url(value) or self.is_dataset_doi(value)

    # ---------- words ----------
    def is_english_stopword(self, value: Optional[str]) -> bool:
        if not value:
            return False
        if len(value) == 1:
            value = value.lower()
        return value in self._stopword_set

    def remove_leading_english_stopwords(self, text: Optional[str]) -> Optional[str]:
        if text is None or not text.strip():
            return text
        text = text.strip()
        while text:
            before = len(text)
            for stopword in self.english_stopwords:
                if text.startswith(stopword + " "):
                    text = text[len(stopword):].strip()
                    break
            if len(text) == before:
                break
        return text

    def is_blacklisted_named_dataset(self, term: Optional[str]) -> bool:
        if not term:
            return False
        lowered = term.lower()
        if lowered in BLACKLISTED_NAMED_DATASETS or lowered in self.biomed_blacklist:
            return True
        # models are filtered until there are enough negative examples
        if lowered.endswith("model") or lowered.endswith("models"):
            return True
        return term.startswith("ð")

    def term_idf(self, term: str) -> float:
        return self.term_idfs.get(term, 0.0)
