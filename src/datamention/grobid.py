#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GROBID side: PDF → full-text TEI (with sentences), and heading → IMRaD hint.
Library:
  tei = grobid_fulltext_tei(server, pdf_path)
  hint = map_head_to_hint("2. Materials and Methods")   # "METHODS"
"""
import re
import logging
from pathlib import Path
from typing import Union

import requests

from .errors import ServiceUnavailable

logger = logging.getLogger(__name__)

_WORD = r"(?:^|[^a-z])"; _EOW = r"(?:$|[^a-z])"


# ---------- GROBID ----------
def grobid_fulltext_tei(server: str, pdf_path: Union[str, Path], timeout: int = 120) -> str:
    url = server.rstrip("/") + "/api/processFulltextDocument"
    data = [
        ("segmentSentences", "1"),
        ("consolidateHeader", "1"),
        ("consolidateCitations", "0"),
        ("teiCoordinates", "s"),
        ("teiCoordinates", "head"),
    ]
    logger.info("GROBID full text: %s", pdf_path)
    try:
        with open(pdf_path, "rb") as f:
            r = requests.post(url, files={"input": f}, data=data, timeout=timeout)
        r.raise_for_status()
    except requests.exceptions.RequestException as exc:
        status = getattr(getattr(exc, "response", None), "status_code", None)
        raise ServiceUnavailable(f"GROBID failed on {pdf_path}: {exc}", service="grobid", status_code=status) from exc
    return r.text


# ---------- headings ----------
def _clean_head_text(txt: str) -> str:
    t = (txt or "").strip()
    t = re.sub(r"^\s*(?:\d+(?:\.\d+)*|[IVXLCM]+)[\.)]?\s+", "", t, flags=re.I)
    return t.replace("&", "and").lower()


def map_head_to_hint(head_text: str) -> str:
    """INTRO | METHODS | DATA | RESULTS | DISCUSSION | REFERENCES | OTHER"""
    t = _clean_head_text(head_text)
    if not t: return "OTHER"
    if re.search(rf"{_WORD}(data|code and data|materials?) (availability|accessibility|sharing|access)(?: statement)?{_EOW}", t):
        return "DATA"
    if re.search(rf"{_WORD}(datasets?|data sources?|data collection|data and methods?){_EOW}", t):
        return "DATA"
    if re.search(rf"{_WORD}(abstract|introduction|background|aims and scope){_EOW}", t): return "INTRO"
    if (re.search(rf"{_WORD}(materials? and methods?){_EOW}", t) or
        re.search(rf"{_WORD}(methods?|methodology){_EOW}", t) or
        re.search(rf"{_WORD}(experimental(?: section)?){_EOW}", t) or
        re.search(rf"{_WORD}(patients? and methods?|subjects? and methods?){_EOW}", t) or
        re.search(rf"{_WORD}(study design){_EOW}", t) or
        re.search(rf"{_WORD}(statistical (analysis|methods?)){_EOW}", t)):
        return "METHODS"
    if (re.search(rf"{_WORD}(results? and discussion){_EOW}", t) or
        re.search(rf"{_WORD}(general discussion|discussion|conclusions?|concluding remarks|implications|limitations){_EOW}", t)):
        return "DISCUSSION"
    if re.search(rf"{_WORD}(results?|findings|outcomes){_EOW}", t): return "RESULTS"
    if re.search(rf"{_WORD}(references|bibliography|works cited){_EOW}", t): return "REFERENCES"
    return "OTHER"
