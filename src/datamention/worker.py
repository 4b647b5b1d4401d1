#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Worker: annotates PDFs (through GROBID) or TEI files and ALWAYS writes, per document:
  - outdir/<stem>.datamention.tei.xml
  - outdir/<stem>.datasets.json   (dataset + dataInstance registries)
CLI:
  poetry run python -m datamention.worker --input papers/ --outdir outputs/ --segment
  poetry run python -m datamention.worker --sentence "The data is available at Zenodo."
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lxml import etree
from tqdm import tqdm

from .config import settings as default_settings
from .context import RunContext
from .errors import DatamentionError
from .grobid import grobid_fulltext_tei
from .pipeline import DatasetAnnotator
from .tei import to_tei_string

logger = logging.getLogger(__name__)

INPUT_SUFFIXES = (".pdf", ".xml")


def collect_inputs(path: Path) -> List[Path]:
    if path.is_dir():
        return sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in INPUT_SUFFIXES)
    return [path]


def registries_to_json(run: RunContext) -> dict:
    return {
        "datasets": [d.model_dump() for d in run.datasets.values()],
        "dataInstances": [i.model_dump() for i in run.data_instances.values()],
    }


def process_file(annotator: DatasetAnnotator, path: Path, outdir: Path, segment: bool = False) -> int:
    """Annotate one document, write both artifacts; returns the number of data instances."""
    if path.suffix.lower() == ".pdf":
        xml = grobid_fulltext_tei(annotator.grobid_url, path, timeout=annotator.grobid_timeout)
    else:
        xml = path.read_bytes()
    document, run = annotator.annotate_tei(xml, segment_sentences=segment)

    tei_path = outdir / f"{path.stem}.datamention.tei.xml"
    json_path = outdir / f"{path.stem}.datasets.json"
    tei_path.write_text(to_tei_string(document), encoding="utf-8")
    json_path.write_text(json.dumps(registries_to_json(run), indent=2, ensure_ascii=False), encoding="utf-8")
    return len(run.data_instances)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Dataset mention annotation worker (always writes outputs)")
    ap.add_argument("--input", help="PDF/TEI file or a directory of them")
    ap.add_argument("--outdir", default="outputs")
    ap.add_argument("--segment", action="store_true", help="segment <p>/<figDesc> into sentences first")
    ap.add_argument("--grobid", default=None, help=f"GROBID server (default {default_settings.grobid_url})")
    ap.add_argument("--relevance-url", default=None, help="section relevance model endpoint")
    ap.add_argument("--sentence", action="append", default=[], help="classify a sentence and print JSON (repeatable)")
    args = ap.parse_args(argv)
    if not args.input and not args.sentence:
        ap.error("one of --input or --sentence is required")

    overrides = {}
    if args.grobid:
        overrides["grobid_url"] = args.grobid
    if args.relevance_url:
        overrides["relevance_model_url"] = args.relevance_url
    settings = default_settings.model_copy(update=overrides)

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    annotator = DatasetAnnotator.from_settings(settings)

    if args.sentence:
        print(json.dumps(annotator.classify_sentences(args.sentence), indent=2, ensure_ascii=False))
        return 0

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    files = collect_inputs(Path(args.input))

    failed = 0
    instances = 0
    for path in tqdm(files, desc="Annotating"):
        try:
            instances += process_file(annotator, path, outdir, segment=args.segment)
        except (DatamentionError, etree.XMLSyntaxError, OSError) as exc:
            failed += 1
            logger.error("%s failed (%s): %s", path.name, type(exc).__name__, exc)

    print(f"[worker] documents={len(files)} failed={failed} data_instances={instances}")
    print(f"  out → {outdir}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
