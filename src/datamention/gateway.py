"""
HTTP adapters for the external text classifiers.

Each classifier takes {"texts": [...]} and answers with a DeLFT style body:

  {"model": "...", "software": "DeLFT", "date": "...",
   "classifications": [{"text": "...", "<class>": 0.93, ...}, ...]}

The adapters hide that format: `classify_batch` returns one typed record per
input text, or None where the record for that text is unusable.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from .errors import ClassifierUnavailable, MalformedResponse, ServiceUnavailable
from .models import NON_TYPE_FIELDS, BinaryVerdict, DatatypeVerdict, ReuseVerdict

logger = logging.getLogger(__name__)


class ServiceClient:
    """POSTs JSON to one service URL, retrying transient failures with exponential backoff."""

    unavailable = ServiceUnavailable

    def __init__(
        self,
        name: str,
        url: str,
        timeout: int = 60,
        max_retries: int = 3,
        backoff: float = 1.0,
        session: Optional[requests.Session] = None,
    ):
        self.name = name
        self.url = url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.session = session or requests.Session()

    def post_json(self, payload: Dict[str, Any]) -> Any:
        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = self.session.post(self.url, json=payload, timeout=self.timeout)
            except requests.exceptions.RequestException as exc:
                last_error = str(exc)
                logger.warning("%s request failed (attempt %d/%d): %s",
                               self.name, attempt + 1, self.max_retries, exc)
            else:
                status = response.status_code
                if status >= 500:
                    last_error = f"HTTP {status}"
                    logger.warning("%s answered HTTP %d (attempt %d/%d)",
                                   self.name, status, attempt + 1, self.max_retries)
                elif status >= 400:
                    raise self.unavailable(f"{self.name} rejected the request: HTTP {status}",
                                           service=self.name, status_code=status)
                else:
                    try:
                        return response.json()
                    except ValueError as exc:
                        raise MalformedResponse(f"{self.name} did not return JSON", service=self.name) from exc

            if attempt < self.max_retries - 1:
                time.sleep(self.backoff * (2 ** attempt))

        raise self.unavailable(
            f"{self.name} unreachable after {self.max_retries} attempt(s): {last_error}",
            service=self.name,
        )


class ClassifierGateway(ServiceClient):
    """Base adapter: batch request, per-record parsing."""

    unavailable = ClassifierUnavailable

    def classify_batch(self, texts: Sequence[str]) -> List[Optional[Any]]:
        if not texts:
            return []
        logger.debug("%s: %d text(s)", self.name, len(texts))
        payload = self.post_json({"texts": list(texts)})

        records = payload.get("classifications") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise MalformedResponse(f"{self.name}: no classifications array", service=self.name)
        if len(records) != len(texts):
            raise MalformedResponse(
                f"{self.name}: {len(records)} classification(s) for {len(texts)} text(s)",
                service=self.name,
            )

        results: List[Optional[Any]] = []
        for i, record in enumerate(records):
            try:
                results.append(self.parse_record(record))
            except (TypeError, ValueError) as exc:
                logger.warning("%s: record %d ignored: %s", self.name, i, exc)
                results.append(None)
        return results

    def parse_record(self, record: Any):
        raise NotImplementedError


class BinaryClassifier(ClassifierGateway):
    """dataset / no_dataset."""

    def __init__(self, url: str, **kwargs):
        super().__init__("binary-classifier", url, **kwargs)

    def parse_record(self, record: Any) -> BinaryVerdict:
        return BinaryVerdict.model_validate(record)


class DatatypeClassifier(ClassifierGateway):
    """First-level data type taxonomy; every numeric field outside the reserved ones is a type."""

    def __init__(self, url: str, **kwargs):
        super().__init__("datatype-classifier", url, **kwargs)

    def parse_record(self, record: Any) -> DatatypeVerdict:
        if not isinstance(record, dict):
            raise TypeError("record is not an object")
        scores = {}
        for key, value in record.items():
            if key in NON_TYPE_FIELDS:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            scores[key] = float(value)
        if not scores:
            raise ValueError("no data type score in record")
        return DatatypeVerdict(scores=scores)


class ReuseClassifier(ClassifierGateway):
    """reuse / not_reuse."""

    def __init__(self, url: str, **kwargs):
        super().__init__("reuse-classifier", url, **kwargs)

    def parse_record(self, record: Any) -> ReuseVerdict:
        return ReuseVerdict.model_validate(record)
