"""Exceptions raised by the dataset-mention pipeline."""

from __future__ import annotations

from typing import Optional


class DatamentionError(Exception):
    """Base exception for the package."""


class ServiceUnavailable(DatamentionError):
    """An external collaborator (classifier, relevance model, GROBID) cannot be reached."""

    def __init__(self, message: str, service: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class ClassifierUnavailable(ServiceUnavailable):
    """A text classifier did not answer after the retry budget was spent."""


class RelevanceModelUnavailable(ServiceUnavailable):
    """The section relevance model did not answer."""


class MalformedResponse(DatamentionError):
    """
    A collaborator answered, but the response as a whole cannot be used:
    not JSON, no `classifications` array, or a record count that differs
    from the request. Single bad records are not reported this way, they
    come back as `None` entries.
    """

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class AlignmentError(DatamentionError):
    """Relevance flags and document segments do not line up."""


class MalformedMarkup(DatamentionError):
    """A sentence slice is not well-formed once wrapped as <s>."""
