"""
Tests for the REST API, with the annotator dependency overridden.
"""

import pytest
from fastapi.testclient import TestClient

from datamention.errors import ClassifierUnavailable, MalformedResponse
from datamention.pipeline import DatasetAnnotator
from datamention.relevance import HeadingRelevanceModel
from datamention.service import app, get_annotator

from conftest import ZENODO, FakeRelevanceModel


@pytest.fixture
def client_for():
    def factory(annotator):
        app.dependency_overrides[get_annotator] = lambda: annotator
        return TestClient(app)
    yield factory
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, make_fusion):
    fusion = make_fusion({ZENODO: (0.95, 0.05)}, types={ZENODO: {"Generic data": 0.8}})
    return client_for(DatasetAnnotator(fusion, HeadingRelevanceModel()))


class TestHealth:
    """Tests for GET /health."""

    def test_ok(self, client):
        """Readiness probe."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestClassify:
    """Tests for the sentence classification routes."""

    def test_single_sentence(self, client):
        """Cascade JSON for one text."""
        response = client.post("/classify/sentence", json={"text": ZENODO})

        assert response.status_code == 200
        [entry] = response.json()["classifications"]
        assert entry["has_dataset"] == 0.95
        assert entry["Generic data"] == 0.8

    def test_blank_sentence(self, client):
        """Nothing to classify: 204."""
        assert client.post("/classify/sentence", json={"text": "   "}).status_code == 204

    def test_sentence_list(self, client):
        """A JSON array of texts, blanks dropped."""
        response = client.post("/classify/sentences", json=[ZENODO, "", "Other."])

        assert response.status_code == 200
        assert [c["text"] for c in response.json()["classifications"]] == [ZENODO, "Other."]

    def test_empty_list(self, client):
        """Empty array: 204."""
        assert client.post("/classify/sentences", json=[]).status_code == 204

    def test_missing_text_field(self, client):
        """Request validation is FastAPI's."""
        assert client.post("/classify/sentence", json={"sentence": ZENODO}).status_code == 422


class TestProcessTei:
    """Tests for POST /process/tei."""

    def test_annotated_tei(self, client, sample_tei):
        """Raw XML in, annotated XML out."""
        response = client.post("/process/tei", content=sample_tei.encode("utf-8"),
                               headers={"Content-Type": "application/xml"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert 'corresp="#dataInstance-1"' in response.text

    def test_invalid_xml(self, client):
        """Unparsable input is a client error."""
        response = client.post("/process/tei", content=b"<TEI><text>")
        assert response.status_code == 400

    def test_empty_body(self, client):
        """No document at all."""
        assert client.post("/process/tei", content=b"").status_code == 400


class TestErrorMapping:
    """Tests for pipeline errors surfacing as HTTP statuses."""

    def test_classifier_unavailable(self, client_for, make_fusion, sample_tei):
        """503 names the failing service."""
        fusion = make_fusion({}, binary_error=ClassifierUnavailable("down", service="binary-classifier"))
        client = client_for(DatasetAnnotator(fusion, HeadingRelevanceModel()))

        response = client.post("/process/tei", content=sample_tei.encode("utf-8"))

        assert response.status_code == 503
        assert response.json()["service"] == "binary-classifier"

    def test_malformed_response(self, client_for, make_fusion):
        """502 when a collaborator answers garbage."""
        fusion = make_fusion({}, binary_error=MalformedResponse("garbage", service="binary-classifier"))
        client = client_for(DatasetAnnotator(fusion, HeadingRelevanceModel()))

        assert client.post("/classify/sentence", json={"text": ZENODO}).status_code == 502

    def test_alignment_error(self, client_for, make_fusion, sample_tei):
        """500 when the relevance model output does not line up."""
        client = client_for(DatasetAnnotator(make_fusion({}), FakeRelevanceModel(lambda f: [])))

        response = client.post("/process/tei", content=sample_tei.encode("utf-8"))

        assert response.status_code == 500
