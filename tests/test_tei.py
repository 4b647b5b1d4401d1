"""
Unit tests for the TEI adapter.
"""

from lxml import etree

from datamention.document import DocumentMetadata
from datamention.models import DataInstance, DatasetEntity
from datamention.tei import (
    DATASET_SECTION_SUBTYPE,
    TEI_NS,
    XML_ID,
    apply_annotations,
    parse_tei,
    to_tei_string,
)

from conftest import ABSTRACT, CAPTION, GEO, INTRO, R_SOFTWARE, ZENODO

NS = {"tei": TEI_NS}


class TestParseTei:
    """Tests for building the Document from TEI."""

    def test_sections_and_nesting(self, sample_tei):
        """Every div is a section, nested under its closest div."""
        document = parse_tei(sample_tei)

        top = [(s.heading, s.container) for s in document.sections]
        assert top == [(None, "abstract"), ("Introduction", "body"),
                       ("Materials and Methods", "body"), (None, "figDesc")]
        methods = document.sections[2]
        assert [s.heading for s in methods.subsections] == ["Data collection"]
        assert methods.subsections[0].parent is methods

    def test_sentences_and_paragraph_text(self, sample_tei):
        """Sentences keep raw text; paragraph text is the full text content."""
        document = parse_tei(sample_tei)

        methods = document.sections[2]
        [p] = methods.paragraphs
        assert [s.text for s in p.sentences] == [ZENODO, R_SOFTWARE]
        assert p.text == f"{ZENODO} {R_SOFTWARE}"
        assert [s.text for s in document.iter_sentences()] == [ABSTRACT, INTRO, ZENODO, R_SOFTWARE, GEO, CAPTION]

    def test_sentence_ids_by_position(self, sample_tei):
        """Missing xml:id become sentence-<i> over all <s>; existing ones are kept."""
        xml = sample_tei.replace(f"<s>{INTRO}</s>", f'<s xml:id="intro-1">{INTRO}</s>')

        document = parse_tei(xml)

        ids = [s.identifier for s in document.iter_sentences()]
        assert ids == ["sentence-0", "intro-1", "sentence-2", "sentence-3", "sentence-4", "sentence-5"]
        assert document.sections[2].paragraphs[0].sentences[0].element.get(XML_ID) == "sentence-2"

    def test_empty_head_is_kept_as_empty_heading(self):
        """<head/> gives an empty heading, no <head> gives None."""
        document = parse_tei("<TEI><text><body><div><head/><p><s>x</s></p></div><div><p>y</p></div></body></text></TEI>")
        assert [s.heading for s in document.sections] == ["", None]

    def test_without_namespace(self):
        """Plain, non-namespaced documents work too."""
        document = parse_tei("<TEI><text><body><div><head>Methods</head><p><s>A.</s></p></div></body></text></TEI>")
        assert document.sections[0].heading == "Methods"
        assert document.sections[0].paragraphs[0].sentences[0].identifier == "sentence-0"


class TestApplyAnnotations:
    """Tests for writing annotations back to TEI."""

    def test_sentence_section_and_header(self, sample_tei):
        """corresp on <s>, subtype on <div>, both lists in encodingDesc."""
        document = parse_tei(sample_tei)
        methods = document.sections[2]
        sentence = methods.paragraphs[0].sentences[0]
        sentence.corresponds_to = "dataInstance-1"
        methods.has_dataset = True
        document.metadata = DocumentMetadata(
            datasets=[DatasetEntity(identifier="dataset-1", type="Generic data"),
                      DatasetEntity(identifier="dataset-2")],
            data_instances=[DataInstance(identifier="dataInstance-1", dataset="dataset-1", score=0.8, reuse=True),
                            DataInstance(identifier="dataInstance-2", dataset="dataset-2", score=0.0)],
        )

        apply_annotations(document)
        root = etree.fromstring(to_tei_string(document).encode("utf-8"))

        [s] = root.xpath("//tei:s[@corresp]", namespaces=NS)
        assert s.get("corresp") == "#dataInstance-1"
        [div] = root.xpath("//tei:div[@subtype]", namespaces=NS)
        assert div.get("subtype") == DATASET_SECTION_SUBTYPE
        assert div.find("tei:head", NS).text == "Materials and Methods"

        datasets = root.xpath("//tei:teiHeader/tei:encodingDesc/tei:list[@type='dataset']/tei:dataset", namespaces=NS)
        assert [(d.get(XML_ID), d.get("type")) for d in datasets] == [("dataset-1", "Generic data"), ("dataset-2", None)]
        instances = root.xpath("//tei:encodingDesc/tei:list[@type='dataInstance']/tei:dataInstance", namespaces=NS)
        assert [(i.get(XML_ID), i.get("corresp"), i.get("reuse"), i.get("cert")) for i in instances] == [
            ("dataInstance-1", "#dataset-1", "true", "0.8"),
            ("dataInstance-2", "#dataset-2", "false", "0.0"),
        ]

    def test_header_created_when_missing(self):
        """No teiHeader: one is appended to the root."""
        document = parse_tei("<TEI><text><body><div><p><s>A.</s></p></div></body></text></TEI>")
        document.metadata = DocumentMetadata(
            datasets=[DatasetEntity(identifier="dataset-1")],
            data_instances=[DataInstance(identifier="dataInstance-1", dataset="dataset-1", score=0.5)],
        )

        apply_annotations(document)

        root = document.element
        assert root[-1].tag == "teiHeader"
        assert root.find("teiHeader/encodingDesc/list[@type='dataset']/dataset") is not None

    def test_no_metadata_leaves_header_alone(self, sample_tei):
        """Nothing annotated: the serialized document is unchanged."""
        document = parse_tei(sample_tei)
        before = to_tei_string(document)

        apply_annotations(document)

        assert to_tei_string(document) == before
        assert "encodingDesc" not in before

    def test_xml_declaration(self, sample_tei):
        """Serialized output starts with an XML declaration."""
        assert to_tei_string(parse_tei(sample_tei)).startswith("<?xml version='1.0' encoding='UTF-8'?>")
