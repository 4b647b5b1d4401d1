"""
TEI (GROBID flavour) <-> Document tree.

  document = parse_tei(xml)
  ... annotate ...
  apply_annotations(document)
  xml = to_tei_string(document)

Elements are matched by local name, so TEI-namespaced and plain documents
both work.
"""
from __future__ import annotations

from typing import Dict, Optional, Union

from lxml import etree

from .document import Document, DocumentMetadata, Paragraph, Section, Sentence

TEI_NS = "http://www.tei-c.org/ns/1.0"
XML_ID = "{http://www.w3.org/XML/1998/namespace}id"
# marker put on a <div> holding at least one annotated sentence
DATASET_SECTION_SUBTYPE = "dataseer"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


# ---------- low-level helpers ----------
def local_name(el) -> str:
    if not isinstance(el.tag, str):  # comments, processing instructions
        return ""
    return etree.QName(el).localname


def text_content(el) -> str:
    return "".join(el.itertext())


def _direct_children(el, name: str):
    return [child for child in el if local_name(child) == name]


def _first(root, name: str):
    return next((el for el in root.iter() if local_name(el) == name), None)


def _sub_element(parent, name: str, attrib: Optional[Dict[str, str]] = None):
    ns = etree.QName(parent).namespace
    tag = f"{{{ns}}}{name}" if ns else name
    return etree.SubElement(parent, tag, attrib or {})


# ---------- reading ----------
def parse_tree(xml: Union[str, bytes]):
    """Parse TEI into an lxml root element."""
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    return etree.fromstring(data, _PARSER)


def parse_tei(xml: Union[str, bytes]) -> Document:
    return document_from_tree(parse_tree(xml))


def document_from_tree(root) -> Document:
    """
    Build the Document over an lxml tree. Every <div> becomes a Section,
    nested under its closest <div> ancestor; <s> without xml:id receive
    `sentence-<i>` (i = position among all <s> of the document).
    """
    sentence_elements = [el for el in root.iter() if local_name(el) == "s"]
    for i, el in enumerate(sentence_elements):
        if el.get(XML_ID) is None:
            el.set(XML_ID, f"sentence-{i}")

    document = Document(element=root)
    sections: Dict[object, Section] = {}
    for div in root.iter():
        if local_name(div) != "div":
            continue
        section = _section_from_div(div)
        sections[div] = section
        owner = next((sections[a] for a in div.iterancestors() if local_name(a) == "div"), None)
        if owner is None:
            document.add_section(section)
        else:
            owner.add_subsection(section)
    return document


def _section_from_div(div) -> Section:
    parent = div.getparent()
    heads = _direct_children(div, "head")
    section = Section(
        heading=text_content(heads[0]) if heads else None,
        container=local_name(parent) if parent is not None else None,
        element=div,
    )
    for p in _direct_children(div, "p"):
        sentences = [
            Sentence(text=text_content(s), identifier=s.get(XML_ID), element=s)
            for s in _direct_children(p, "s")
        ]
        section.add_paragraph(Paragraph(sentences=sentences, text=text_content(p), element=p))
    return section


# ---------- writing ----------
def apply_annotations(document: Document) -> None:
    """Copy sentence/section annotations and header registries onto the lxml tree. Call once per run."""
    for sentence in document.iter_sentences():
        el = sentence.element
        if el is None:
            continue
        if sentence.identifier and el.get(XML_ID) is None:
            el.set(XML_ID, sentence.identifier)
        if sentence.corresponds_to:
            el.set("corresp", "#" + sentence.corresponds_to)

    for section in document.iter_sections():
        if section.has_dataset and section.element is not None:
            section.element.set("subtype", DATASET_SECTION_SUBTYPE)

    if document.metadata is not None and document.element is not None:
        write_metadata(document.element, document.metadata)


def write_metadata(root, metadata: DocumentMetadata) -> None:
    """Add <list type="dataset"> / <list type="dataInstance"> under teiHeader/encodingDesc."""
    if not metadata.datasets and not metadata.data_instances:
        return

    encoding_desc = _first(root, "encodingDesc")
    if encoding_desc is None:
        header = _first(root, "teiHeader")
        if header is None:
            header = _sub_element(root, "teiHeader")
        encoding_desc = _sub_element(header, "encodingDesc")

    if metadata.datasets:
        dataset_list = _sub_element(encoding_desc, "list", {"type": "dataset"})
        for entity in metadata.datasets:
            attrib = {XML_ID: entity.identifier}
            if entity.type is not None:
                attrib["type"] = entity.type
            if entity.subtype is not None:
                attrib["subtype"] = entity.subtype
            _sub_element(dataset_list, "dataset", attrib)

    if metadata.data_instances:
        instance_list = _sub_element(encoding_desc, "list", {"type": "dataInstance"})
        for instance in metadata.data_instances:
            _sub_element(instance_list, "dataInstance", {
                XML_ID: instance.identifier,
                "corresp": "#" + instance.dataset,
                "reuse": "true" if instance.reuse else "false",
                "cert": str(instance.score),
            })


def to_tei_string(document: Document) -> str:
    if document.element is None:
        raise ValueError("document was not built from TEI, nothing to serialize")
    tree = document.element.getroottree()
    return etree.tostring(tree, xml_declaration=True, encoding="UTF-8").decode("utf-8")
