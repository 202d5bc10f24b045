"""
Tests for the document field lookup strategies.
"""

import pytest

from nfe_reconciler.document import ParsedDocument, PatternDocument, load_document


NAMESPACED = (
    '<nfeProc xmlns="http://www.portalfiscal.inf.br/nfe">'
    "<NFe><infNFe><ide><nNF> 42 </nNF></ide>"
    "<emit><xNome>Emitente</xNome></emit><dest><xNome>Destinatario</xNome></dest>"
    "<pag><detPag><vPag>10.00</vPag></detPag><detPag><vPag>5,50</vPag></detPag></pag>"
    "</infNFe></NFe></nfeProc>"
)


@pytest.fixture(params=["parsed", "pattern"])
def lookup(request):
    """Both strategies over the same well-formed text."""
    if request.param == "parsed":
        return ParsedDocument.parse(NAMESPACED)
    return PatternDocument(NAMESPACED)


class TestLookupStrategies:
    """Behaviour shared by both strategies."""

    def test_nested_path_ignores_namespace(self, lookup):
        assert lookup.find_text("nfeProc NFe infNFe ide nNF") == "42"

    def test_bare_tag(self, lookup):
        assert lookup.find_text("nNF") == "42"

    def test_path_scopes_to_parent(self, lookup):
        assert lookup.find_text("dest xNome") == "Destinatario"
        assert lookup.find_text("emit xNome") == "Emitente"

    def test_missing_path(self, lookup):
        assert lookup.find_text("ide serie") is None
        assert lookup.find_text("protNFe infProt nProt") is None

    def test_find_all_text(self, lookup):
        assert [t.strip() for t in lookup.find_all_text("vPag")] == ["10.00", "5,50"]

    def test_contains_marker(self, lookup):
        assert lookup.contains_marker("detPag") is True
        assert lookup.contains_marker("protNFe") is False


class TestLoadDocument:
    """Tests for strategy selection."""

    def test_well_formed_uses_parser(self):
        assert isinstance(load_document(NAMESPACED), ParsedDocument)

    def test_encoding_declaration_accepted(self):
        text = '<?xml version="1.0" encoding="UTF-8"?>\n' + NAMESPACED
        doc = load_document(text)
        assert isinstance(doc, ParsedDocument)
        assert doc.find_text("ide nNF") == "42"

    def test_malformed_falls_back_to_patterns(self):
        text = "<NFe><infNFe><ide><nNF>7</nNF></ide><emit><xNome>A & B</xNome></emit></infNFe>"
        doc = load_document(text)
        assert isinstance(doc, PatternDocument)
        assert doc.find_text("infNFe ide nNF") == "7"
        assert doc.find_text("emit xNome") == "A & B"

    def test_empty_text(self):
        doc = load_document("")
        assert doc.find_text("nNF") is None

    def test_empty_element_is_none(self):
        doc = load_document("<ide><nNF>   </nNF></ide>")
        assert doc.find_text("ide nNF") is None

