"""
Shared fixtures: builders for NF-e XML documents and inbound batch entries.
"""

from typing import Optional, Sequence

import pytest

FULL_PROTOCOL = {
    "dhRecbto": "2024-01-15T10:32:11-03:00",
    "nProt": "135240000123456",
    "cStat": "100",
    "xMotivo": "Autorizado o uso da NF-e",
}


def build_nfe(
    number: Optional[str] = "10",
    series: Optional[str] = "1",
    issuer: str = "Comercial Exemplo Ltda",
    net: Optional[str] = "100.00",
    payments: Sequence[str] = ("100.00",),
    protocol: Optional[dict] = FULL_PROTOCOL,
    declaration: bool = True,
) -> str:
    """
    Build an NF-e XML document in the namespaced nfeProc layout.

    Pass None to omit an element; ``protocol=None`` omits the protNFe block,
    and keys missing from the protocol dict are omitted from infProt.
    """
    ide = ""
    if series is not None:
        ide += f"<serie>{series}</serie>"
    if number is not None:
        ide += f"<nNF>{number}</nNF>"

    total = f"<vNF>{net}</vNF>" if net is not None else ""
    det_pag = "".join(f"<detPag><tPag>01</tPag><vPag>{p}</vPag></detPag>" for p in payments)

    prot = ""
    if protocol is not None:
        fields = "".join(f"<{tag}>{value}</{tag}>" for tag, value in protocol.items())
        prot = f'<protNFe versao="4.00"><infProt><tpAmb>1</tpAmb>{fields}</infProt></protNFe>'

    head = '<?xml version="1.0" encoding="UTF-8"?>\n' if declaration else ""
    return (
        f"{head}"
        '<nfeProc xmlns="http://www.portalfiscal.inf.br/nfe" versao="4.00">'
        "<NFe>"
        '<infNFe Id="NFe35240112345678000195550010000000101000000101" versao="4.00">'
        f"<ide><cUF>35</cUF>{ide}<mod>55</mod></ide>"
        f"<emit><CNPJ>12345678000195</CNPJ><xNome>{issuer}</xNome></emit>"
        "<dest><CNPJ>98765432000110</CNPJ><xNome>Cliente Final SA</xNome></dest>"
        f"<total><ICMSTot><vProd>{net}</vProd>{total}</ICMSTot></total>"
        f"<pag>{det_pag}</pag>"
        "</infNFe>"
        "</NFe>"
        f"{prot}"
        "</nfeProc>"
    )


@pytest.fixture
def nfe_xml():
    """Builder for NF-e XML text."""
    return build_nfe


@pytest.fixture
def entry():
    """Builder for an inbound ``{name, content}`` entry."""
    def _entry(name: str, **kwargs) -> dict:
        return {"name": name, "content": build_nfe(**kwargs)}
    return _entry
