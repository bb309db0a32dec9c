from pgscraper.etl import extract
from pgscraper.models import EMPTY, BusinessRecord, Records

URL = "https://pg.example/veneto/padova/idraulici/p-0.html"

PAGE = """
<html><body>
<div class="search-itm">
  <h2 class="search-itm__rag"><a href="/x">Idraulica <b>Rossi</b>
     snc</a></h2>
  <div class="search-itm__adr">Via Roma, 1
      <span>35100   Padova (PD)</span></div>
  <div class="search-itm__phone"><span>049</span> <span>1234567</span> <span>348</span><span> 7654321</span></div>
  <a class="search-itm__wa" href="https://wa.me/+393487654321?text=ciao">WhatsApp</a>
  <a class="search-itm__url" href=" https://rossi.example ">Sito web</a>
  <a data-pag="mail" href="https://pg.example/contatta/rossi">Contatta</a>
</div>
<div class="search-itm">
  <h2 class="search-itm__rag">Bianchi Impianti</h2>
  <div class="search-itm__adr">Via Po 3</div>
  <div class="search-itm__phone">049 7777777</div>
</div>
<div class="search-itm">
  <h2 class="search-itm__rag">Senza Telefono</h2>
  <div class="search-itm__adr">Via Verdi 2</div>
</div>
<div class="search-itm">
  <div class="search-itm__phone">049 5555555</div>
</div>
</body></html>
"""


def test_pair_phone_tokens():
    assert extract.pair_phone_tokens("02 1234567 011 7654321") == "02-1234567 | 011-7654321"
    assert extract.pair_phone_tokens("  02   1234567 ") == "02-1234567"
    assert extract.pair_phone_tokens("02 1234567 800") == "02-1234567 | 800"
    assert extract.pair_phone_tokens("") == ""


def test_whatsapp_number():
    assert extract.whatsapp_number("https://wa.me/+393331234567") == "393331234567"
    assert extract.whatsapp_number("https://api.whatsapp.com/send?phone=39333&text=hi") == "39333"
    assert extract.whatsapp_number("https://wa.me/") is None
    assert extract.whatsapp_number(None) is None


def test_extract_records_and_optional_fields():
    result = extract.extract(PAGE, URL)

    assert isinstance(result, Records)
    assert result.records == (
        BusinessRecord(
            name="Idraulica Rossi snc",
            address="Via Roma, 1 35100 Padova (PD)",
            phones="049-1234567 | 348-7654321",
            whatsapp="393487654321",
            website="https://rossi.example",
            contact_url="https://pg.example/contatta/rossi",
        ),
        BusinessRecord(name="Bianchi Impianti", address="Via Po 3", phones="049-7777777"),
    )


def test_extract_empty_page():
    assert extract.extract("<html><body><p>Nessun risultato</p></body></html>", URL) is EMPTY
    assert extract.extract("", URL) is EMPTY


def test_extract_only_invalid_blocks_is_not_empty():
    body = '<div class="search-itm"><h2 class="search-itm__rag">Solo Nome</h2></div>'
    assert extract.extract(body, URL) == Records(records=())


def test_custom_schema():
    schema = extract.ExtractionSchema(result_block="li.biz", name=".n", address=".a", phones=".p")
    body = '<ul><li class="biz"><i class="n">Acme</i><i class="a">Main St</i><i class="p">02 123</i></li></ul>'

    result = extract.extract(body, "https://other.example/list", schema)

    assert result.records == (BusinessRecord(name="Acme", address="Main St", phones="02-123"),)
