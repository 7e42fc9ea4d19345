"""
Pytest configuration for unit tests.

Provides a small Tally-style voucher export and resets the cached
configuration around every test.
"""

import pytest


VOUCHER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ENVELOPE>
  <HEADER>
    <TALLYREQUEST>Import Data</TALLYREQUEST>
  </HEADER>
  <BODY>
    <DATA>
      <VOUCHER VCHTYPE="Sales" REMOTEID="v-1">
        <DATE>20240401</DATE>
        <NARRATION>Cash sale</NARRATION>
        <ALLLEDGERENTRIES.LIST>
          <LEDGERNAME>Cash</LEDGERNAME>
          <AMOUNT>-100.00</AMOUNT>
        </ALLLEDGERENTRIES.LIST>
        <ALLLEDGERENTRIES.LIST>
          <LEDGERNAME>Sales</LEDGERNAME>
          <AMOUNT>100.00</AMOUNT>
        </ALLLEDGERENTRIES.LIST>
      </VOUCHER>
      <VOUCHER VCHTYPE="Payment" REMOTEID="v-2">
        <DATE>20240402</DATE>
        <NARRATION>Rent * April</NARRATION>
        <ALLLEDGERENTRIES.LIST>
          <LEDGERNAME>Rent</LEDGERNAME>
          <AMOUNT>-500.00</AMOUNT>
        </ALLLEDGERENTRIES.LIST>
      </VOUCHER>
      <VOUCHER VCHTYPE="Receipt" REMOTEID="v-3">
        <DATE>20240403</DATE>
        <NARRATION/>
      </VOUCHER>
    </DATA>
  </BODY>
</ENVELOPE>
"""

VOUCHERS_PATH = ('ENVELOPE', 'BODY', 'DATA', 'VOUCHER')


@pytest.fixture(autouse=True, scope="function")
def fresh_config(monkeypatch):
    """
    Reset the config singleton for every test.

    Environment overrides set by one test must never leak into another.
    """
    from tally_xml_editor.config import reset_config

    for name in (
        'TALLY_XML_COLUMN_SAMPLE_SIZE',
        'TALLY_XML_FILTER_SAMPLE_SIZE',
        'TALLY_XML_SMART_DRILL_DOWN',
        'TALLY_XML_ENCODE_INDENT',
        'TALLY_XML_JSON_INDENT',
        'TALLY_XML_XML_DECLARATION',
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    yield
    reset_config()


@pytest.fixture
def voucher_xml():
    """Raw voucher export text."""
    return VOUCHER_XML


@pytest.fixture
def voucher_document():
    """Decoded voucher export as (document, root_name)."""
    from tally_xml_editor.parsers.xml_codec import decode

    return decode(VOUCHER_XML)


@pytest.fixture
def vouchers(voucher_document):
    """The decoded VOUCHER list."""
    document, _ = voucher_document
    return document['ENVELOPE']['BODY']['DATA']['VOUCHER']


@pytest.fixture
def store():
    """DocumentStore loaded from the voucher export."""
    from tally_xml_editor.services.document_store import DocumentStore

    return DocumentStore.from_bytes(VOUCHER_XML.encode('utf-8'), source_name='daybook.xml')


@pytest.fixture
def ledger_columns():
    """Voucher columns with ledger entries merged in."""
    return [
        '@VCHTYPE',
        'DATE',
        {'parent': ['ALLLEDGERENTRIES.LIST'], 'child': 'LEDGERNAME'},
        {'parent': ['ALLLEDGERENTRIES.LIST'], 'child': 'AMOUNT'},
    ]
