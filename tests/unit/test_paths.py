"""
Unit tests for path-addressed document access.

Reads are case-insensitive and never raise; writes are atomic and raise
InvalidPath; deletes on non-lists are logged no-ops.
"""

import logging

import pytest


@pytest.fixture
def doc():
    return {
        'ENVELOPE': {
            'HEADER': {'TALLYREQUEST': 'Import Data'},
            'VOUCHER': [
                {'@attributes': {'VCHTYPE': 'Sales'}, 'DATE': '20240401'},
                {'@attributes': {'VCHTYPE': 'Payment'}, 'DATE': '20240402'},
                {'@attributes': {'VCHTYPE': 'Receipt'}, 'DATE': '20240403'},
            ],
        }
    }


class TestGetPath:
    """Test suite for get_path()."""

    def test_case_insensitive_lookup(self, doc):
        """Voucher, VOUCHER and voucher all address the same list."""
        from tally_xml_editor.paths import get_path

        assert get_path(doc, ['envelope', 'Voucher']) is get_path(doc, ['ENVELOPE', 'VOUCHER'])
        assert get_path(doc, ['Envelope', 'voucher', 1, 'date']) == '20240402'

    def test_exact_match_wins(self):
        """An exact key is preferred over a case-insensitive one."""
        from tally_xml_editor.paths import get_path

        assert get_path({'Amount': 'a', 'AMOUNT': 'b'}, ['AMOUNT']) == 'b'

    def test_attribute_path(self, doc):
        """Attributes are reached through '@attributes'."""
        from tally_xml_editor.paths import get_path

        assert get_path(doc, ['ENVELOPE', 'VOUCHER', 0, '@attributes', 'vchtype']) == 'Sales'

    @pytest.mark.parametrize('path', [
        ['MISSING'],
        ['ENVELOPE', 'VOUCHER', 3],
        ['ENVELOPE', 'VOUCHER', 'DATE'],
        ['ENVELOPE', 'HEADER', 0],
        ['ENVELOPE', 'HEADER', 'TALLYREQUEST', 'DEEPER'],
    ])
    def test_misses_return_none(self, doc, path):
        """Any resolution miss yields None rather than an error."""
        from tally_xml_editor.paths import get_path

        assert get_path(doc, path) is None

    def test_empty_path_returns_document(self, doc):
        """The empty path addresses the whole document."""
        from tally_xml_editor.paths import get_path

        assert get_path(doc, []) is doc

    def test_resolve_reports_actual_keys(self, doc):
        """resolve() returns the real key spellings."""
        from tally_xml_editor.paths import resolve

        value, actual = resolve(doc, ['envelope', 'header', 'tallyrequest'])

        assert value == 'Import Data'
        assert actual == ['ENVELOPE', 'HEADER', 'TALLYREQUEST']


class TestSetPath:
    """Test suite for set_path()."""

    def test_replaces_existing_key_case_insensitively(self, doc):
        """Writing through a differently-cased path updates the existing key."""
        from tally_xml_editor.paths import set_path

        written = set_path(doc, ['envelope', 'voucher', 0, 'date'], '20240501')

        assert written == ('ENVELOPE', 'VOUCHER', 0, 'DATE')
        assert doc['ENVELOPE']['VOUCHER'][0]['DATE'] == '20240501'
        assert 'date' not in doc['ENVELOPE']['VOUCHER'][0]

    def test_adds_new_key(self, doc):
        """A missing terminal key is added."""
        from tally_xml_editor.paths import set_path

        set_path(doc, ['ENVELOPE', 'VOUCHER', 2, 'NARRATION'], 'New')

        assert doc['ENVELOPE']['VOUCHER'][2]['NARRATION'] == 'New'

    def test_replaces_list_item(self, doc):
        """An index terminal replaces that item."""
        from tally_xml_editor.paths import set_path

        set_path(doc, ['ENVELOPE', 'VOUCHER', 1], 'gone')

        assert doc['ENVELOPE']['VOUCHER'][1] == 'gone'
        assert len(doc['ENVELOPE']['VOUCHER']) == 3

    def test_appends_at_list_length(self, doc):
        """index == len(list) appends."""
        from tally_xml_editor.paths import set_path

        set_path(doc, ['ENVELOPE', 'VOUCHER', 3], {'DATE': '20240404'})

        assert len(doc['ENVELOPE']['VOUCHER']) == 4

    def test_empty_path_raises(self, doc):
        """The empty path cannot be written."""
        from tally_xml_editor.exceptions import InvalidPath
        from tally_xml_editor.paths import set_path

        with pytest.raises(InvalidPath, match="path is empty"):
            set_path(doc, [], 'x')

    @pytest.mark.parametrize('path', [
        ['MISSING', 'X'],
        ['ENVELOPE', 'HEADER', 'TALLYREQUEST', 'X'],
        ['ENVELOPE', 'VOUCHER', 5],
        ['ENVELOPE', 'VOUCHER', 'DATE'],
        ['ENVELOPE', 'HEADER', 0],
    ])
    def test_invalid_paths_raise_without_mutation(self, doc, path):
        """Unresolvable writes raise InvalidPath and leave the document alone."""
        import copy

        from tally_xml_editor.exceptions import InvalidPath
        from tally_xml_editor.paths import set_path

        before = copy.deepcopy(doc)

        with pytest.raises(InvalidPath) as exc_info:
            set_path(doc, path, 'x')

        assert doc == before
        assert exc_info.value.path == tuple(path)
        assert isinstance(exc_info.value, LookupError)

    def test_written_path_reads_back(self, doc):
        """get_path on the returned path yields the written value."""
        from tally_xml_editor.paths import get_path, set_path

        written = set_path(doc, ['Envelope', 'Header', 'TallyRequest'], 'Export')

        assert get_path(doc, written) == 'Export'


class TestDeleteAt:
    """Test suite for delete_at()."""

    def test_delete_shifts_later_items(self, doc):
        """Deleting index 1 of 3 leaves 2 items in their original order."""
        from tally_xml_editor.paths import delete_at, get_path

        former_third = ['ENVELOPE', 'VOUCHER', 2, 'DATE']
        assert get_path(doc, former_third) == '20240403'

        assert delete_at(doc, ['ENVELOPE', 'VOUCHER'], 1) is True

        vouchers = doc['ENVELOPE']['VOUCHER']
        assert [v['DATE'] for v in vouchers] == ['20240401', '20240403']
        # The old path is stale; the item now lives at index 1
        assert get_path(doc, former_third) is None
        assert get_path(doc, ['ENVELOPE', 'VOUCHER', 1, 'DATE']) == '20240403'

    def test_delete_on_non_list_is_logged_noop(self, doc, caplog):
        """A mapping target is left alone and a warning is logged."""
        from tally_xml_editor.paths import delete_at

        with caplog.at_level(logging.WARNING, logger='tally_xml_editor.paths'):
            assert delete_at(doc, ['ENVELOPE', 'HEADER'], 0) is False

        assert doc['ENVELOPE']['HEADER'] == {'TALLYREQUEST': 'Import Data'}
        assert 'Expected a sequence' in caplog.text

    def test_delete_out_of_range_is_noop(self, doc):
        """A bad index removes nothing."""
        from tally_xml_editor.paths import delete_at

        assert delete_at(doc, ['ENVELOPE', 'VOUCHER'], 3) is False
        assert delete_at(doc, ['ENVELOPE', 'VOUCHER'], -1) is False
        assert len(doc['ENVELOPE']['VOUCHER']) == 3

    def test_require_sequence_raises(self, doc):
        """require_sequence() raises NotASequence with the actual type."""
        from tally_xml_editor.exceptions import NotASequence
        from tally_xml_editor.paths import require_sequence

        with pytest.raises(NotASequence) as exc_info:
            require_sequence(doc, ['ENVELOPE', 'HEADER'])

        assert exc_info.value.actual_type == 'dict'


class TestPathKey:
    """Test JSON-stable path keys."""

    def test_path_key_format(self):
        """Keys are compact JSON arrays."""
        from tally_xml_editor.paths import path_key

        assert path_key(['ENVELOPE', 'BODY', 0]) == '["ENVELOPE","BODY",0]'

    def test_list_and_tuple_share_key(self):
        """Tuples and lists with the same segments map to one key."""
        from tally_xml_editor.paths import path_key

        assert path_key(('A', 1)) == path_key(['A', 1])
