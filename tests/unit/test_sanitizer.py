"""
Unit tests for the character sanitizer.

Real exports carry NUL padding, UTF-16 byte-order marks and control
characters pasted into narrations. All of them must be removed before
lxml sees the text, and every removal must be reported.
"""

import pytest


class TestEncodingDetection:
    """Test BOM-based decoder selection."""

    def test_utf16_le_bom(self):
        """FF FE selects UTF-16-LE."""
        from tally_xml_editor.parsers.sanitizer import detect_encoding

        assert detect_encoding(b'\xff\xfe<\x00') == ('utf-16-le', True)

    def test_utf16_be_bom(self):
        """FE FF selects UTF-16-BE."""
        from tally_xml_editor.parsers.sanitizer import detect_encoding

        assert detect_encoding(b'\xfe\xff\x00<') == ('utf-16-be', True)

    def test_defaults_to_utf8(self):
        """No UTF-16 mark means UTF-8."""
        from tally_xml_editor.parsers.sanitizer import detect_encoding

        assert detect_encoding(b'<ROOT/>') == ('utf-8', False)
        assert detect_encoding(b'') == ('utf-8', False)


class TestSanitize:
    """Test suite for sanitize()."""

    def test_clean_input_is_untouched(self):
        """Valid XML passes through with nothing logged."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'<ROOT><A>1</A></ROOT>')

        assert report.text == '<ROOT><A>1</A></ROOT>'
        assert report.removed_count == 0
        assert report.log == []
        assert not report.was_modified

    def test_removes_nul_characters(self):
        """Every U+0000 is removed and counted."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'<ROOT>a\x00b\x00</ROOT>\x00')

        assert report.text == '<ROOT>ab</ROOT>'
        assert report.removed_count == 3
        assert report.log == ['Removed 3 NUL character(s)']

    def test_utf16_le_input_is_decoded(self):
        """UTF-16-LE bytes decode correctly and the BOM character is dropped."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        raw = '\ufeff<ROOT>Caf\u00e9</ROOT>'.encode('utf-16-le')
        report = sanitize(raw)

        assert report.text == '<ROOT>Caf\u00e9</ROOT>'
        assert report.encoding == 'utf-16-le'
        assert report.removed_count == 1
        assert report.log == [
            'Detected UTF-16-LE byte-order mark',
            'Removed 1 leading whitespace/BOM character(s)',
        ]

    def test_utf16_be_input_is_decoded(self):
        """UTF-16-BE bytes decode correctly."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        raw = '\ufeff<ROOT>x</ROOT>'.encode('utf-16-be')
        report = sanitize(raw)

        assert report.text == '<ROOT>x</ROOT>'
        assert report.encoding == 'utf-16-be'

    def test_utf8_bom_and_leading_whitespace_removed(self):
        """A UTF-8 BOM and blank lines before the declaration are stripped."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'\xef\xbb\xbf\n  <ROOT/>')

        assert report.text == '<ROOT/>'
        assert report.removed_count == 4
        assert report.log == ['Removed 4 leading whitespace/BOM character(s)']

    def test_invalid_characters_listed_sorted(self):
        """Control characters are removed and listed once each, sorted."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'<A>a\x1fb\x01c\x0bd\x01</A>')

        assert report.text == '<A>abcd</A>'
        assert report.removed_count == 4
        assert report.log == [
            'Removed 4 invalid XML character(s): U+0001, U+000B, U+001F'
        ]

    def test_keeps_tab_newline_and_carriage_return(self):
        """The three legal control characters survive."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize('<A>a\tb\nc\rd</A>')

        assert report.text == '<A>a\tb\nc\rd</A>'
        assert report.removed_count == 0

    def test_undecodable_bytes_never_raise(self):
        """Invalid UTF-8 becomes U+FFFD inside the text instead of failing."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'<A>\xc3</A>')

        assert report.text == '<A>\ufffd</A>'

    def test_garbage_only_input_yields_empty_text(self):
        """Nothing but junk leaves an empty text and a full log."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b'\x00\x00 \x01 ')

        assert report.text == ''
        assert report.removed_count == 5
        assert len(report.log) == 3

    def test_removed_count_is_total_across_steps(self):
        """removed_count adds NUL, invalid and leading removals."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        report = sanitize(b' \x00<A>\x02</A>')

        assert report.removed_count == 3
        assert report.text == '<A></A>'

    @pytest.mark.parametrize('raw', [
        b'\x00<ROOT/>',
        b'\x01 <ROOT/>',
        b' \x00 \x08<ROOT>\x0c</ROOT>',
        '\ufeff\ufeff  <A>\ud7ff\ue000</A>'.encode('utf-8', errors='surrogatepass'),
        '\ufeff<A>\x7f</A>'.encode('utf-16-le'),
    ])
    def test_sanitize_is_idempotent(self, raw):
        """A second pass over cleaned text removes nothing."""
        from tally_xml_editor.parsers.sanitizer import sanitize

        first = sanitize(raw)
        second = sanitize(first.text)

        assert second.removed_count == 0
        assert second.text == first.text


class TestCleaningReport:
    """Test the CleaningReport model."""

    def test_report_is_frozen(self):
        """Reports cannot be modified after creation."""
        from pydantic import ValidationError
        from tally_xml_editor.models.cleaning import CleaningReport

        report = CleaningReport(text='<A/>')

        with pytest.raises(ValidationError):
            report.removed_count = 5

    def test_negative_count_rejected(self):
        """removed_count must not be negative."""
        from pydantic import ValidationError
        from tally_xml_editor.models.cleaning import CleaningReport

        with pytest.raises(ValidationError):
            CleaningReport(text='', removed_count=-1)

    def test_format_codepoint(self):
        """Codepoints are written as U+XXXX."""
        from tally_xml_editor.parsers.sanitizer import format_codepoint

        assert format_codepoint('\x01') == 'U+0001'
        assert format_codepoint('\uffff') == 'U+FFFF'
