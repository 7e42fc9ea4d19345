"""
tally-xml-editor: schema-less XML document editing with table projection.

Main package exports for user-facing API.
"""

from tally_xml_editor.api import XmlEditor
from tally_xml_editor.exceptions import DecodeError, InvalidPath, NotASequence, TallyXmlError
from tally_xml_editor.services import DocumentStore, SessionState

__all__ = [
    'XmlEditor',
    'DocumentStore',
    'SessionState',
    'TallyXmlError',
    'DecodeError',
    'InvalidPath',
    'NotASequence',
]
