"""
User-facing API for tally-xml-editor.
"""

from tally_xml_editor.api.editor import XmlEditor

__all__ = ['XmlEditor']
