"""Integration tests for tally-xml-editor.

Integration tests exercise the editor end to end against the file system:
- Loading real export files (BOMs, stray control characters)
- Editing through table cell paths
- Writing XML, JSON and CSV output and reading it back
- Settings read from a .env file

Run with: pytest tests/integration/ -v -s
Skip with: pytest -m "not integration"
"""
