"""
Test suite for the bulk order API.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_bulk_paste_parser.py -v
"""
