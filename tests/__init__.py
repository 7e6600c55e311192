"""
Test suite for the wholesale order writer.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_order_workbook_parser.py -v
"""
