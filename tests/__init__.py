"""
Test suite for Container Planner.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_packing_service.py -v
"""
