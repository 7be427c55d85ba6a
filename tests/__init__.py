"""
Flexo Planner tests.

Unit tests live in tests/unit/, one module per service; API tests run the
routers against the in-memory store.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run one service: pytest tests/unit/test_order_service.py -v
"""
