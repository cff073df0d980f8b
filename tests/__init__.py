"""
Browser Chain Tests

Run all tests:
    pytest tests/ -v

Run specific test file:
    pytest tests/test_queue.py -v

Integration tests need a real Chrome and are skipped unless
BROWSER_CHAIN_INTEGRATION=1 is set:
    BROWSER_CHAIN_INTEGRATION=1 pytest tests/ -v -m integration
"""
