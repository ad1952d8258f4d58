"""
Unit Test Layer Configuration

Structure:
    tests/unit/
    └── fulfillorder_service/   Models, config, pure helpers

Usage:
    pytest tests/unit -v
"""
def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
