"""
Pytest configuration and shared fixtures.

Registers the integration marker/option and provides a small fake parts
catalog so matcher tests don't depend on the packaged catalog's contents.
"""

import pytest
from ftc_invoice.models.catalog import PartFamily, PartVariant
from ftc_invoice.services.catalog import PartsCatalog


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests that use real filesystem watchers"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (real watchdog observer, slow)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def make_family(part_id, name, manufacturer, series, skus_and_prices, category="Motors & Actuators"):
    return PartFamily(
        id=part_id,
        name=name,
        manufacturer=manufacturer,
        category=category,
        series=series,
        variants=[PartVariant(sku=sku, price=price) for sku, price in skus_and_prices],
    )


@pytest.fixture
def fake_catalog():
    return PartsCatalog([
        make_family(
            "gb-motor",
            "GoBILDA 5203 Series Planetary Gear Motor",
            "GoBILDA",
            "5203-24mm",
            [("5203-2402-0051", 54.99), ("5203-2402-0014", 54.99)],
        ),
        make_family(
            "rev-hex",
            "REV HD Hex Motor",
            "REV",
            "HD Hex",
            [("REV-41-1300", 49.99)],
        ),
        make_family(
            "gb-channel",
            "GoBILDA U-Channel",
            "GoBILDA",
            "U-Channel",
            [("2101-0096-0096", 3.99)],
            category="Structural",
        ),
    ])
