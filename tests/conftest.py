"""
Shared pytest configuration.
"""

import matplotlib

matplotlib.use("Agg")


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: curvature checks on expensive metrics")
