"""Shared fixtures."""

import pytest


@pytest.fixture
def manager_index():
    return {"1111111111": "Priya", "2222222222": "Arjun"}
