"""Shared test configuration."""
import os

# Must be set before app modules configure logging
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest


@pytest.fixture
def user_id():
    return "user-123"


@pytest.fixture
def application_id():
    return "123e4567-e89b-12d3-a456-426614174000"
