"""Shared state for the acceptance scenarios."""

from dataclasses import dataclass, field

import pytest
import requests


@dataclass
class ResponseContext:
    response: requests.Response | None = None
    created_ids: list[str] = field(default_factory=list)


@pytest.fixture
def response_context() -> ResponseContext:
    return ResponseContext()
