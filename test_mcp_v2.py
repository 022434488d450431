#!/usr/bin/env python3
"""Test MemoryGraph HTTP endpoints (integration)."""
import os

import pytest
import requests

MCP_URL = os.getenv("MEMORYGRAPH_MCP_BASE_URL")

if not MCP_URL:
    pytest.skip(
        "Set MEMORYGRAPH_MCP_BASE_URL to run MCP integration tests",
        allow_module_level=True,
    )


def test_service_endpoints():
    resp = requests.get(f"{MCP_URL}/", timeout=10)
    resp.raise_for_status()
    info = resp.json()
    assert "service" in info

    resp = requests.get(f"{MCP_URL}/health", timeout=10)
    resp.raise_for_status()
    health = resp.json()
    assert "status" in health

    resp = requests.get(f"{MCP_URL}/health/tools", timeout=10)
    resp.raise_for_status()
    assert resp.json()["tool_inventory"]["tool_count"] == 9
