"""Tests for PortAllocator."""

from unittest.mock import AsyncMock

import pytest

from opencode_panel.errors import ResourceExhaustedError
from opencode_panel.services import PortAllocator


def _container(*public_ports: int) -> dict:
    return {"Ports": [{"PrivatePort": 4096, "PublicPort": p, "Type": "tcp"} for p in public_ports]}


class TestPortAllocator:
    async def test_first_port_when_none_used(self, mock_container_api: AsyncMock):
        allocator = PortAllocator(mock_container_api, 4100, 3)

        assert await allocator.next_available() == 4100

    async def test_skips_used_ports(self, mock_container_api: AsyncMock):
        mock_container_api.list.return_value = [_container(4100), _container(4102)]
        allocator = PortAllocator(mock_container_api, 4100, 3)

        assert await allocator.next_available() == 4101

    async def test_ignores_unpublished_ports(self, mock_container_api: AsyncMock):
        mock_container_api.list.return_value = [
            {"Ports": [{"PrivatePort": 4096, "Type": "tcp"}]},
            {"Ports": None},
            {},
        ]
        allocator = PortAllocator(mock_container_api, 4100, 3)

        assert await allocator.next_available() == 4100

    async def test_exhausted(self, mock_container_api: AsyncMock):
        mock_container_api.list.return_value = [_container(4100, 4101), _container(4102)]
        allocator = PortAllocator(mock_container_api, 4100, 3)

        with pytest.raises(ResourceExhaustedError) as exc_info:
            await allocator.next_available()

        assert exc_info.value.message == "No hay puertos disponibles"
        assert exc_info.value.status_code == 503

    def test_port_range(self, mock_container_api: AsyncMock):
        allocator = PortAllocator(mock_container_api, 4100, 20)

        assert allocator.port_range == range(4100, 4120)
