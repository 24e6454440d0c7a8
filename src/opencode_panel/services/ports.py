"""Host port allocation for project containers."""

import logging

from opencode_panel.errors import ResourceExhaustedError
from opencode_panel.infra import ContainerAPI
from opencode_panel.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class PortAllocator:
    """Hands out the first host port not published by any container.

    There is no reservation: two concurrent creates may pick the same port
    between the scan and the container start.
    """

    def __init__(self, containers: ContainerAPI, base_port: int, max_projects: int) -> None:
        self._containers = containers
        self._base = base_port
        self._max = max_projects

    @property
    def port_range(self) -> range:
        return range(self._base, self._base + self._max)

    async def used_ports(self) -> set[int]:
        used: set[int] = set()
        for container in await self._containers.list():
            for port in container.get("Ports") or []:
                public = port.get("PublicPort")
                if public:
                    used.add(int(public))
        return used

    async def next_available(self) -> int:
        used = await self.used_ports()
        for port in self.port_range:
            if port not in used:
                logger.debug(
                    "Allocated host port",
                    extra={"event": LogEvent.PORT_ALLOCATED, "port": port},
                )
                return port
        raise ResourceExhaustedError("No hay puertos disponibles")
