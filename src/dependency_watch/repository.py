"""Artifact repository lookups.

The engine only needs two questions answered: does a coordinate exist yet,
and which versions of an artifact have been published. Both are expressed by
the :class:`RepositoryClient` interface so tests can swap in an in-memory fake.

:class:`MavenRepository` answers them over HTTP against any repository using
the Maven 2 directory layout (Maven Central, Google Maven, Nexus, Artifactory).
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from .config import DEFAULT_REPOSITORY_URL
from .exceptions import RepositoryError
from .models import Coordinate

logger = logging.getLogger("dependency-watch")


class RepositoryClient(ABC):
    """Abstract interface for repository backends."""

    @abstractmethod
    async def exists(self, coordinate: Coordinate) -> bool:
        """True once ``coordinate`` is published. Raises RepositoryError on transient failure."""
        ...

    @abstractmethod
    async def versions(self, group: str, artifact: str) -> list[str]:
        """All published versions of ``group:artifact`` (empty if unknown)."""
        ...

    async def close(self) -> None:
        """Release connections. Override in subclasses that hold any."""


def _group_path(group: str) -> str:
    return group.replace(".", "/")


class MavenRepository(RepositoryClient):
    """Existence checks against a Maven 2 layout repository.

    A version exists when its POM is served; the version listing comes from
    the artifact's ``maven-metadata.xml``. Anything other than a clean 2xx or
    404 is reported as a :class:`RepositoryError` so the caller retries on the
    next tick instead of treating it as absence.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_REPOSITORY_URL,
        timeout_seconds: float = 15.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def pom_url(self, coordinate: Coordinate) -> str:
        return (
            f"{self._base_url}/{_group_path(coordinate.group)}/{coordinate.artifact}/"
            f"{coordinate.version}/{coordinate.artifact}-{coordinate.version}.pom"
        )

    def metadata_url(self, group: str, artifact: str) -> str:
        return f"{self._base_url}/{_group_path(group)}/{artifact}/maven-metadata.xml"

    async def exists(self, coordinate: Coordinate) -> bool:
        url = self.pom_url(coordinate)
        session = self._get_session()
        try:
            async with session.head(url, allow_redirects=True) as resp:
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RepositoryError(f"HEAD {url} failed: {e!r}") from e

        logger.debug(f"HEAD {url} -> {status}")
        if 200 <= status < 300:
            return True
        if status == 404:
            return False
        raise RepositoryError(f"HEAD {url} returned HTTP {status}")

    async def versions(self, group: str, artifact: str) -> list[str]:
        url = self.metadata_url(group, artifact)
        session = self._get_session()
        try:
            async with session.get(url) as resp:
                status = resp.status
                body = await resp.text() if status < 300 else ""
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RepositoryError(f"GET {url} failed: {e!r}") from e

        logger.debug(f"GET {url} -> {status}")
        if status == 404:
            return []
        if not 200 <= status < 300:
            raise RepositoryError(f"GET {url} returned HTTP {status}")
        return parse_metadata_versions(body, source=url)

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None


def parse_metadata_versions(xml_text: str, source: str = "maven-metadata.xml") -> list[str]:
    """Extract ``<versioning><versions><version>`` entries in document order."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise RepositoryError(f"Malformed metadata from {source}: {e}") from e

    versions: list[str] = []
    for node in root.iterfind("./versioning/versions/version"):
        text = (node.text or "").strip()
        if text and text not in versions:
            versions.append(text)
    return versions
