"""Published registry download for seed search.

Search can read the registry published upstream instead of (or before) the
local copy.  ``auto`` tries the remote document and falls back to the local
file when it cannot be fetched.
"""

from __future__ import annotations

from typing import Literal

import httpx
from pydantic import ValidationError

from ..errors import RegistryError
from ..models import RegistryData
from ..utils import print_warning
from .store import SeedRegistry

RegistrySource = Literal["local", "remote", "auto"]


async def fetch_remote_registry(url: str, timeout: float = 10.0) -> RegistryData:
    """Download and validate the registry document at *url*.

    Raises:
        RegistryError: On network errors, non-2xx responses or an invalid
            document.
    """
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=5.0)) as client:
            response = await client.get(url)
            response.raise_for_status()
            return RegistryData.model_validate(response.json())
    except httpx.HTTPStatusError as exc:
        raise RegistryError(
            f"Remote registry returned HTTP {exc.response.status_code}: {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise RegistryError(f"Failed to fetch remote registry {url}: {exc}") from exc
    except (ValueError, ValidationError) as exc:
        raise RegistryError(f"Remote registry at {url} is not a valid registry: {exc}") from exc


async def load_for_search(
    registry: SeedRegistry,
    url: str,
    source: RegistrySource = "auto",
    timeout: float = 10.0,
) -> RegistryData:
    """Pick the registry document a search should run against."""
    if source == "local":
        return registry.load()
    if source == "remote":
        return await fetch_remote_registry(url, timeout=timeout)

    try:
        return await fetch_remote_registry(url, timeout=timeout)
    except RegistryError as exc:
        print_warning(f"{exc}; using local registry")
        return registry.load()
