"""
Remote engine connector.

Main Components:
    EngineClient: Async client for another Foresight deployment, with
        explicitly flagged local fallback

Usage:
    >>> from foresight.connectors import EngineClient
    >>> async with EngineClient("http://foresight:8000") as client:
    ...     simulation = await client.simulate("Should we enter Market X?", "180d", 3)
"""

from .engine_client import (
    EngineAPIError,
    EngineClient,
    EngineUnavailableError,
    get_engine_client,
)

__all__ = [
    "EngineAPIError",
    "EngineClient",
    "EngineUnavailableError",
    "get_engine_client",
]
