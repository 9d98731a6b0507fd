"""
Async client for a remote Foresight engine.

Talks to another Foresight deployment over its HTTP API:
- Cascade analysis and multiverse simulation requests
- Retry with exponential backoff for transport failures and 5xx responses
- Optional local fallback when the remote engine is unreachable

Fallback results are never passed off as genuine: they carry
synthetic=True and a fallback_reason naming the failure. Results decoded
from the remote engine keep whatever flags the engine set.
"""

import asyncio
from typing import Any, Optional, Union

import httpx
import structlog

from foresight.config import get_settings
from foresight.engine.cascade.analyzer import CascadeAnalyzer
from foresight.engine.multiverse import MultiverseSimulator
from foresight.models.cascade import CascadeReport
from foresight.models.change import ChangeRequest
from foresight.models.simulation import OracleSimulation

logger = structlog.get_logger()


class EngineAPIError(Exception):
    """Raised when the remote engine rejects a request (4xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class EngineUnavailableError(Exception):
    """Raised when the remote engine cannot be reached or keeps failing (5xx)."""

    pass


class EngineClient:
    """
    Remote engine client with flagged local fallback.

    Attributes:
        base_url: Root URL of the remote engine (e.g. http://foresight:8000)
        timeout: Per-request timeout in seconds
        retry_count: Attempts per request before giving up
        fallback_analyzer: Local analyzer used when fallback is requested
        fallback_simulator: Local simulator used when fallback is requested

    Fallback results are flagged synthetic inside the engine, before any
    persistence, and get ids distinct from a genuine result for the same input.

    Example:
        >>> async with EngineClient("http://foresight:8000") as client:
        ...     report = await client.analyze_change(request, mode_id="due-diligence")
    """

    ANALYZE_PATH = "/api/v1/cascades/analyze"
    SIMULATE_PATH = "/api/v1/simulation/run"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retry_count: int = 3,
        backoff_seconds: float = 0.5,
        fallback_analyzer: Optional[CascadeAnalyzer] = None,
        fallback_simulator: Optional[MultiverseSimulator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the remote engine
            timeout: Per-request timeout in seconds
            retry_count: Attempts per request, at least 1
            backoff_seconds: Base delay for exponential backoff
            fallback_analyzer: Optional local analyzer for fallback
            fallback_simulator: Optional local simulator for fallback
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_count = max(1, retry_count)
        self.backoff_seconds = backoff_seconds
        self.fallback_analyzer = fallback_analyzer
        self.fallback_simulator = fallback_simulator
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

        logger.info(
            "engine_client_initialized",
            base_url=self.base_url,
            has_fallback=bool(fallback_analyzer or fallback_simulator),
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._http_client = self._build_http_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _build_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _post(self, path: str, body: dict) -> dict[str, Any]:
        """
        POST with retry logic and return the response's data field.

        Raises:
            EngineAPIError: On a 4xx response (not retried)
            EngineUnavailableError: When every attempt failed
        """
        if not self._http_client:
            self._http_client = self._build_http_client()

        last_error = "no attempts made"
        for attempt in range(self.retry_count):
            try:
                response = await self._http_client.post(path, json=body)
                response.raise_for_status()

                logger.debug(
                    "engine_request_success",
                    path=path,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                )
                payload = response.json()
                return payload.get("data", payload)

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.error(
                    "engine_request_failed",
                    path=path,
                    status_code=status,
                    attempt=attempt + 1,
                )
                # Don't retry client errors (4xx)
                if 400 <= status < 500:
                    try:
                        detail = e.response.json()
                    except ValueError:
                        detail = e.response.text
                    raise EngineAPIError(
                        f"Engine rejected request with status {status}",
                        status_code=status,
                        payload=detail,
                    ) from e
                last_error = f"HTTP {status}"

            except httpx.TransportError as e:
                logger.error(
                    "engine_transport_error",
                    path=path,
                    error=str(e),
                    attempt=attempt + 1,
                )
                last_error = f"{type(e).__name__}: {e}"

            if attempt < self.retry_count - 1:
                wait_time = self.backoff_seconds * 2**attempt
                logger.info("retrying_engine_request", wait_seconds=wait_time)
                await asyncio.sleep(wait_time)

        raise EngineUnavailableError(
            f"Engine at {self.base_url} unavailable after {self.retry_count} attempts ({last_error})"
        )

    async def analyze_change(
        self,
        change: Union[ChangeRequest, dict],
        mode_id: Optional[str] = None,
        industry_id: Optional[str] = None,
        seed: Optional[int] = None,
        allow_fallback: bool = False,
    ) -> CascadeReport:
        """
        Request a cascade analysis from the remote engine.

        Args:
            change: Change request
            mode_id: Cascade mode id
            industry_id: Optional industry context
            seed: Optional seed
            allow_fallback: Compute locally when the engine is unavailable

        Returns:
            CascadeReport; synthetic=True when produced by the fallback

        Raises:
            EngineAPIError: The engine rejected the request
            EngineUnavailableError: Engine unreachable and no fallback allowed
        """
        request = change if isinstance(change, ChangeRequest) else ChangeRequest(**change)
        body = {
            **request.model_dump(mode="json"),
            "mode_id": mode_id,
            "industry_id": industry_id,
            "seed": seed,
        }

        try:
            data = await self._post(self.ANALYZE_PATH, body)
            return CascadeReport.model_validate(data)
        except EngineUnavailableError as e:
            if not allow_fallback or self.fallback_analyzer is None:
                raise
            logger.warning("engine_fallback_used", operation="analyze_change", reason=str(e))
            return self.fallback_analyzer.analyze_change(
                request,
                mode_id=mode_id,
                industry_id=industry_id,
                seed=seed,
                fallback_reason=str(e),
            )

    async def simulate(
        self,
        question: str,
        time_horizon: str = "1y",
        branch_count: Optional[int] = None,
        mode_id: Optional[str] = None,
        industry_id: Optional[str] = None,
        seed: Optional[int] = None,
        allow_fallback: bool = False,
    ) -> OracleSimulation:
        """Request a multiverse simulation; same fallback rules as analyze_change."""
        body = {
            "question": question,
            "time_horizon": time_horizon,
            "branch_count": branch_count,
            "mode_id": mode_id,
            "industry_id": industry_id,
            "seed": seed,
        }

        try:
            data = await self._post(self.SIMULATE_PATH, body)
            return OracleSimulation.model_validate(data)
        except EngineUnavailableError as e:
            if not allow_fallback or self.fallback_simulator is None:
                raise
            logger.warning("engine_fallback_used", operation="simulate", reason=str(e))
            return self.fallback_simulator.simulate(
                question,
                time_horizon,
                branch_count=branch_count,
                mode_id=mode_id,
                industry_id=industry_id,
                seed=seed,
                fallback_reason=str(e),
            )


def get_engine_client(
    fallback_analyzer: Optional[CascadeAnalyzer] = None,
    fallback_simulator: Optional[MultiverseSimulator] = None,
) -> EngineClient:
    """
    Client configured from settings.

    Raises:
        EngineUnavailableError: If no engine_base_url is configured
    """
    settings = get_settings()
    if not settings.engine_base_url:
        raise EngineUnavailableError("engine_base_url is not configured")
    return EngineClient(
        base_url=settings.engine_base_url,
        timeout=settings.engine_timeout_seconds,
        fallback_analyzer=fallback_analyzer,
        fallback_simulator=fallback_simulator,
    )
