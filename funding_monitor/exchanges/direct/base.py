"""Base class for direct API exchange connectors."""

import asyncio
import json
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Set

import aiohttp

from funding_monitor.config import ExchangeEndpoints, RetrievalConfig
from funding_monitor.exceptions import ExchangeRequestError
from funding_monitor.exchanges.base import BaseExchange
from funding_monitor.models import RateTuple
from funding_monitor.utils import get_logger


RateCallback = Callable[[RateTuple], None]


class DirectAPIExchange(BaseExchange):
    """
    Base class for direct API exchange connectors.

    Adds the transport to the adapter interface: an aiohttp session used
    for both the REST probe and the time-boxed WebSocket probe. Parsed
    tuples for requested symbols are handed to a callback as soon as they
    are parsed.
    """

    name: str = "direct"
    display_name: str = "Direct API Exchange"

    # Parallel REST calls for exchanges that need one request per symbol
    max_concurrent_requests: int = 10

    def __init__(
        self,
        endpoints: ExchangeEndpoints,
        retrieval: Optional[RetrievalConfig] = None,
    ):
        super().__init__(endpoints)
        self.retrieval = retrieval or RetrievalConfig()
        self._logger = get_logger()
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=10, force_close=True)
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
                connector=connector,
            )
        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """
        Make HTTP request to API with retry logic.

        Raises:
            ExchangeRequestError: if no valid JSON body could be obtained
        """
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.retrieval.rest_timeout)
        retries = max(1, retries if retries is not None else self.retrieval.rest_retries)
        reason = None

        for attempt in range(retries):
            try:
                async with session.request(method, url, params=params, timeout=timeout) as resp:
                    if resp.status == 200:
                        return await resp.json(content_type=None)
                    elif resp.status == 429:  # Rate limit
                        reason = "rate limited"
                        await asyncio.sleep(1 * (attempt + 1))
                        continue
                    else:
                        raise ExchangeRequestError(self.name, url, f"HTTP {resp.status}")
            except asyncio.TimeoutError:
                reason = "timeout"
            except (aiohttp.ClientError, ValueError) as e:
                reason = str(e) or e.__class__.__name__

            if attempt < retries - 1:
                await asyncio.sleep(0.5 * (attempt + 1))

        raise ExchangeRequestError(self.name, url, reason)

    def _forward(
        self,
        rates: Iterable[RateTuple],
        wanted: Set[str],
        on_rate: RateCallback,
    ) -> int:
        """Pass rates for requested symbols to the callback."""
        count = 0
        for rate in rates:
            if rate.symbol in wanted and rate.rate is not None:
                on_rate(rate)
                count += 1
        return count

    async def fetch_via_rest(self, symbols: Sequence[str], on_rate: RateCallback) -> int:
        """
        Fetch funding rates over REST.

        Args:
            symbols: Exchange-formatted symbols
            on_rate: Called once per parsed rate, in parse order

        Returns:
            Number of rates forwarded

        Raises:
            ExchangeRequestError: if any request failed; rates parsed from
                the other requests have already been forwarded
        """
        wanted = set(symbols)
        requests = self.build_rest_requests(symbols)
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)

        async def fetch_single(request) -> int:
            async with semaphore:
                body = await self._request("GET", request.url, params=request.params or None)
            try:
                rates = self.parse_rest_body(body)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ExchangeRequestError(self.name, request.url, f"malformed body: {e}")
            return self._forward(rates, wanted, on_rate)

        if len(requests) == 1:
            return await fetch_single(requests[0])

        results = await asyncio.gather(
            *(fetch_single(r) for r in requests),
            return_exceptions=True,
        )

        count = sum(r for r in results if isinstance(r, int))
        errors = [r for r in results if isinstance(r, Exception)]
        if errors:
            self._logger.debug(
                f"{self.display_name}: {len(errors)}/{len(requests)} REST requests failed "
                f"({count} rates parsed)"
            )
            raise errors[0]

        return count

    def _handle_frame(self, raw: str, wanted: Set[str], on_rate: RateCallback) -> int:
        """Parse one WebSocket text frame; bad frames are logged and skipped."""
        try:
            frame = json.loads(raw)
        except ValueError:
            self._logger.debug(f"{self.display_name}: Non-JSON frame ignored: {raw[:100]}")
            return 0

        try:
            return self._forward(self.parse_ws_frame(frame), wanted, on_rate)
        except Exception as e:
            self._logger.warning(f"{self.display_name}: Failed to parse frame - {e}")
            return 0

    async def fetch_via_websocket(
        self,
        symbols: Sequence[str],
        on_rate: RateCallback,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Collect funding rates from a WebSocket session.

        The session is closed when the timeout elapses or the server closes
        the connection, whichever comes first. Rates received before that
        are kept.

        Returns:
            Number of rates forwarded
        """
        if timeout is None:
            timeout = self.retrieval.ws_timeout_for(self.name)

        wanted = set(symbols)
        received = 0
        ws: Optional[aiohttp.ClientWebSocketResponse] = None
        session = await self._get_session()

        async def consume() -> None:
            nonlocal ws, received
            ws = await session.ws_connect(self.endpoints.ws_url)

            for message in self.build_subscribe_messages(symbols, self.retrieval.ws_batch_size):
                try:
                    await ws.send_json(message)
                    self._logger.debug(f"{self.display_name}: Sent subscription {message}")
                except Exception as e:
                    self._logger.error(f"{self.display_name}: Failed to send subscription - {e}")

            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    received += self._handle_frame(msg.data, wanted, on_rate)
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    received += self._handle_frame(
                        msg.data.decode("utf-8", errors="replace"), wanted, on_rate
                    )
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._logger.error(f"{self.display_name}: WebSocket error - {ws.exception()}")
                    break

        try:
            await asyncio.wait_for(consume(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        except Exception as e:
            self._logger.error(f"{self.display_name}: WebSocket session failed - {e}")
        finally:
            if ws is not None and not ws.closed:
                await ws.close()

        self._logger.info(
            f"{self.display_name}: WebSocket closed, "
            f"{'received ' + str(received) + ' rates' if received else 'no data'}"
        )
        return received
