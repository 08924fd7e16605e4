"""MTA GTFS-Realtime feed fetcher and decoder."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Tuple

import requests
from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2

from .exceptions import DecodeError, FetchError, NoFeedsAvailable
from .feed_router import FEED_URLS, feed_url
from .models import FeedMessage, StopTimeUpdate, TripUpdate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
DEFAULT_CACHE_TTL = 30


def decode_feed(feed_id: str, payload: bytes) -> FeedMessage:
    """
    Decode a GTFS-Realtime protobuf payload into a FeedMessage.

    Only trip updates are kept; alerts and vehicle positions are skipped.

    Args:
        feed_id: Feed the payload came from (for error reporting).
        payload: Raw protobuf bytes.

    Returns:
        FeedMessage with one TripUpdate per trip update entity.

    Raises:
        DecodeError: If the payload is not a valid FeedMessage.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(payload)
    except ProtobufDecodeError as e:
        raise DecodeError(feed_id, str(e)) from e

    trip_updates: List[TripUpdate] = []
    for entity in feed.entity:
        if not entity.HasField("trip_update"):
            continue

        trip_update = entity.trip_update
        stop_time_updates = tuple(
            _decode_stop_time_update(feed_id, stop_time_update)
            for stop_time_update in trip_update.stop_time_update
        )
        trip_updates.append(
            TripUpdate(
                trip_id=_string_field(feed_id, "trip_id", trip_update.trip.trip_id),
                route_id=_string_field(feed_id, "route_id", trip_update.trip.route_id),
                headsign=_string_field(feed_id, "trip_headsign", _trip_headsign(trip_update)),
                stop_time_updates=stop_time_updates,
            )
        )

    return FeedMessage(
        feed_id=feed_id,
        timestamp=feed.header.timestamp,
        trip_updates=tuple(trip_updates),
    )


def _string_field(feed_id: str, name: str, value) -> str:
    # proto2 string fields come back as bytes when they are not valid UTF-8
    if not isinstance(value, str):
        raise DecodeError(feed_id, f"{name} is not valid UTF-8: {value!r}")
    return value


def _decode_stop_time_update(feed_id: str, stop_time_update) -> StopTimeUpdate:
    arrival_time = None
    delay = None
    if stop_time_update.HasField("arrival"):
        arrival = stop_time_update.arrival
        if arrival.HasField("time") and arrival.time:
            arrival_time = arrival.time
        if arrival.HasField("delay"):
            delay = arrival.delay
    return StopTimeUpdate(
        stop_id=_string_field(feed_id, "stop_id", stop_time_update.stop_id),
        arrival_time=arrival_time,
        delay=delay,
    )


def _trip_headsign(trip_update) -> str:
    # trip_headsign is only present in newer versions of the bindings
    if not trip_update.HasField("trip_properties"):
        return ""
    return getattr(trip_update.trip_properties, "trip_headsign", "")


class MTAClient:
    """Fetches and decodes MTA GTFS-Realtime feeds."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the MTA client.

        Args:
            api_key: Optional MTA API key, sent as the x-api-key header.
            timeout: Per-feed HTTP timeout in seconds.
            cache_ttl: Seconds a decoded feed stays fresh. 0 disables caching.
            session: Optional requests session to reuse.
        """
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()
        self._cache: Dict[str, Tuple[FeedMessage, float]] = {}  # feed_id -> (feed, timestamp)
        self._cache_ttl = cache_ttl
        self._max_cache_size = 10  # Limit cache entries
        self._cache_lock = threading.Lock()

    def fetch(self, feed_id: str) -> FeedMessage:
        """
        Fetch, decode and cache a single feed.

        Args:
            feed_id: Feed ID (e.g., "ACE").

        Returns:
            Decoded FeedMessage.

        Raises:
            FetchError: On network errors, timeouts or non-2xx responses.
            DecodeError: If the payload is malformed.
        """
        now = time.time()
        cached = self._get_cached(feed_id, now)
        if cached is not None:
            logger.debug(f"Using cached data for feed {feed_id}")
            return cached

        payload = self._fetch_payload(feed_id)
        feed = decode_feed(feed_id, payload)
        logger.debug(f"Decoded feed {feed_id}: {len(feed.trip_updates)} trip updates")
        self._store(feed_id, feed, now)
        return feed

    def fetch_feeds(self, feed_ids: Iterable[str]) -> Dict[str, FeedMessage]:
        """
        Fetch several feeds concurrently.

        Every fetch is joined before returning. Feeds that fail are logged and
        left out of the result.

        Args:
            feed_ids: Distinct feed IDs to fetch.

        Returns:
            Mapping of feed ID to decoded feed, in request order.

        Raises:
            NoFeedsAvailable: If no feed IDs were given or every fetch failed.
        """
        feed_ids = list(dict.fromkeys(feed_ids))
        if not feed_ids:
            raise NoFeedsAvailable([])

        feeds: Dict[str, FeedMessage] = {}
        errors: Dict[str, Exception] = {}

        max_workers = min(len(feed_ids), len(FEED_URLS))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [(feed_id, executor.submit(self.fetch, feed_id)) for feed_id in feed_ids]
            for feed_id, future in futures:
                try:
                    feeds[feed_id] = future.result()
                except (FetchError, DecodeError) as e:
                    logger.warning(str(e))
                    errors[feed_id] = e

        if not feeds:
            logger.error(f"No feeds available out of {len(feed_ids)} requested")
            raise NoFeedsAvailable(feed_ids, errors)

        return feeds

    def _fetch_payload(self, feed_id: str) -> bytes:
        """
        Download the raw protobuf payload for a feed.

        Args:
            feed_id: Feed ID.

        Returns:
            Raw protobuf bytes.
        """
        url = feed_url(feed_id)
        headers = {
            "Accept": "application/x-protobuf",
            "Cache-Control": f"max-age={int(self._cache_ttl)}",
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key

        logger.debug(f"Fetching feed {feed_id} from {url}")
        try:
            response = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(feed_id, str(e)) from e

        if not response.ok:
            raise FetchError(feed_id, response.reason or "Request failed", status=response.status_code)

        logger.debug(f"Fetched feed {feed_id}: {len(response.content)} bytes")
        return response.content

    def _get_cached(self, feed_id: str, now: float) -> Optional[FeedMessage]:
        with self._cache_lock:
            if feed_id in self._cache:
                feed, timestamp = self._cache[feed_id]
                if now - timestamp < self._cache_ttl:
                    return feed
        return None

    def _store(self, feed_id: str, feed: FeedMessage, now: float) -> None:
        if self._cache_ttl <= 0:
            return

        with self._cache_lock:
            # Evict expired entries to prevent unbounded growth
            self._evict_expired_cache(now)

            # Enforce max cache size
            if feed_id not in self._cache and len(self._cache) >= self._max_cache_size:
                oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
                del self._cache[oldest_key]

            self._cache[feed_id] = (feed, now)

    def _evict_expired_cache(self, current_time: float) -> None:
        """Remove expired cache entries. Caller holds the cache lock."""
        expired_keys = [
            feed_id for feed_id, (_, timestamp) in self._cache.items()
            if current_time - timestamp >= self._cache_ttl
        ]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired cache entries")

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        with self._cache_lock:
            self._cache.clear()
