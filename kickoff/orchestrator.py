"""Data refresh orchestration: fetch, degraded retry, cache fallback, silent refresh."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .alerts import detect_match_events
from .config import DEGRADED_TIMEOUT_SECONDS, NORMAL_TIMEOUT_SECONDS, REFRESH_INTERVAL_SECONDS, REFRESH_TICK_SECONDS
from .credentials import ensure_authorized
from .errors import BackendError, ErrorKind
from .favorites import FavoritesStore
from .geolocation import Location
from .history import HistoryStore
from .models import AIPrediction, SportsData
from .notifications import NotificationCenter
from .refresh import RefreshCountdown

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "Gemini API quota exhausted. Select a personal API key with billing enabled (pay-as-you-go)."
CREDENTIAL_MESSAGE = "The Gemini API key was rejected. Select a valid API key."
HARD_ERROR_MESSAGE = "AI error. Check your API key configuration and try again."
CACHED_WARNING = "Live data unavailable, showing cached data from {timestamp}."

# Failures that earn one automatic retry without web search
DEGRADABLE_KINDS = (ErrorKind.TIMEOUT, ErrorKind.MALFORMED_PAYLOAD)

Listener = Callable[[str, Any], None]


class LoadTrigger(str, Enum):
    INITIAL = "initial"
    MANUAL = "manual"
    SILENT = "silent"


class LoadOutcome(str, Enum):
    FRESH = "fresh"
    CACHED = "cached"
    FAILED = "failed"
    BLOCKED = "blocked"
    SKIPPED = "skipped"


class View(str, Enum):
    LIVE = "live"
    STANDINGS = "standings"
    FAVORITES = "favorites"
    HISTORY = "history"
    SETTINGS = "settings"


class DataRefreshOrchestrator:
    """
    Owns the current SportsData and the lifecycle of fetching it.

    ``load`` never raises: backend failures end up in ``error``/``warning``
    and the returned LoadOutcome. Observers subscribe to ``state``, ``data``
    and ``notification`` events.

    Timeouts are enforced by racing the backend call on a worker thread
    against ``future.result(timeout=...)``; a call that loses the race is
    dropped if still queued and abandoned, not interrupted, if running.
    """

    def __init__(
        self,
        client,
        history: HistoryStore,
        credentials=None,
        locator: Callable[[], Optional[Location]] = None,
        favorites: FavoritesStore = None,
        notifications: NotificationCenter = None,
        normal_timeout: float = NORMAL_TIMEOUT_SECONDS,
        degraded_timeout: float = DEGRADED_TIMEOUT_SECONDS,
        refresh_interval: int = REFRESH_INTERVAL_SECONDS,
        tick_interval: float = REFRESH_TICK_SECONDS
    ):
        self.client = client
        self.history = history
        self.credentials = credentials
        self.locator = locator
        self.favorites = favorites
        self.notifications = notifications or NotificationCenter()
        self.normal_timeout = normal_timeout
        self.degraded_timeout = degraded_timeout

        self.data: Optional[SportsData] = None
        self.loading = False
        self.is_refreshing = False
        self.error: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        self.warning: Optional[str] = None
        self.is_quota_exhausted = False
        self.has_api_key = True
        self.showing_cached = False
        self.thinking_mode = False
        self.location: Optional[Location] = None
        self.view = View.LIVE
        self.degraded_retries = 0

        self._lock = threading.RLock()
        self._loading_count = 0
        self._refreshing_count = 0
        self._guarded_in_flight = 0
        self._listeners: List[Listener] = []
        self._disposed = False
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="kickoff-backend")
        self.countdown = RefreshCountdown(
            on_fire=self._silent_refresh,
            duration=refresh_interval,
            tick_interval=tick_interval,
        )

    # Lifecycle

    def init(self, start_timer: bool = True, force_degraded: bool = False) -> LoadOutcome:
        """Start location lookup and the refresh timer, then load data."""
        if self.locator is not None:
            threading.Thread(target=self._locate, name="kickoff-locate", daemon=True).start()
        if start_timer:
            self.countdown.start()
        return self.load(LoadTrigger.INITIAL, force_degraded=force_degraded)

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
            self._listeners = []
        self.countdown.stop()
        self._executor.shutdown(wait=False)

    # Observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener(event, payload). Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: str, payload: Any = None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, payload)
            except Exception:
                logger.exception(f"Listener failed on {event} event")

    def _emit_state(self) -> None:
        self._emit("state", self.state())

    def state(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "loading": self.loading,
                "is_refreshing": self.is_refreshing,
                "error": self.error,
                "error_kind": self.error_kind.value if self.error_kind else None,
                "warning": self.warning,
                "is_quota_exhausted": self.is_quota_exhausted,
                "has_api_key": self.has_api_key,
                "showing_cached": self.showing_cached,
                "thinking_mode": self.thinking_mode,
                "location": self.location.as_tuple() if self.location else None,
                "view": self.view.value,
                "refresh_countdown": self.countdown.remaining,
                "last_updated": self.data.last_updated if self.data else None,
            }

    def _notify(self, title: str, message: str, type: str = "info") -> None:
        notification = self.notifications.add(title, message, type)
        self._emit("notification", notification)

    # Ambient parameters

    def _locate(self) -> None:
        location = self.locator()
        if location is None:
            return
        with self._lock:
            self.location = location
        logger.info(f"Location resolved: {location.lat:.3f}, {location.lng:.3f}")
        self._emit_state()

    def set_view(self, view: View) -> None:
        with self._lock:
            self.view = View(view)
        self._sync_timer()
        self._emit_state()

    def set_thinking_mode(self, enabled: bool) -> Optional[LoadOutcome]:
        """Toggle deep thinking; reloads when the value changes."""
        with self._lock:
            if self.thinking_mode == enabled:
                return None
            self.thinking_mode = enabled
        return self.load(LoadTrigger.INITIAL)

    def _sync_timer(self) -> None:
        with self._lock:
            active = (
                not self._disposed
                and self.view is View.LIVE
                and not self.loading
                and self.error is None
                and self.has_api_key
            )
        self.countdown.update(active)

    # Credentials

    def _check_credentials(self) -> bool:
        try:
            authorized = ensure_authorized(self.credentials)
        except Exception as e:
            logger.warning(f"Could not check API key status: {e}")
            authorized = False
        with self._lock:
            self.has_api_key = authorized
        return authorized

    def select_credentials(self) -> LoadOutcome:
        """Open the key selector, verify the result, then reload."""
        if self.credentials is not None:
            try:
                self.credentials.open_select_key()
            except Exception as e:
                logger.error(f"Could not open the key selector: {e}")
                self._notify("Error", "Could not open the key selector.")
                return LoadOutcome.FAILED

            if not self._check_credentials():
                logger.warning("No API key selected after the selector closed")
                self._sync_timer()
                self._emit_state()
                return LoadOutcome.BLOCKED

        with self._lock:
            self.is_quota_exhausted = False
            self.error = None
            self.error_kind = None
        return self.load(LoadTrigger.INITIAL)

    # Loading

    def _silent_refresh(self) -> None:
        self.load(LoadTrigger.SILENT)

    def load(self, trigger: LoadTrigger = LoadTrigger.MANUAL, force_degraded: bool = False) -> LoadOutcome:
        """
        Fetch fresh data, falling back to degraded mode or cached data.

        Manual and silent loads are skipped while another manual or silent
        load is in flight; initial loads always run.

        Args:
            trigger: What asked for the load
            force_degraded: Skip web search and use the shorter timeout

        Returns:
            LoadOutcome describing what ended up on screen
        """
        trigger = LoadTrigger(trigger)
        guarded = trigger is not LoadTrigger.INITIAL
        silent = trigger is LoadTrigger.SILENT

        with self._lock:
            if guarded and self._guarded_in_flight:
                logger.debug(f"Ignoring {trigger.value} load, another load is in flight")
                return LoadOutcome.SKIPPED
            if guarded:
                self._guarded_in_flight += 1

        started = False
        try:
            if silent:
                with self._lock:
                    authorized = self.has_api_key
            else:
                authorized = self._check_credentials()
            if not authorized:
                logger.info("No API key selected, not loading")
                return LoadOutcome.BLOCKED

            with self._lock:
                started = True
                if silent:
                    self._refreshing_count += 1
                    self.is_refreshing = True
                else:
                    self._loading_count += 1
                    self.loading = True
                    self.error = None
                    self.error_kind = None
            self._sync_timer()
            self._emit_state()

            try:
                data = self._fetch(force_degraded)
            except BackendError as e:
                return self._handle_failure(trigger, e)
            except Exception as e:
                logger.exception("Unexpected error while loading data")
                return self._handle_failure(trigger, BackendError(ErrorKind.UNKNOWN, str(e)))

            self._apply_success(data)
            return LoadOutcome.FRESH
        finally:
            with self._lock:
                if guarded:
                    self._guarded_in_flight -= 1
                # Overlapping loads each hold their own flag
                if started and silent:
                    self._refreshing_count -= 1
                elif started:
                    self._loading_count -= 1
                self.loading = self._loading_count > 0
                self.is_refreshing = self._refreshing_count > 0
            self._sync_timer()
            self._emit_state()

    def _fetch(self, force_degraded: bool) -> SportsData:
        use_search = not force_degraded
        try:
            return self._call_backend(use_search)
        except BackendError as e:
            if not (use_search and e.kind in DEGRADABLE_KINDS):
                raise
            logger.warning(f"Backend call failed ({e.kind.value}), retrying without search")
            with self._lock:
                self.degraded_retries += 1
            return self._call_backend(use_search=False)

    def _call_backend(self, use_search: bool) -> SportsData:
        timeout = self.normal_timeout if use_search else self.degraded_timeout
        with self._lock:
            location = self.location.as_tuple() if self.location else None
            use_thinking = self.thinking_mode

        future = self._executor.submit(
            self.client.fetch_soccer_data,
            use_thinking=use_thinking,
            use_search=use_search,
            location=location,
            timeout=timeout,
        )
        try:
            data = future.result(timeout=timeout)
        except FutureTimeout as e:
            # Drops the call if still queued; a running call is left to finish
            future.cancel()
            raise BackendError(ErrorKind.TIMEOUT, f"No response within {timeout}s") from e

        if data is None or not data.matches:
            raise BackendError(ErrorKind.MALFORMED_PAYLOAD, "Response contained no matches")
        return data

    def _apply_success(self, data: SportsData) -> None:
        with self._lock:
            previous = self.data
            self.data = data
        self.history.append(data)
        with self._lock:
            self.error = None
            self.error_kind = None
            self.warning = None
            self.is_quota_exhausted = False
            self.showing_cached = False
            self.has_api_key = True
        self.countdown.reset()
        logger.info(f"Loaded {len(data.matches)} matches at {data.last_updated}")
        self._emit("data", data)

        if self.favorites is not None:
            for type, title, message in detect_match_events(previous, data, self.favorites.load()):
                self._notify(title, message, type)

    def _handle_failure(self, trigger: LoadTrigger, error: BackendError) -> LoadOutcome:
        logger.error(f"Load failed ({error.kind.value}): {error}")

        if error.is_credential_problem:
            quota = error.kind is ErrorKind.QUOTA_EXHAUSTED
            with self._lock:
                self.error_kind = error.kind
                self.is_quota_exhausted = quota
                self.has_api_key = False
                self.error = QUOTA_MESSAGE if quota else CREDENTIAL_MESSAGE
            self._notify("System error", "API quota exhausted." if quota else "API key rejected.")
            return LoadOutcome.FAILED

        with self._lock:
            has_data = self.data is not None
        if trigger is LoadTrigger.SILENT and has_data:
            self._notify("Refresh failed", "Showing the last data received.")
            return LoadOutcome.FAILED

        snapshot = self.history.latest()
        if snapshot is not None:
            logger.warning(f"Falling back to cached snapshot from {snapshot.timestamp}")
            with self._lock:
                self.data = snapshot.data
                self.showing_cached = True
                self.warning = CACHED_WARNING.format(timestamp=snapshot.timestamp)
                self.error = None
                self.error_kind = error.kind
            self._emit("data", snapshot.data)
            return LoadOutcome.CACHED

        with self._lock:
            self.error_kind = error.kind
            self.error = HARD_ERROR_MESSAGE
        return LoadOutcome.FAILED

    # Other model calls

    def predict(self, home: str, away: str) -> AIPrediction:
        """Ask for a match prediction; failures yield a placeholder."""
        try:
            return self.client.get_match_prediction(home, away, use_thinking=self.thinking_mode)
        except BackendError as e:
            logger.warning(f"Prediction failed for {home} vs {away}: {e}")
            return AIPrediction(prediction="N/D", confidence="0%", analysis="Check your API quota.")

    def analyze_history(self, favorites: List[str] = None) -> str:
        """
        Generate a trend report from stored snapshots.

        Raises:
            BackendError: the model call failed
        """
        return self.client.get_historical_analysis(self.history.load(), favorites or [], use_thinking=self.thinking_mode)
