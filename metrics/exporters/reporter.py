"""Periodic reporting of drained telemetry metrics"""
import threading
import time
from typing import Any, Callable, Dict, List, Optional
from logging_config import get_logger, log_metrics_report


logger = get_logger(__name__)

MetricsProvider = Callable[[], Optional[List[Dict[str, Any]]]]
PayloadSender = Callable[[Dict[str, Any]], None]

METRICS_NAMESPACE = "tracers"


class MetricsReporter:
    """Collects series from registered providers and hands them to a sender

    The interval runs on a daemon thread so it never keeps the monitored
    process alive. Transport is owned by the sender.
    """

    def __init__(self, sender: Optional[PayloadSender] = None, interval: float = 60.0):
        self.sender = sender
        self.interval = interval
        self.metric_providers: List[MetricsProvider] = []
        self._providers_lock = threading.Lock()
        self._interval_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.report_count = 0
        self.report_errors = 0

    def set_sender(self, sender: Optional[PayloadSender], interval: Optional[float] = None) -> None:
        """Attach the transport; the interval starts once a provider is registered"""
        self.stop_interval()
        self.sender = sender
        if interval is not None:
            self.interval = interval
        if self.metric_providers:
            self.start_interval()

    def register_provider(self, provider: MetricsProvider) -> None:
        with self._providers_lock:
            if provider not in self.metric_providers:
                self.metric_providers.append(provider)
        self.start_interval()

    def unregister_provider(self, provider: MetricsProvider) -> None:
        with self._providers_lock:
            if provider in self.metric_providers:
                self.metric_providers.remove(provider)
            empty = not self.metric_providers
        if empty:
            self.stop_interval()

    def get_payload(self) -> Optional[Dict[str, Any]]:
        with self._providers_lock:
            providers = list(self.metric_providers)

        series = []
        for provider in providers:
            metrics = provider()
            if metrics:
                series.extend(metrics)

        if not series:
            return None
        return {
            "namespace": METRICS_NAMESPACE,
            "series": series
        }

    def on_send_data(self) -> None:
        """Drain providers and send one payload; failures are logged and dropped"""
        if not self.sender:
            return

        start_time = time.time()
        try:
            payload = self.get_payload()
            if payload:
                self.sender(payload)
                self.report_count += 1
                log_metrics_report(logger, len(payload["series"]), time.time() - start_time)
        except Exception as e:
            self.report_errors += 1
            logger.error("Telemetry report failed", error=str(e), event_type="report_error", exc_info=True)

    def start_interval(self) -> None:
        with self._interval_lock:
            if self._thread is not None or not self.interval or not self.sender:
                return

            # Each loop owns its event so a late-exiting loop is never revived
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._report_loop,
                args=(self._stop_event,),
                name="iast_telemetry_reporter",
                daemon=True
            )
            self._thread.start()
        logger.debug("Telemetry reporter started", interval=self.interval)

    def stop_interval(self) -> None:
        with self._interval_lock:
            thread, stop_event = self._thread, self._stop_event
            if thread is None:
                return
            stop_event.set()
            self._thread = None
            self._stop_event = None

        if thread is not threading.current_thread():
            thread.join(timeout=self.interval)
        logger.debug("Telemetry reporter stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self) -> None:
        """Stop the interval, flush once and forget every provider"""
        self.stop_interval()
        self.on_send_data()
        with self._providers_lock:
            self.metric_providers.clear()

    def _report_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            self.on_send_data()


metrics_reporter = MetricsReporter()
