"""
Quota usage aggregation pipeline.

Pages through the quota listing of a service and fans out one task per quota
as soon as each page arrives. Every task resolves the quota's usage and
appends exactly one result row. After the listing is exhausted the pipeline
joins all tasks once, then filters and sorts the rows.

Failure handling:
1. Listing errors abort the run (the continuation token chain is broken)
2. Malformed quota ARNs abort the run (upstream contract breach)
3. Usage resolution errors only mark the row as "Not Available"

On a fatal error paging stops, queued tasks are cancelled and only the
tasks already running are waited for before the error is re-raised.
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .progress import ProgressCounters
from .quota import QuotaRecord, format_quota_value, parse_quota_arn
from .retry import with_backoff
from .usage import (
    NOT_AVAILABLE,
    MetricReader,
    TimeWindow,
    UsageResolver,
    resolve_usage,
)
from aws_service_limits.config.loader import PipelineConfig

logger = logging.getLogger(__name__)

# (service_code, next_token) -> (records, next_token or None)
QuotaSource = Callable[[str, Optional[str]], Tuple[Sequence[QuotaRecord], Optional[str]]]


class QuotaListingError(RuntimeError):
    """Raised when a page of the quota listing cannot be fetched."""


@dataclass(frozen=True)
class ResultRecord:
    """One report row: a quota with its formatted limit and usage."""
    account_id: str
    region: str
    service_code: str
    quota_name: str
    value: str
    usage: str
    global_quota: bool

    @property
    def is_available(self) -> bool:
        return self.usage != NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the report's field names."""
        return {
            "AccountID": self.account_id,
            "Region": self.region,
            "ServiceCode": self.service_code,
            "QuotaName": self.quota_name,
            "Value": self.value,
            "Usage": self.usage,
            "GlobalQuota": self.global_quota,
        }


class ResultSet:
    """Append-only result collection shared by concurrent tasks.

    Once frozen the collection is read-only and further appends fail.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[ResultRecord] = []
        self._frozen = False

    def append(self, record: ResultRecord) -> None:
        with self._lock:
            if self._frozen:
                raise RuntimeError("cannot append to a frozen result set")
            self._records.append(record)

    def freeze(self) -> Tuple[ResultRecord, ...]:
        """Stop accepting records and return them in insertion order."""
        with self._lock:
            self._frozen = True
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def finalize_results(
    records: Iterable[ResultRecord],
    exclude_not_available: bool = False
) -> List[ResultRecord]:
    """Filter and sort result rows for reporting.

    Rows without usage are dropped when ``exclude_not_available`` is set.
    The remaining rows are sorted by quota name; the sort is stable so ties
    keep their relative order. Applying this twice gives the same result.
    """
    if exclude_not_available:
        records = [r for r in records if r.is_available]
    return sorted(records, key=lambda r: r.quota_name)


def process_quota(
    record: QuotaRecord,
    resolver: UsageResolver,
    reader: MetricReader,
    window: TimeWindow,
) -> ResultRecord:
    """Build the report row for a single quota.

    Raises:
        InvalidQuotaArnError: If the quota ARN cannot be decomposed
    """
    region, account_id = parse_quota_arn(record.quota_arn)
    usage = resolve_usage(record, resolver, reader, window)
    return ResultRecord(
        account_id=account_id,
        region=region,
        service_code=record.service_code,
        quota_name=record.quota_name,
        value=format_quota_value(record.value, record.unit),
        usage=usage,
        global_quota=record.global_quota,
    )


class QuotaUsagePipeline:
    """Concurrent quota usage aggregation for one service.

    The usage resolver is always wrapped with throttling backoff. The metric
    reader is only wrapped when ``config.retry_metric_reads`` is set.
    """

    def __init__(
        self,
        config: PipelineConfig,
        quota_source: QuotaSource,
        usage_resolver: UsageResolver,
        metric_reader: MetricReader,
        counters: Optional[ProgressCounters] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config
        self.quota_source = quota_source
        self.counters = counters or ProgressCounters()

        backoff_kwargs: Dict[str, Any] = {"max_attempts": config.max_attempts}
        if sleep is not None:
            backoff_kwargs["sleep"] = sleep
        retry = with_backoff(**backoff_kwargs)

        self.usage_resolver = retry(usage_resolver)
        self.metric_reader = retry(metric_reader) if config.retry_metric_reads else metric_reader

    def run(self, executor: Optional[Executor] = None) -> List[ResultRecord]:
        """Collect, filter and sort result rows for the configured service.

        Args:
            executor: Executor for quota tasks. Defaults to a thread pool of
                ``config.max_workers`` threads owned by this call.

        Returns:
            Finalized result rows sorted by quota name

        Raises:
            QuotaListingError: If any page of the listing fails
            InvalidQuotaArnError: If any quota has a malformed ARN
        """
        if executor is not None:
            return self._run(executor)
        with ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="quota-task",
        ) as pool:
            return self._run(pool)

    def _run(self, executor: Executor) -> List[ResultRecord]:
        window = TimeWindow.last_hours(self.config.timeframe_hours)
        results = ResultSet()
        futures: List[Future] = []
        # Set by the first task that fails the run
        aborted = threading.Event()

        try:
            for page in self._pages(aborted):
                self.counters.add_total(len(page))
                for record in page:
                    if aborted.is_set():
                        break
                    futures.append(
                        executor.submit(self._task, record, window, results, aborted)
                    )
        except BaseException:
            _cancel_pending(futures)
            raise
        finally:
            if aborted.is_set():
                _cancel_pending(futures)
            # Running tasks are never interrupted; cancelled ones are already done
            wait(futures)

        for future in futures:
            if future.cancelled():
                continue
            # Re-raises the first fatal task error in submission order
            future.result()

        records = results.freeze()
        logger.info(
            "Collected %d quotas for service %s",
            len(records), self.config.service_code
        )
        return finalize_results(records, self.config.exclude_not_available)

    def _pages(self, aborted: threading.Event) -> Iterable[Sequence[QuotaRecord]]:
        """Yield listing pages until the source returns no continuation token.

        Paging stops early once ``aborted`` is set.
        """
        next_token: Optional[str] = None
        page_number = 0
        while not aborted.is_set():
            page_number += 1
            try:
                records, next_token = self.quota_source(
                    self.config.service_code, next_token
                )
            except Exception as e:
                raise QuotaListingError(
                    f"Failed to list service quotas for {self.config.service_code} "
                    f"(page {page_number}): {e}"
                ) from e
            logger.debug("Fetched page %d with %d quotas", page_number, len(records))
            yield records
            if not next_token:
                return

    def _task(
        self,
        record: QuotaRecord,
        window: TimeWindow,
        results: ResultSet,
        aborted: threading.Event,
    ) -> None:
        try:
            results.append(
                process_quota(record, self.usage_resolver, self.metric_reader, window)
            )
        except Exception:
            aborted.set()
            raise
        finally:
            self.counters.mark_completed()


def _cancel_pending(futures: Iterable[Future]) -> None:
    """Cancel queued tasks; tasks already running are left to finish."""
    cancelled = sum(1 for future in futures if future.cancel())
    if cancelled:
        logger.debug("Cancelled %d queued quota tasks", cancelled)
