import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Union

import httpx
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from jobhub.client.connectivity import ConnectivityMonitor
from jobhub.jobs.gateway import RetrievalGateway
from jobhub.jobs.project import describe_failure
from jobhub.models.schema import (
    FailureKind,
    QueryDescriptor,
    RetrievalFailure,
    RetrievalOutcome,
    RetrievalSuccess,
)


logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCESS = "success"
    FAILED = "failed"
    RETRYING = "retrying"
    GIVEN_UP = "given_up"


class FetchReport(BaseModel):
    state: FetchState
    generation: int = 0
    query: Optional[QueryDescriptor] = None
    outcome: Optional[Union[RetrievalSuccess, RetrievalFailure]] = None
    attempts: int = 0
    message: Optional[str] = None


def classify_failure(exc: BaseException, online: bool = True) -> FailureKind:
    if not online:
        return FailureKind.OFFLINE
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return FailureKind.TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        return FailureKind.CONNECT_FAILED
    if isinstance(exc, httpx.HTTPStatusError):
        return FailureKind.SERVER_ERROR
    return FailureKind.UNKNOWN


class ResilienceController:
    """Drives one authoritative fetch at a time through timeout, retry and backoff.

    idle -> in_flight -> success | failed
    failed -> retrying -> in_flight ... -> success | given_up

    Only network-class failures (offline, connect_failed, timeout) are retried
    automatically. The delay before retry n is retry_step_s * (n - 1). Every
    fetch is tagged with a generation number and outcomes from superseded
    generations are dropped, so the last request issued wins.
    """

    def __init__(
        self,
        gateway: RetrievalGateway,
        timeout_s: float = 5.0,
        max_retries: int = 3,
        retry_step_s: float = 3.0,
        connectivity: Optional[ConnectivityMonitor] = None,
        listener: Optional[Callable[[FetchReport], None]] = None,
        sleep=asyncio.sleep,
    ) -> None:
        self.gateway = gateway
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.retry_step_s = retry_step_s
        self.connectivity = connectivity
        self.listener = listener
        self._sleep = sleep

        self.state = FetchState.IDLE
        self.retry_count = 0
        self.last_report = FetchReport(state=FetchState.IDLE)
        self._generation = 0
        self._query: Optional[QueryDescriptor] = None
        self._last_failure: Optional[RetrievalFailure] = None
        self._wake: Optional[asyncio.Event] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def query(self) -> Optional[QueryDescriptor]:
        return self._query

    def retry_delay(self, retry_number: int) -> float:
        return self.retry_step_s * (retry_number - 1)

    async def fetch(self, query: QueryDescriptor) -> Optional[FetchReport]:
        """Start a new logical fetch. Returns None if superseded before it settled."""
        self._generation += 1
        self._query = query
        self.retry_count = 0
        self._last_failure = None
        self._interrupt_backoff()
        return await self._drive(self._generation)

    async def retry(self) -> Optional[FetchReport]:
        if self._query is None:
            return None
        logger.info("[fetch] Manual retry requested")
        return await self.fetch(self._query)

    async def on_connectivity_restored(self) -> Optional[FetchReport]:
        failure = self._last_failure
        if self._query is None or failure is None or not failure.kind.network_class:
            return None

        if self.state == FetchState.RETRYING and self._wake is not None:
            # The pending backoff is cut short; the retry loop re-fetches now.
            logger.info("[fetch] Connectivity restored, retrying immediately")
            self._wake.set()
            return None

        if self.state in (FetchState.FAILED, FetchState.GIVEN_UP):
            logger.info("[fetch] Connectivity restored, re-fetching")
            return await self._drive(self._generation)
        return None

    def _interrupt_backoff(self) -> None:
        if self._wake is not None:
            self._wake.set()
            self._wake = None

    async def _online(self) -> bool:
        if self.connectivity is None:
            return True
        return await self.connectivity.check()

    async def _call_gateway(self, query: QueryDescriptor) -> RetrievalOutcome:
        self.state = FetchState.IN_FLIGHT
        try:
            return await asyncio.wait_for(self.gateway.execute(query), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            return RetrievalFailure(
                kind=FailureKind.TIMEOUT,
                message=f"Request timed out after {self.timeout_s:g}s",
            )
        except httpx.HTTPError as e:
            return RetrievalFailure(kind=classify_failure(e), message=str(e))
        except Exception as e:
            logger.warning("[fetch] Gateway raised %r", e, exc_info=True)
            return RetrievalFailure(kind=classify_failure(e), message=str(e) or e.__class__.__name__)

    async def _classify(self, failure: RetrievalFailure) -> RetrievalFailure:
        if failure.kind in (FailureKind.SERVER_ERROR, FailureKind.OFFLINE):
            return failure
        if not await self._online():
            return failure.model_copy(update={"kind": FailureKind.OFFLINE})
        return failure

    async def _attempt(self, generation: int) -> Optional[RetrievalOutcome]:
        # None marks an attempt whose generation was superseded.
        if generation != self._generation:
            return None
        outcome = await self._call_gateway(self._query)
        if generation != self._generation:
            return None
        if isinstance(outcome, RetrievalFailure):
            outcome = await self._classify(outcome)
            if generation != self._generation:
                return None
            self._last_failure = outcome
        return outcome

    def _should_retry(self, outcome: Optional[RetrievalOutcome], generation: int) -> bool:
        return (
            generation == self._generation
            and isinstance(outcome, RetrievalFailure)
            and outcome.kind.network_class
        )

    def _before_retry(self, retry_state: RetryCallState, base: int, generation: int) -> None:
        outcome = retry_state.outcome.result()
        self.retry_count = base + retry_state.attempt_number
        # Armed before RETRYING is published so a restore can always cut the wait short.
        self._wake = asyncio.Event()
        self._publish(FetchState.RETRYING, generation, outcome)
        logger.info(
            "[fetch] %s failure, retry %d/%d in %.1fs",
            outcome.kind.value, self.retry_count, self.max_retries, retry_state.next_action.sleep,
        )

    async def _backoff(self, delay: float) -> None:
        wake = self._wake
        if wake is None or wake.is_set():
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(wake.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
            if self._wake is wake:
                self._wake = None

    async def _drive(self, generation: int) -> Optional[FetchReport]:
        # A restore after giving up resumes from the current counter, so it gets one attempt.
        base = self.retry_count
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries - base + 1),
            wait=wait_incrementing(start=self.retry_delay(base + 1), increment=self.retry_step_s),
            retry=retry_if_result(lambda outcome: self._should_retry(outcome, generation)),
            before_sleep=lambda retry_state: self._before_retry(retry_state, base, generation),
            sleep=self._backoff,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        outcome = await retrying(self._attempt, generation)
        if outcome is None or generation != self._generation:
            logger.debug("[fetch] Dropping stale outcome of generation %d", generation)
            return None

        if isinstance(outcome, RetrievalSuccess):
            self.retry_count = 0
            self._last_failure = None
            return self._publish(FetchState.SUCCESS, generation, outcome)
        if outcome.kind.network_class:
            return self._publish(FetchState.GIVEN_UP, generation, outcome)
        return self._publish(FetchState.FAILED, generation, outcome)

    def _publish(self, state: FetchState, generation: int, outcome: RetrievalOutcome) -> FetchReport:
        self.state = state
        message = None
        if isinstance(outcome, RetrievalFailure):
            message = describe_failure(outcome.kind, self.retry_count, self.max_retries, state == FetchState.GIVEN_UP)
            log = logger.warning if state != FetchState.RETRYING else logger.debug
            log("[fetch] %s: %s (%s)", state.value, outcome.kind.value, outcome.message)

        report = FetchReport(
            state=state,
            generation=generation,
            query=self._query,
            outcome=outcome,
            attempts=self.retry_count,
            message=message,
        )
        self.last_report = report
        if self.listener is not None:
            self.listener(report)
        return report
