"""Tiered provider routing with ordered fallback.

The engine resolves a plan to its tier, builds the ordered candidate chain,
and tries candidates strictly one at a time. The first success wins. Every
attempt is recorded in the metrics recorder under its vendor name before the
next candidate starts. When the chain is exhausted the caller receives a
failed response whose error lists each failed candidate's reason, in order.

Unconfigured vendors are skipped without being invoked, so they never show up
as errors in metrics. Each attempt runs on its own worker thread with a
deadline; a timed-out attempt counts as a failure and the chain moves on.
Abandoned attempts keep their thread until the vendor call returns, so they
never hold up a later candidate or a concurrent route.
"""

import dataclasses
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional

from ..llm.provider_registry import ProviderRegistry
from ..llm.providers.base_provider import (
    OcrExtractor,
    ProviderAdapter,
    TextGenerator,
    supports_vision,
)
from ..metrics.metrics_recorder import MetricsRecorder
from ..models.data_structures import (
    AdapterReply,
    ContentKind,
    ProviderRequest,
    ProviderResponse,
)
from ..tiers.model_catalog import get_model_info, get_ocr_provider_info
from ..tiers.tier_config import (
    TierConfig,
    TierResolver,
    max_tokens_for_speed,
    model_chain,
    ocr_chain,
    speed_tier,
)
from ..utils.config_loader import RouterConfig
from ..utils.error_handlers import RoutingCancelledError, is_retriable_error
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPT_TIMEOUT = 30.0
ALL_MODELS_FAILED = "All models failed"
ALL_OCR_FAILED = "All OCR providers failed"


class AttemptOutcome(str, Enum):
    """Result tag of one candidate attempt."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class Candidate:
    """
    One entry of a resolved chain.

    Attributes:
        candidate_id: Logical model id or OCR provider id.
        vendor: Vendor serving the candidate; registry and metrics key.
        target: Concrete API model for models, quality level for OCR.
    """

    candidate_id: str
    vendor: str
    target: str


@dataclass
class AttemptResult:
    """Outcome of one candidate attempt."""

    candidate: Candidate
    outcome: AttemptOutcome
    latency_ms: int = 0
    reply: Optional[AdapterReply] = None
    reason: Optional[str] = None

    def describe(self) -> str:
        return f"{self.candidate.candidate_id}: {self.reason}"


@dataclass
class ChainResult:
    """Fold of a chain: the winning attempt, if any, and failure reasons in order."""

    winner: Optional[AttemptResult] = None
    errors: List[str] = field(default_factory=list)
    attempted: int = 0


def fold_attempts(attempts: Iterable[AttemptResult]) -> ChainResult:
    """
    Fold attempts left to right, stopping at the first success.

    ``attempts`` is consumed lazily, so no candidate after the winner is ever
    started.
    """
    result = ChainResult()
    for attempt in attempts:
        if attempt.outcome is AttemptOutcome.SKIPPED:
            continue
        result.attempted += 1
        if attempt.outcome is AttemptOutcome.SUCCESS:
            result.winner = attempt
            return result
        result.errors.append(attempt.describe())
    return result


class RoutingEngine:
    """
    Route text, vision and OCR requests through a tier's provider chain.

    Attributes:
        registry: Vendor adapters keyed by vendor name.
        recorder: Metrics recorder receiving every attempt.
        tiers: Tier resolver (with configured overrides, if any).
        attempt_timeout: Per-attempt deadline in seconds.

    Example:
        >>> with RoutingEngine(registry, MetricsRecorder()) as engine:
        ...     response = engine.route(ProviderRequest.text("..."), "credits_low")
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        recorder: Optional[MetricsRecorder] = None,
        tiers: Optional[TierResolver] = None,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
    ) -> None:
        if attempt_timeout <= 0:
            raise ValueError(f"attempt_timeout must be positive, got {attempt_timeout}")

        self.registry = registry
        self.recorder = recorder or MetricsRecorder()
        self.tiers = tiers or TierResolver()
        self.attempt_timeout = attempt_timeout
        self._closed = threading.Event()

    @classmethod
    def from_config(
        cls,
        config: RouterConfig,
        registry: Optional[ProviderRegistry] = None,
        recorder: Optional[MetricsRecorder] = None,
    ) -> "RoutingEngine":
        return cls(
            registry=registry or ProviderRegistry.from_config(config),
            recorder=recorder,
            tiers=TierResolver(config.tiers),
            attempt_timeout=config.attempt_timeout,
        )

    def __enter__(self) -> "RoutingEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Stop starting attempts; in-flight attempts are left to finish."""
        self._closed.set()

    # ========================================================================
    # Chain building
    # ========================================================================

    def build_model_chain(
        self, request: ProviderRequest, tier: TierConfig
    ) -> List[Candidate]:
        """Map the resolved tier's model chain for the request stage to candidates."""
        candidates: List[Candidate] = []
        for model_id in model_chain(tier, request.stage):
            info = get_model_info(model_id)
            if info is None:
                logger.warning(f"No vendor mapping for model '{model_id}', skipping")
                continue
            candidates.append(Candidate(model_id, info.vendor, info.api_model))
        return candidates

    def build_ocr_chain(self, plan_identifier: Optional[str]) -> List[Candidate]:
        tier = self.tiers.resolve(plan_identifier)
        candidates: List[Candidate] = []
        for ocr_id in ocr_chain(tier):
            info = get_ocr_provider_info(ocr_id)
            if info is None:
                logger.warning(f"No vendor mapping for OCR provider '{ocr_id}', skipping")
                continue
            candidates.append(Candidate(ocr_id, info.vendor, tier.ocr_quality))
        return candidates

    # ========================================================================
    # Routing
    # ========================================================================

    def route(
        self,
        request: ProviderRequest,
        plan_identifier: Optional[str] = "free",
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProviderResponse:
        """
        Route a text or vision request through the plan's model chain.

        Args:
            request: Request to route. ``max_tokens`` defaults to the plan's
                speed tier (1024/2048/4096) when unset.
            plan_identifier: Plan name or billing plan type; unknown → free.
            cancel_token: Optional token; once cancelled no new candidate starts.

        Returns:
            The first successful response, or a failed response whose error is
            "All models failed: <id>: <reason>; ...".

        Raises:
            RoutingCancelledError: If the token was cancelled.
        """
        tier = self.tiers.resolve(plan_identifier)
        if request.max_tokens is None:
            request = dataclasses.replace(
                request, max_tokens=max_tokens_for_speed(speed_tier(tier.plan_name))
            )

        candidates = self.build_model_chain(request, tier)
        logger.debug(
            f"Routing {request.kind.value} request (plan={tier.plan_name}, "
            f"stage={request.stage.value}): {[c.candidate_id for c in candidates]}"
        )

        started = time.perf_counter()
        chain = fold_attempts(
            self._run_chain(
                candidates,
                lambda adapter, candidate: self._model_call(adapter, candidate, request),
                cancel_token,
            )
        )

        if chain.winner is not None:
            winner = chain.winner
            return ProviderResponse(
                content=winner.reply.content,
                provider=winner.candidate.vendor,
                model=winner.candidate.candidate_id,
                latency_ms=winner.latency_ms,
                success=True,
                api_model=winner.candidate.target,
            )

        logger.error(
            f"{ALL_MODELS_FAILED} for plan {tier.plan_name} "
            f"({chain.attempted} attempted, {len(candidates)} in chain)"
        )
        return ProviderResponse.failure(
            f"{ALL_MODELS_FAILED}: {'; '.join(chain.errors)}", _elapsed_ms(started)
        )

    def route_ocr(
        self,
        image: bytes,
        method: str,
        plan_identifier: Optional[str] = "free",
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProviderResponse:
        """
        Route an OCR extraction through the plan's OCR chain.

        Returns:
            The first successful extraction (``confidence`` set), or a failed
            response whose error is "All OCR providers failed: ...".

        Raises:
            RoutingCancelledError: If the token was cancelled.
        """
        candidates = self.build_ocr_chain(plan_identifier)
        started = time.perf_counter()
        chain = fold_attempts(
            self._run_chain(
                candidates,
                lambda adapter, candidate: self._ocr_call(adapter, candidate, image, method),
                cancel_token,
            )
        )

        if chain.winner is not None:
            winner = chain.winner
            return ProviderResponse(
                content=winner.reply.content,
                provider=winner.candidate.vendor,
                model=winner.candidate.candidate_id,
                latency_ms=winner.latency_ms,
                success=True,
                confidence=winner.reply.confidence,
            )

        return ProviderResponse.failure(
            f"{ALL_OCR_FAILED}: {'; '.join(chain.errors)}", _elapsed_ms(started)
        )

    # ========================================================================
    # Attempt loop
    # ========================================================================

    @staticmethod
    def _model_call(
        adapter: ProviderAdapter, candidate: Candidate, request: ProviderRequest
    ) -> Optional[Callable[[], AdapterReply]]:
        if request.kind is ContentKind.VISION:
            if not supports_vision(adapter):
                return None
            return lambda: adapter.generate_vision(request, candidate.target)
        if not isinstance(adapter, TextGenerator):
            return None
        return lambda: adapter.generate_text(request, candidate.target)

    @staticmethod
    def _ocr_call(
        adapter: ProviderAdapter, candidate: Candidate, image: bytes, method: str
    ) -> Optional[Callable[[], AdapterReply]]:
        if not isinstance(adapter, OcrExtractor):
            return None
        return lambda: adapter.extract(image, method, candidate.target)

    def _run_chain(
        self,
        candidates: List[Candidate],
        make_call: Callable[[ProviderAdapter, Candidate], Optional[Callable[[], AdapterReply]]],
        cancel_token: Optional[CancellationToken],
    ) -> Iterator[AttemptResult]:
        """Yield one AttemptResult per candidate, lazily and in chain order."""
        attempted = 0
        for candidate in candidates:
            if cancel_token is not None and cancel_token.is_cancelled():
                raise RoutingCancelledError(attempted=attempted)
            if self._closed.is_set():
                raise RuntimeError("RoutingEngine is closed")

            adapter = self.registry.get(candidate.vendor)
            if adapter is None or not adapter.is_configured():
                reason = (
                    adapter.unconfigured_reason() if adapter else "no adapter registered"
                )
                logger.debug(f"Skipping {candidate.candidate_id}: {reason}")
                yield AttemptResult(candidate, AttemptOutcome.SKIPPED, reason=reason)
                continue

            call = make_call(adapter, candidate)
            if call is None:
                logger.debug(
                    f"Skipping {candidate.candidate_id}: {candidate.vendor} lacks capability"
                )
                yield AttemptResult(
                    candidate, AttemptOutcome.SKIPPED, reason="capability not supported"
                )
                continue

            attempt = self._attempt(candidate, call)
            if attempt.outcome is AttemptOutcome.SKIPPED:
                # Adapter never ran; nothing to record against the vendor
                yield attempt
                continue

            attempted += 1
            self.recorder.record(
                candidate.vendor,
                attempt.latency_ms,
                attempt.outcome is AttemptOutcome.SUCCESS,
                attempt.reason,
            )

            if cancel_token is not None and cancel_token.is_cancelled():
                raise RoutingCancelledError(attempted=attempted)

            yield attempt

    def _attempt(
        self, candidate: Candidate, call: Callable[[], AdapterReply]
    ) -> AttemptResult:
        """
        Run one adapter call under the attempt deadline.

        The call gets a dedicated single-worker executor, so the deadline
        covers the vendor call itself and never time spent queued behind
        abandoned calls of other routes.
        """
        executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"attempt-{candidate.vendor}"
        )
        started = time.perf_counter()
        future = executor.submit(call)
        try:
            reply = future.result(timeout=self.attempt_timeout)
        except FutureTimeoutError:
            if future.cancel():
                logger.warning(
                    f"{candidate.candidate_id} ({candidate.vendor}) never started, skipping"
                )
                return AttemptResult(
                    candidate, AttemptOutcome.SKIPPED, reason="attempt never started"
                )
            reason = f"timed out after {self.attempt_timeout:g}s"
            logger.warning(f"{candidate.candidate_id} ({candidate.vendor}) {reason}")
            return AttemptResult(
                candidate, AttemptOutcome.FAILED, _elapsed_ms(started), reason=reason
            )
        except Exception as e:
            kind = "transient" if is_retriable_error(e) else "permanent"
            logger.warning(
                f"{candidate.candidate_id} ({candidate.vendor}) failed ({kind}): {e}"
            )
            return AttemptResult(
                candidate,
                AttemptOutcome.FAILED,
                _elapsed_ms(started),
                reason=str(e) or type(e).__name__,
            )
        finally:
            # Returns at once; a timed-out call finishes on its own thread
            executor.shutdown(wait=False)

        latency_ms = _elapsed_ms(started)
        if not reply.success:
            reason = reply.error or "unsuccessful response"
            logger.warning(f"{candidate.candidate_id} ({candidate.vendor}) failed: {reason}")
            return AttemptResult(
                candidate, AttemptOutcome.FAILED, latency_ms, reply=reply, reason=reason
            )

        logger.info(
            f"{candidate.candidate_id} ({candidate.vendor}) succeeded in {latency_ms}ms"
        )
        return AttemptResult(candidate, AttemptOutcome.SUCCESS, latency_ms, reply=reply)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
