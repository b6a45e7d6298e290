"""
Content analysis services composed on top of the routing engine.

Every caller-facing method here always returns a result: a failed route is
absorbed into a deterministic degraded value (original filename, default
folder plan, local OCR) instead of propagating to the caller. Only ``route``
itself hands back a failed ``ProviderResponse``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..llm.prompt_library import (
    DUPLICATE_SYSTEM_PROMPT,
    FOLDER_SYSTEM_PROMPT,
    IMAGE_ANALYSIS_SYSTEM_PROMPT,
    NAMING_SYSTEM_PROMPT,
    NamingInstructions,
    build_duplicate_prompt,
    build_folder_prompt,
    build_image_analysis_prompt,
    build_naming_prompt,
)
from ..llm.provider_registry import ProviderRegistry
from ..metrics.api_metrics import ApiMetrics
from ..metrics.metrics_recorder import MetricsRecorder
from ..metrics.metrics_store import SQLiteMetricsStore
from ..models.data_structures import (
    DuplicateReport,
    FileDescriptor,
    FolderPlan,
    OcrResult,
    ProviderRequest,
    ProviderResponse,
    RenameResult,
    file_stem,
)
from ..ocr.local_extractor import LocalOcrExtractor
from ..repair.output_repair import (
    DuplicateGroupRepair,
    FolderPlanRepair,
    RenameRepair,
    RepairContext,
    default_folder_plan,
    repair,
)
from ..routing.cancellation import CancellationToken
from ..routing.routing_engine import RoutingEngine
from ..tiers.model_catalog import list_models, list_ocr_providers
from ..tiers.tier_config import ProcessingStage
from ..utils.config_loader import RouterConfig

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = "fallback"
FALLBACK_CONFIDENCE = 0.3
FALLBACK_NAME_REASONING = "AI processing unavailable, using original filename"
DEFAULT_MAX_PARALLEL = 4


class AnalysisService:
    """
    File naming, OCR and organisation services with graceful degradation.

    Attributes:
        engine: Routing engine used for every vendor call.
        local_extractor: OCR floor used when no remote OCR succeeds.
        max_parallel: Bound on concurrent image pre-analysis calls.

    Example:
        >>> with AnalysisService.from_config(Config.load()) as service:
        ...     result = service.generate_suggested_name(text, "scan.pdf", "pdf")
    """

    def __init__(
        self,
        engine: RoutingEngine,
        local_extractor: Optional[LocalOcrExtractor] = None,
        max_parallel: int = DEFAULT_MAX_PARALLEL,
    ) -> None:
        if max_parallel < 1:
            raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")

        self.engine = engine
        self.local_extractor = local_extractor or LocalOcrExtractor()
        self.max_parallel = max_parallel
        self._rename = RenameRepair()
        self._folder_plan = FolderPlanRepair()
        self._duplicates = DuplicateGroupRepair()

    @classmethod
    def from_config(
        cls,
        config: RouterConfig,
        registry: Optional[ProviderRegistry] = None,
    ) -> "AnalysisService":
        """Wire registry, metrics store and engine from configuration."""
        store = None
        if config.metrics["backend"] == "sqlite":
            store = SQLiteMetricsStore(config.metrics["db_path"])
        engine = RoutingEngine.from_config(
            config, registry=registry, recorder=MetricsRecorder(store)
        )
        return cls(engine, max_parallel=config.analysis["max_parallel"])

    def __enter__(self) -> "AnalysisService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.engine.close()
        self.engine.registry.close()
        self.engine.recorder.close()

    # ========================================================================
    # Routing and OCR
    # ========================================================================

    def route(
        self,
        request: ProviderRequest,
        plan_identifier: Optional[str] = "free",
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProviderResponse:
        return self.engine.route(request, plan_identifier, cancel_token)

    def extract_text_from_image(
        self,
        image: bytes,
        method: str = "extract-title",
        plan_identifier: Optional[str] = "free",
        cancel_token: Optional[CancellationToken] = None,
    ) -> OcrResult:
        """
        Extract text through the plan's OCR chain, falling back to local OCR.

        Args:
            image: Raw image bytes.
            method: OCR method (extract-title, extract-text, smart-naming, ...).
            plan_identifier: Plan name or billing plan type.
            cancel_token: Optional cancellation token.

        Returns:
            OcrResult from the first successful OCR vendor, or from the local
            extractor when none succeeded or none is configured.
        """
        response = self.engine.route_ocr(image, method, plan_identifier, cancel_token)
        if response.success:
            return OcrResult(
                extracted_text=response.content,
                confidence=response.confidence if response.confidence is not None else 0.0,
                method=method,
                provider=response.model,
            )

        logger.info(f"Falling back to local OCR: {response.error_message}")
        return self.local_extractor.extract(image, method)

    # ========================================================================
    # Naming
    # ========================================================================

    def generate_suggested_name(
        self,
        content: str,
        file_name: str,
        file_type: str,
        plan_identifier: Optional[str] = "free",
        custom_instructions: Optional[Union[NamingInstructions, Mapping[str, Any]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RenameResult:
        """
        Suggest a filename for a file's content.

        Runs at stage b. When every model fails the original file stem is
        returned with provider "fallback" and confidence 0.3.
        """
        instructions = custom_instructions
        if instructions is not None and not isinstance(instructions, NamingInstructions):
            instructions = NamingInstructions.from_dict(instructions)

        request = ProviderRequest.text(
            build_naming_prompt(content, file_name, file_type, instructions),
            system_prompt=NAMING_SYSTEM_PROMPT,
            stage=ProcessingStage.B,
        )
        response = self.engine.route(request, plan_identifier, cancel_token)

        if not response.success:
            logger.warning(f"Name suggestion for {file_name} degraded: {response.error_message}")
            return RenameResult(
                suggested_name=file_stem(file_name),
                confidence=FALLBACK_CONFIDENCE,
                reasoning=FALLBACK_NAME_REASONING,
                provider=FALLBACK_PROVIDER,
            )

        return repair(
            response.content,
            self._rename,
            RepairContext(
                file_name=file_name,
                provider=response.provider,
                max_length=instructions.max_length if instructions else None,
            ),
        )

    def suggest_name_from_image(
        self,
        image: bytes,
        file_name: str,
        plan_identifier: Optional[str] = "free",
        custom_instructions: Optional[Union[NamingInstructions, Mapping[str, Any]]] = None,
        method: str = "smart-naming",
    ) -> RenameResult:
        """OCR an image, then suggest a name from the extracted text."""
        ocr = self.extract_text_from_image(image, method, plan_identifier)
        return self.generate_suggested_name(
            ocr.extracted_text,
            file_name,
            "image",
            plan_identifier,
            custom_instructions,
        )

    def suggest_names_batch(
        self,
        files: Sequence[FileDescriptor],
        plan_identifier: Optional[str] = "free",
        custom_instructions: Optional[Union[NamingInstructions, Mapping[str, Any]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[RenameResult]:
        """
        Suggest names for several files, one file at a time.

        Files are routed sequentially so a rate-limited vendor sees at most one
        request from a batch at any moment.
        """
        results = []
        for index, descriptor in enumerate(files, start=1):
            logger.debug(f"Naming file {index}/{len(files)}: {descriptor.name}")
            results.append(
                self.generate_suggested_name(
                    descriptor.content or "",
                    descriptor.name,
                    descriptor.type,
                    plan_identifier,
                    custom_instructions,
                    cancel_token,
                )
            )
        return results

    # ========================================================================
    # Organisation
    # ========================================================================

    def analyze_folder_structure(
        self,
        files: Sequence[FileDescriptor],
        plan_identifier: Optional[str] = "free",
        user_rules: Optional[str] = None,
    ) -> FolderPlan:
        """Propose a folder plan at stage a; default single-folder plan on failure."""
        tier = self.engine.tiers.resolve(plan_identifier)
        request = ProviderRequest.text(
            build_folder_prompt(files, tier.plan_tier, user_rules),
            system_prompt=FOLDER_SYSTEM_PROMPT,
            stage=ProcessingStage.A,
        )
        response = self.engine.route(request, plan_identifier)

        if not response.success:
            logger.warning(f"Folder analysis degraded: {response.error_message}")
            return default_folder_plan(
                files,
                reasoning="AI processing unavailable, using default folder plan",
                confidence=FALLBACK_CONFIDENCE,
            )

        return repair(
            response.content,
            self._folder_plan,
            RepairContext(files=files, provider=response.provider),
        )

    def detect_duplicates(
        self,
        files: Sequence[FileDescriptor],
        plan_identifier: Optional[str] = "free",
    ) -> DuplicateReport:
        """Group likely duplicates; falls back to name similarity on failure."""
        request = ProviderRequest.text(
            build_duplicate_prompt(files),
            system_prompt=DUPLICATE_SYSTEM_PROMPT,
        )
        response = self.engine.route(request, plan_identifier)
        context = RepairContext(
            files=files,
            provider=response.provider if response.success else FALLBACK_PROVIDER,
        )

        if not response.success:
            logger.warning(f"Duplicate detection degraded: {response.error_message}")
            return self._duplicates.heuristic("", context)

        return repair(response.content, self._duplicates, context)

    def analyze_images(
        self,
        images: Sequence[bytes],
        plan_identifier: Optional[str] = "free",
        hint: Optional[str] = None,
    ) -> List[ProviderResponse]:
        """
        Describe several images with bounded parallelism.

        Each image is routed independently; the result list follows the input
        order regardless of completion order.
        """
        if not images:
            return []

        prompt = build_image_analysis_prompt(hint)
        requests = [
            ProviderRequest.vision(
                prompt,
                image,
                system_prompt=IMAGE_ANALYSIS_SYSTEM_PROMPT,
                stage=ProcessingStage.A,
            )
            for image in images
        ]

        workers = min(self.max_parallel, len(requests))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="image-analysis") as executor:
            futures = [
                executor.submit(self.engine.route, request, plan_identifier)
                for request in requests
            ]
            return [future.result() for future in futures]

    # ========================================================================
    # Catalog, status and metrics
    # ========================================================================

    def get_provider_status(self) -> Dict[str, Dict[str, Optional[object]]]:
        return self.engine.registry.get_provider_status()

    def get_available_models(self) -> List[Dict[str, object]]:
        return list_models()

    def get_ocr_providers(self) -> List[Dict[str, object]]:
        return list_ocr_providers()

    def list_metrics(self) -> List[ApiMetrics]:
        return self.engine.recorder.list_metrics()

    def reset_metrics(self, provider_name: str) -> bool:
        return self.engine.recorder.reset_metrics(provider_name)
