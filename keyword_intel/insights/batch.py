"""
Batch Runner — main entry point for keyword intelligence.

Executes the 4-stage flow against ONE pinned snapshot:
    1. Load snapshot (SnapshotUnavailable propagates to the caller)
    2. Per keyword: validate input → normalize → classify → metrics lookup → decide
    3. Leakage suggestions over the whole batch
    4. BatchResult (conforms to BATCH_OUTPUT_SCHEMA)

Per-keyword failures never abort the batch: malformed input becomes a
GENERIC keyword with NO_ACTION, and a failing metrics lookup is treated as
missing metrics.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from keyword_intel.classification.classifier import classify_keyword, invalid_keyword
from keyword_intel.config import settings
from keyword_intel.dictionary.repository import SnapshotRepository
from keyword_intel.insights.actions import InsightsConfig, decide
from keyword_intel.insights.leakage import suggest_leakage
from keyword_intel.insights.metrics import (
    record_classification,
    record_decision,
    record_safeguard,
    timed_stage,
)
from keyword_intel.models.engine_io import (
    ActionDecision,
    KeywordInput,
    KeywordMetrics,
    LeakageSuggestion,
)
from keyword_intel.models.engine_version import EngineVersion
from keyword_intel.models.keyword import ProcessedKeyword
from keyword_intel.models.snapshot import DictionarySnapshot

logger = logging.getLogger(__name__)

MetricsLookup = Callable[[str], Optional[KeywordMetrics]]


@dataclass
class BatchResult:
    """Everything one batch produced, pinned to one EngineVersion."""

    engine_version: EngineVersion
    processed: List[ProcessedKeyword] = field(default_factory=list)
    decisions: List[ActionDecision] = field(default_factory=list)
    suggestions: List[LeakageSuggestion] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def decision_for(self, keyword_id: str) -> Optional[ActionDecision]:
        return next((d for d in self.decisions if d.keyword_id == keyword_id), None)

    def to_dict(self) -> dict:
        return {
            "engine_version": self.engine_version.to_dict(),
            "processed": [pk.to_dict() for pk in self.processed],
            "decisions": [d.model_dump(mode="json") for d in self.decisions],
            "suggestions": [s.model_dump(mode="json") for s in self.suggestions],
            "warnings": list(self.warnings),
        }


def _coerce_input(raw: Union[KeywordInput, dict], index: int) -> Tuple[Optional[KeywordInput], str, str]:
    """Return (KeywordInput | None, keyword_id, error)."""
    if isinstance(raw, KeywordInput):
        return raw, raw.keyword_id, ""
    fallback_id = f"row-{index}"
    if isinstance(raw, dict):
        fallback_id = str(raw.get("keyword_id") or fallback_id)
    try:
        return KeywordInput.model_validate(raw), fallback_id, ""
    except ValidationError as exc:
        reasons = "; ".join(f"{'.'.join(map(str, e['loc'])) or 'input'}: {e['msg']}" for e in exc.errors())
        return None, fallback_id, reasons


def _safe_lookup(lookup: MetricsLookup, keyword_id: str, warnings: List[str]) -> Optional[KeywordMetrics]:
    try:
        return lookup(keyword_id)
    except Exception as e:
        logger.error("Metrics lookup failed for %s: %s", keyword_id, e)
        warnings.append(f"metrics lookup failed for {keyword_id}: treated as missing")
        return None


def _process_one(
    index: int,
    raw: Union[KeywordInput, dict],
    snapshot: DictionarySnapshot,
    metrics_lookup: MetricsLookup,
    config: InsightsConfig,
) -> Tuple[ProcessedKeyword, Optional[KeywordMetrics], ActionDecision, List[str]]:
    warnings: List[str] = []
    item, keyword_id, error = _coerce_input(raw, index)

    if item is None:
        logger.warning("Keyword %s rejected: %s", keyword_id, error)
        warnings.append(f"invalid keyword {keyword_id}: {error}")
        original = raw.get("text") if isinstance(raw, dict) else None
        pk = invalid_keyword(
            keyword_id,
            error,
            snapshot,
            original=original if isinstance(original, str) else "",
        )
        # No metrics, no rules: the decision falls through to NO_ACTION
        return pk, None, decide(pk, None, (), config), warnings

    pk = classify_keyword(item, snapshot)
    metrics = _safe_lookup(metrics_lookup, keyword_id, warnings)
    decision = decide(pk, metrics, snapshot.rules, config)
    return pk, metrics, decision, warnings


def run_batch(
    keywords: Iterable[Union[KeywordInput, dict]],
    snapshot_version: Optional[int],
    metrics_lookup: MetricsLookup,
    repository: SnapshotRepository,
    *,
    config: Optional[InsightsConfig] = None,
    existing_suggestions: Iterable[LeakageSuggestion] = (),
    max_workers: Optional[int] = None,
) -> BatchResult:
    """
    Classify, decide and collect leakage for a batch of keywords.

    Args:
        keywords: KeywordInput objects or raw dicts (validated here).
        snapshot_version: Version to pin; None pins the latest.
        metrics_lookup: keyword_id → KeywordMetrics or None.
        repository: Snapshot source.
        config: Thresholds; defaults come from settings.
        existing_suggestions: Current leakage queue to merge into.
        max_workers: Thread fan-out for per-keyword work; output order always
            follows input order. Defaults to settings.BATCH_MAX_WORKERS.

    Returns:
        BatchResult.

    Raises:
        SnapshotUnavailable: If the snapshot cannot be loaded.
    """
    t0 = time.perf_counter()
    config = config or InsightsConfig()
    workers = max_workers if max_workers is not None else settings.BATCH_MAX_WORKERS

    # ------------------------------------------------------------------
    # 1. Pin snapshot
    # ------------------------------------------------------------------
    with timed_stage("load_snapshot"):
        snapshot = repository.load_snapshot(snapshot_version)
    engine_version = EngineVersion(dictionary_version=snapshot.version_id)
    logger.info("Batch pinned to %r (%r)", snapshot, engine_version)

    # ------------------------------------------------------------------
    # 2. Classify + decide
    # ------------------------------------------------------------------
    rows = list(keywords)

    def _work(args):
        index, raw = args
        return _process_one(index, raw, snapshot, metrics_lookup, config)

    with timed_stage("classify_decide"):
        if workers > 1 and len(rows) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(_work, enumerate(rows)))
        else:
            outcomes = [_work(args) for args in enumerate(rows)]

    result = BatchResult(engine_version=engine_version)
    metrics_by_id: Dict[str, KeywordMetrics] = {}
    for pk, metrics, decision, warnings in outcomes:
        result.processed.append(pk)
        result.decisions.append(decision)
        result.warnings.extend(warnings)
        if metrics is not None:
            metrics_by_id[pk.keyword_id] = metrics

        record_classification(pk.final_category)
        record_decision(decision.action)
        if decision.safeguard_triggered:
            record_safeguard(pk.final_category)

    # ------------------------------------------------------------------
    # 3. Leakage
    # ------------------------------------------------------------------
    with timed_stage("leakage"):
        result.suggestions = suggest_leakage(
            result.processed,
            metrics_by_id,
            existing_suggestions,
            min_clicks=config.leakage_min_clicks,
        )

    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info(
        "Batch done: %d keywords, %d suggestions, %d warnings in %.1fms",
        len(result.processed), len(result.suggestions), len(result.warnings), elapsed_ms,
    )
    return result
