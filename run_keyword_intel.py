"""
Run a keyword intelligence batch from a JSON file.

Usage:
    python run_keyword_intel.py INPUT.json [OUTPUT.json]

Input:
    {
      "snapshot_version": null,
      "keywords": [{"keyword_id": "k1", "text": "free forex signals", "campaign": "..."}],
      "metrics": {"k1": {"impressions": 900, "clicks": 40, "cost": 120.0, "conversions": 0}},
      "existing_suggestions": []
    }

Produces OUTPUT.json (default: INPUT_result.json) with the batch result
(BATCH_OUTPUT_SCHEMA), category KPIs, opportunity scores, ad-group stats,
move recommendations, proposed ad groups and the brief.
"""
import json
import logging
import sys
from pathlib import Path

from keyword_intel.config.settings import LOG_LEVEL

# ---------------------------------------------------------------------------
# Setup logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("run_keyword_intel")

from keyword_intel.dictionary.repository import build_default_repository  # noqa: E402
from keyword_intel.insights.batch import run_batch  # noqa: E402
from keyword_intel.insights.report import (  # noqa: E402
    build_brief,
    compute_category_kpis,
    compute_opportunity_scores,
)
from keyword_intel.insights.structure import (  # noqa: E402
    compute_ad_group_stats,
    generate_move_recommendations,
    propose_new_ad_groups,
)
from keyword_intel.models.engine_io import KeywordMetrics, LeakageSuggestion  # noqa: E402


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__)
        return 2

    input_file = Path(argv[0])
    output_file = Path(argv[1]) if len(argv) > 1 else input_file.with_name(f"{input_file.stem}_result.json")

    # ------------------------------------------------------------------
    # Load inputs
    # ------------------------------------------------------------------
    logger.info("Loading %s", input_file)
    with open(input_file, encoding="utf-8") as f:
        payload: dict = json.load(f)

    keywords = payload.get("keywords", [])
    metrics = {
        kid: KeywordMetrics.model_validate(m)
        for kid, m in payload.get("metrics", {}).items()
    }
    existing = [
        LeakageSuggestion.model_validate(s)
        for s in payload.get("existing_suggestions", [])
    ]

    logger.info("keywords          : %d", len(keywords))
    logger.info("metrics           : %d", len(metrics))
    logger.info("existing queue    : %d", len(existing))

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    repository = build_default_repository()
    result = run_batch(
        keywords,
        payload.get("snapshot_version"),
        metrics.get,
        repository,
        existing_suggestions=existing,
    )

    output = result.to_dict()
    output["category_kpis"] = compute_category_kpis(result.processed, metrics)
    output["opportunity_scores"] = compute_opportunity_scores(result.processed, metrics)
    ad_groups = compute_ad_group_stats(result.processed, metrics)
    moves = generate_move_recommendations(result.processed, metrics, result.decisions)
    proposals = propose_new_ad_groups(result.processed, metrics)
    output["ad_group_stats"] = [s.to_dict() for s in ad_groups]
    output["move_recommendations"] = [mv.to_dict() for mv in moves]
    output["proposed_ad_groups"] = [p.to_dict() for p in proposals]
    output["brief"] = build_brief(
        result.processed, metrics, result.decisions, result.suggestions,
        moves=moves, proposals=proposals,
    )

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(output, f, ensure_ascii=False, indent=2)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------
    brief = output["brief"]
    print("\n" + "=" * 60)
    print("KEYWORD INTELLIGENCE — SUMMARY")
    print("=" * 60)
    print(f"  engine            : {result.engine_version!r}")
    print(f"  keywords          : {brief['total_keywords']}")
    print(f"  total spend       : {brief['total_spend']:.2f}")
    print(f"  safeguarded       : {brief['safeguard_count']}")
    print(f"  wasted spend      : {brief['estimated_wasted_spend']:.2f}")
    print(f"  pending negatives : {brief['pending_suggestions']}")
    worst = brief["worst_cpa_category"]
    if worst:
        cpa = "no conversions" if worst["cpa"] is None else f"{worst['cpa']:.2f}"
        print(f"  worst CPA         : {worst['category']} ({cpa})")
    leak = brief["largest_leakage_source"]
    leak_text = f"{leak['category']} ({leak['cost']:.2f})" if leak else "None identified"
    print(f"  leakage source    : {leak_text}")
    print(f"  moves / new groups: {brief['move_recommendations']} / {brief['proposed_ad_groups']}")
    print("  actions:")
    for action, count in brief["action_counts"].items():
        if count:
            print(f"    {action:<22} {count}")
    if result.warnings:
        print(f"  warnings          : {len(result.warnings)}")
    print("=" * 60)
    print(f"\nOutput saved → {output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
