import sys
import json
from loguru import logger
from textrecon.core.config import RuleSet, settings
from textrecon.analytics.corruption import CorruptionAnalyzer
from textrecon.analytics.engine import ReviewEngine
from textrecon.ingestion.loader import ExportFormatError, ExportLoader
from textrecon.ingestion.transformer import ExportTransformer


def run_pipeline():
    logger.info("🚀 Starting export reconstruction...")

    # --- Step 1: Ingestion ---
    logger.info("Step 1: Loading raw export rows")
    try:
        loader = ExportLoader(settings.EXPORT_FILE_NAME)
        rows = loader.load_rows()

        if not rows:
            logger.error("No rows found. Exiting.")
            sys.exit(1)

    except (FileNotFoundError, ExportFormatError) as e:
        logger.error(f"❌ Ingestion Error: {e}")
        sys.exit(1)

    # --- Step 2: Corruption analysis (read-only) ---
    logger.info("Step 2: Analyzing row corruption")
    corruption = CorruptionAnalyzer(RuleSet.from_settings(settings)).analyze(rows)

    # --- Step 3: Reconstruction ---
    logger.info("Step 3: Reconstructing messages")
    transformer = ExportTransformer.from_settings(settings)
    result = transformer.process(rows)

    # --- Step 4: Saving (Parquet + JSON) ---
    settings.PROCESSED_DATA_DIR.mkdir(parents=True, exist_ok=True)

    df = loader.to_dataframe(result.messages)
    parquet_path = settings.PROCESSED_DATA_DIR / "messages.parquet"
    df.to_parquet(parquet_path)
    logger.info(f"✅ Saved {len(df)} messages to: {parquet_path}")

    review = ReviewEngine(
        result,
        confidence_threshold=settings.REVIEW_CONFIDENCE_THRESHOLD,
        tz=settings.TIMEZONE,
    ).run_review()

    # by_alias gives the camelCase keys the CRM imports
    payload = {
        "result": result.model_dump(mode="json", by_alias=True),
        "corruption": corruption.stats.model_dump(mode="json"),
        "review": review,
    }
    json_path = settings.PROCESSED_DATA_DIR / "processing_result.json"
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    logger.success(f"✅ Saved Human-Readable JSON: {json_path}")


if __name__ == "__main__":
    run_pipeline()
