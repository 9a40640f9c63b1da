import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Union
from loguru import logger
from textrecon.core.config import settings
from textrecon.ingestion.schema import ProcessedMessage

EXCEL_EXTS = {".xlsx", ".xls"}
CSV_EXTS = {".csv"}


class ExportFormatError(ValueError):
    pass


class ExportLoader:
    def __init__(self, file_path: Union[str, Path]):
        file_path = Path(file_path)
        # bare file names are looked up in data/raw
        self.file_path = file_path if file_path.is_absolute() else settings.RAW_DATA_DIR / file_path

    def _read_frame(self) -> pd.DataFrame:
        ext = self.file_path.suffix.lower()
        if ext in CSV_EXTS:
            return pd.read_csv(self.file_path, dtype=str, keep_default_na=False)
        if ext in EXCEL_EXTS:
            # first sheet only, every cell as text
            return pd.read_excel(self.file_path, sheet_name=0, dtype=str).fillna("")
        raise ExportFormatError(f"Unsupported export format: {ext or self.file_path.name}")

    def load_rows(self) -> List[Dict[str, Any]]:
        """
        Reads the export into header-keyed rows. Column names are kept as-is;
        the pipeline only looks at cell values.
        """
        logger.info(f"Starting ingestion from {self.file_path}")

        if not self.file_path.exists():
            logger.error(f"File not found: {self.file_path}")
            raise FileNotFoundError(f"Please put {self.file_path.name} in {self.file_path.parent}")

        df = self._read_frame()
        df.columns = [str(c) for c in df.columns]

        rows = []
        for record in df.to_dict(orient="records"):
            # Skip rows where every cell is empty
            if any(str(v).strip() for v in record.values()):
                rows.append(record)

        skipped = len(df) - len(rows)
        if skipped:
            logger.info(f"Dropped {skipped} empty rows")
        logger.success(f"Loaded {len(rows)} raw rows from {self.file_path.name}")
        return rows

    @staticmethod
    def to_dataframe(messages: List[ProcessedMessage]) -> pd.DataFrame:
        """Converts processed messages to a flat DataFrame for analytics."""
        data = []
        for msg in messages:
            record = msg.model_dump(exclude={"metadata"})
            record.update(msg.metadata.model_dump())
            data.append(record)

        columns = [
            "id", "role", "content", "timestamp", "type",
            "original_sender", "original_type", "parse_success",
            "confidence", "reconstructed", "original_row",
        ]
        return pd.DataFrame(data, columns=columns)
