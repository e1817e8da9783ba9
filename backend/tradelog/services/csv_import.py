"""
CSV Trade Import

Reads journal CSV exports into numbered rows and feeds them through the
ingestion pipeline. Header names are matched case-insensitively.
"""
import csv
import io
from typing import Dict, Iterator, List, Tuple

from loguru import logger

from tradelog.core.exceptions import ValidationError
from tradelog.schemas.trade import ImportResult, ImportSource
from tradelog.services.ingestion import TradeIngestionService

REQUIRED_COLUMNS = ("symbol", "type", "entry_date", "entry_price", "quantity")
OPTIONAL_COLUMNS = (
    "exit_price", "exit_date", "fees", "stop_loss", "take_profit", "strategy", "notes",
)

CSV_TEMPLATE = (
    "symbol,type,entry_date,entry_price,exit_price,quantity,fees,stop_loss,take_profit,exit_date,strategy,notes\n"
    "AAPL,LONG,2025-01-15,150.00,155.00,100,2.50,145.00,160.00,2025-01-16,Breakout,Sample trade\n"
    "TSLA,SHORT,2025-01-17,250.00,,50,1.50,260.00,240.00,,Reversal,Open position\n"
)


def read_csv_rows(text: str) -> Iterator[Tuple[int, Dict[str, str]]]:
    """
    Yield (line_number, row) pairs with lower-cased header keys.
    
    Raises:
        ValidationError: the file is empty or a required column is missing.
            This rejects the whole batch before any row is imported.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError("CSV file is empty")
    
    headers = [name.strip().lower() for name in reader.fieldnames]
    missing = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing:
        raise ValidationError(
            f"Missing required columns: {', '.join(missing)}. "
            f"Required: {', '.join(REQUIRED_COLUMNS)}"
        )
    ignored = [name for name in headers if name not in REQUIRED_COLUMNS + OPTIONAL_COLUMNS]
    if ignored:
        logger.debug(f"Ignoring unknown CSV columns: {', '.join(ignored)}")
    reader.fieldnames = headers
    
    for row in reader:
        values = {
            key: (value.strip() if isinstance(value, str) else value)
            for key, value in row.items()
            if key is not None
        }
        if not any(values.values()):
            continue
        yield reader.line_num, values


class CsvImportService:
    """Imports CSV text through the ingestion pipeline with CSV dedup keys."""
    
    def __init__(self, ingestion: TradeIngestionService):
        self.ingestion = ingestion
    
    async def import_csv(self, text: str) -> ImportResult:
        rows: List[Tuple[int, Dict[str, str]]] = list(read_csv_rows(text))
        logger.info(f"Importing {len(rows)} CSV rows")
        return await self.ingestion.import_rows(rows, ImportSource.CSV)
