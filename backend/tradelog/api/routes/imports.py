from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from tradelog.api.deps import get_csv_import, get_ingestion
from tradelog.core.exceptions import NotFoundError, ValidationError
from tradelog.services.csv_import import CSV_TEMPLATE, CsvImportService
from tradelog.services.ingestion import TradeIngestionService

router = APIRouter()


@router.post("/csv")
async def import_csv(request: Request, csv_import: CsvImportService = Depends(get_csv_import)):
    """
    Import trades from a CSV body.
    
    Rows already imported are skipped; invalid rows are reported by line
    and the rest of the file is still imported.
    """
    body = await request.body()
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV body must be UTF-8 text") from e
    result = await csv_import.import_csv(text)
    return result.to_response()


@router.get("/template", response_class=PlainTextResponse)
async def csv_template():
    return PlainTextResponse(
        CSV_TEMPLATE,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=trades_template.csv"},
    )


@router.delete("/records/{external_id}")
async def forget_import(external_id: str, ingestion: TradeIngestionService = Depends(get_ingestion)):
    """Allow an external id to be imported again"""
    if not await ingestion.forget_import(external_id):
        raise NotFoundError("Import record", external_id)
    return {"message": f"Import record {external_id} removed"}
