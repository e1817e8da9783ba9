"""
FastAPI dependencies

Services are built once in create_app() and kept on app.state.
"""
from fastapi import Request

from tradelog.services.analytics_service import AnalyticsService
from tradelog.services.broker_sync import BrokerSyncService
from tradelog.services.csv_import import CsvImportService
from tradelog.services.ingestion import TradeIngestionService
from tradelog.services.tags import TagService


def get_ingestion(request: Request) -> TradeIngestionService:
    return request.app.state.ingestion


def get_csv_import(request: Request) -> CsvImportService:
    return request.app.state.csv_import


def get_analytics(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def get_broker_sync(request: Request) -> BrokerSyncService:
    return request.app.state.broker_sync


def get_tags(request: Request) -> TagService:
    return request.app.state.tags
