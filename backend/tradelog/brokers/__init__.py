from tradelog.brokers.base import BaseBroker
from tradelog.brokers.tradovate import TradovateClient

__all__ = ["BaseBroker", "TradovateClient"]
