from .base import ExchangeRateProvider
from .finnhub import FinnhubProvider
from .sheet import SheetProvider

__all__ = ['ExchangeRateProvider', 'FinnhubProvider', 'SheetProvider']
