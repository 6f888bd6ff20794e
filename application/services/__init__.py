from .conversion_service import ConversionService
from .holding_service import HoldingValuationService
from .rate_service import RateService

__all__ = ['ConversionService', 'HoldingValuationService', 'RateService']
