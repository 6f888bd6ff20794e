class CurrencyException(Exception):
    pass


class InvalidCurrencyError(CurrencyException):
    pass


class ProviderError(CurrencyException):
    pass


class NormalizationError(CurrencyException):
    pass


class ConversionInputError(CurrencyException):
    pass


class CacheError(CurrencyException):
    pass
