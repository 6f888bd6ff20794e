import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.currency import ConversionInputError, InvalidCurrencyError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		return JSONResponse(status_code=400, content={'success': False, 'error': str(exc)})

	@app.exception_handler(ConversionInputError)
	async def conversion_input_handler(request: Request, exc: ConversionInputError):
		return JSONResponse(status_code=400, content={'success': False, 'error': str(exc)})

	@app.exception_handler(Exception)
	async def global_exception_handler(request: Request, exc: Exception):
		logger.error(f'Unhandled exception: {exc}', exc_info=True)
		return JSONResponse(
			status_code=500, content={'success': False, 'error': 'Internal server error'}
		)
