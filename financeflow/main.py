import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import setup_logging, get_logger, REQUEST_LOGGER_NAME
from .routers.accounts import router as accounts_router
from .routers.transactions import router as transactions_router
from .routers.transfers import router as transfers_router
from .routers.categories import router as categories_router
from .routers.budgets import router as budgets_router
from .routers.savings_goals import router as savings_goals_router
from .routers.analytics import router as analytics_router
from .routers.setup import router as setup_router

setup_logging()
logger = get_logger(__name__)
request_logger = get_logger(REQUEST_LOGGER_NAME)

app = FastAPI(title="FinanceFlow API")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    request_logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(transfers_router)
app.include_router(categories_router)
app.include_router(budgets_router)
app.include_router(savings_goals_router)
app.include_router(analytics_router)
app.include_router(setup_router)


@app.get("/")
def read_root():
    return "Server is running."


@app.get("/health")
def health_check():
    return {"status": "ok"}
