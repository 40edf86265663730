import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import auth
import models
from config import CORS_ORIGINS, LOG_LEVEL, PORT
from database import engine
from routers import all_routers
from store import StoreError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finance-api")


models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Financial Tracker API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Authorization"],
)


# ----------------------------
# ERROR BODIES: {"error": "..."}
# ----------------------------

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path"))
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(status_code=400, content={"error": "; ".join(problems)})


@app.exception_handler(StoreError)
async def store_error(request: Request, exc: StoreError):
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/health")
def health():
    return {"status": "ok", "message": "Financial Tracker API is running"}


app.include_router(auth.router)
for router in all_routers:
    app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    logger.info("starting on port %s", PORT)
    uvicorn.run(app, host="0.0.0.0", port=PORT)
