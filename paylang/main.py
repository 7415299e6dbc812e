from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from paylang.database import Base, engine
from paylang.errors import PaylangError
from paylang.observability import configure_logging, get_logger
from paylang.routes import admin_router, router

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="Paylang Payment Service")

app.include_router(router)
app.include_router(admin_router)

Base.metadata.create_all(bind=engine)


@app.exception_handler(PaylangError)
async def paylang_error_handler(request: Request, exc: PaylangError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("paylang.main:app", host="0.0.0.0", port=5000)
