import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mortar_stager import __version__
from mortar_stager.web.routers import segment

logger = logging.getLogger("web")

app = FastAPI(title="Mortar Stager API", version=__version__)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled server error")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(segment.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
