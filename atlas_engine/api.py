"""
Tool Execution API (FastAPI)

Endpoints:
- GET  /v1/tools
- GET  /v1/tools/{slug}
- POST /v1/tools/{slug}/execute
- GET  /v1/status

Maps engine outcomes to HTTP statuses:
- 200 OK: clarify | final
- 400 Bad Request: request validation error
- 404 Not Found: unknown tool
- 500 Internal Server Error: invalid config, unrepairable JSON, generation service failure
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn

from .core.errors import EngineError, ValidationError
from .core.settings import EngineSettings
from .main import ToolEngineAPI

logger = logging.getLogger(__name__)


def error_response(e: Exception) -> JSONResponse:
    if isinstance(e, EngineError):
        if e.status_code >= 500:
            logger.error(f"{e.kind}: {e}")
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.exception("Unhandled error while serving request")
    return JSONResponse(status_code=500, content={"error": "Server error", "details": str(e)})


def create_app(engine_api: Optional[ToolEngineAPI] = None) -> FastAPI:
    app = FastAPI(title="Atlas Tool Execution API", version="0.1.0")
    # Built lazily so importing the module needs no environment.
    state: Dict[str, ToolEngineAPI] = {}
    if engine_api is not None:
        state["api"] = engine_api

    def get_api() -> ToolEngineAPI:
        if "api" not in state:
            state["api"] = ToolEngineAPI()
        return state["api"]

    # Undecodable bodies fail before the route runs; report them like any other bad request.
    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        details = "; ".join(str(err.get("msg", "")) for err in exc.errors()) or None
        return error_response(ValidationError("Request body must be a JSON object", details=details))

    @app.get("/v1/tools")
    def list_tools():
        try:
            return {"tools": get_api().list_tools()}
        except Exception as e:
            return error_response(e)

    @app.get("/v1/tools/{slug}")
    def get_tool(slug: str):
        try:
            return get_api().get_tool(slug)
        except Exception as e:
            return error_response(e)

    @app.post("/v1/tools/{slug}/execute")
    def execute_tool(slug: str, body: Any = Body(default=None)):
        try:
            return get_api().execute(slug, body)
        except Exception as e:
            return error_response(e)

    @app.get("/v1/status")
    def status():
        try:
            return get_api().status()
        except Exception as e:
            return error_response(e)

    return app


app = create_app()


if __name__ == "__main__":
    settings = EngineSettings.from_env()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(ToolEngineAPI(settings)), host="0.0.0.0", port=8000, reload=False)
