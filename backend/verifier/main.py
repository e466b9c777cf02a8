from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .errors import GenerationFailure, InvalidRequest
from .pipeline import FactChecker
from .schema import FactCheckRequest, FactCheckResponse


logger = logging.getLogger(__name__)


def get_fact_checker(request: Request) -> FactChecker:
    return request.app.state.fact_checker


def create_app(settings: Optional[Settings] = None, fact_checker: Optional[FactChecker] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Collaborators and caches are built once per process.
        if getattr(app.state, "fact_checker", None) is None:
            app.state.fact_checker = FactChecker.from_settings(settings)
            logger.info(f"Fact checker ready (provider={settings.llm_provider}, mock_mode={settings.mock_mode})")
        yield

    app = FastAPI(title="Fact-Check Verifier API", lifespan=lifespan)
    app.state.fact_checker = fact_checker

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidRequest)
    async def invalid_request_handler(request: Request, exc: InvalidRequest):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Bad Request"})

    @app.exception_handler(GenerationFailure)
    async def generation_failure_handler(request: Request, exc: GenerationFailure):
        logger.error(f"Generation failure: {exc}")
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ---------- FACT-CHECK ENDPOINT ----------
    @app.post("/api/fact-check", response_model=FactCheckResponse, response_model_by_alias=True)
    async def fact_check(req: FactCheckRequest, checker: FactChecker = Depends(get_fact_checker)):
        return await checker.check(req)

    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run("verifier.main:app", host="0.0.0.0", port=4000)
