from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging

from safeguard.config import Settings, load_settings
from safeguard.models import AnalysisContent
from safeguard.moderation_engine import ModerationEngine

logger = logging.getLogger(__name__)


class ModerationRequest(BaseModel):
    """Request body for POST /api/moderate."""
    text: Optional[str] = None
    image: Optional[str] = None  # data URL


def get_engine(request: Request) -> ModerationEngine:
    """Get or initialize the ModerationEngine with the configured Gemini key."""
    app_state = request.app.state
    if app_state.engine is None:
        settings: Settings = app_state.settings
        if not settings.gemini_api_key:
            raise HTTPException(
                status_code=500,
                detail="GEMINI_API_KEY environment variable not set"
            )
        app_state.engine = ModerationEngine(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model
        )
        logger.info("ModerationEngine initialized")
    return app_state.engine


def create_app(settings: Settings) -> FastAPI:
    """
    Build the moderation proxy.

    The Gemini key stays in ``settings`` on the server; responses never include it.

    Args:
        settings: Runtime configuration injected at startup
    """
    app = FastAPI(
        title="SafeGuard AI Moderation Proxy",
        description="Forwards text and images to a Gemini moderation model and relays the verdict",
        version="2.4.0"
    )
    app.state.settings = settings
    app.state.engine = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Every error response carries {"error": message}
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.status_code} {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        logger.warning(f"Invalid moderation request: {message}")
        return JSONResponse(status_code=422, content={"error": f"Invalid request body: {message}"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "model": settings.gemini_model
        }

    @app.post("/api/moderate")
    async def moderate(payload: ModerationRequest, engine: ModerationEngine = Depends(get_engine)):
        """
        Moderate text and/or an image.

        Args:
            payload: {"text"?: str, "image"?: data URL}

        Returns:
            The model's AnalysisResult JSON, unchanged:
            {
                "overallScore": float,
                "metrics": [{"category": str, "score": float}],
                "reasoning": str,
                "flaggedPhrases": List[str],
                "recommendation": "ALLOW" | "FLAG" | "BLOCK",
                "detectedLanguage": str
            }

        Raises:
            400: If neither text nor image is provided
            500: If the key is missing or the model call or its output fails
        """
        content = AnalysisContent(text=payload.text, image=payload.image)
        if content.is_empty():
            raise HTTPException(status_code=400, detail="No content provided for moderation.")

        try:
            result = await engine.moderate(content)
        except Exception as e:
            logger.error(f"Moderation request failed: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": str(e) or "Internal server error"}
            )

        if isinstance(result, dict):
            logger.info(f"Moderation complete: {result.get('recommendation')} "
                        f"(overall score {result.get('overallScore')})")
        return JSONResponse(status_code=200, content=result)

    return app


settings = load_settings()
logging.basicConfig(level=settings.log_level)

app = create_app(settings)


def run():
    """Serve the proxy with uvicorn."""
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
