from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import redis
from dotenv import load_dotenv
from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse

from skailink.amadeus.client import AmadeusClient
from skailink.config import settings
from skailink.errors import NotFoundError, ValidationError, VendorError
from skailink.history.redis_store import SearchHistoryStore
from skailink.infrastructure.resilience import HealthChecker, RetryPolicy
from skailink.obs.logger import log_event
from skailink.obs.metrics import get_metrics_snapshot
from skailink.obs.middleware import ObservabilityMiddleware
from skailink.search.orchestrator import FlightSearchService

load_dotenv()

VERSION = "1.0.0"


def build_service() -> FlightSearchService:
    return FlightSearchService(
        client=AmadeusClient.from_settings(),
        retry_policy=RetryPolicy.from_settings(settings),
        history=SearchHistoryStore(),
        affiliate_id=settings.AFFILIATE_ID or None,
        max_results=settings.AMADEUS_MAX_RESULTS,
        tz=settings.APP_TZ,
    )


def get_service(request: Request) -> FlightSearchService:
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        service = build_service()
        request.app.state.search_service = service
    return service


def _error(message: str, status_code: int, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status_code)


def create_app(service: Optional[FlightSearchService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_event("startup", version=VERSION, env=settings.APP_ENV,
                  amadeus_configured=settings.amadeus_configured)
        if getattr(app.state, "search_service", None) is None:
            app.state.search_service = build_service()
        yield
        await app.state.search_service.client.aclose()
        log_event("shutdown")

    app = FastAPI(title="Skailink Flight Search", version=VERSION, lifespan=lifespan)
    app.state.search_service = service

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(str(exc), 400, errors=exc.errors)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(str(exc), 404)

    @app.post("/api/flights/search")
    async def search_flights(request: Request, x_user_id: Optional[str] = Header(None)):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError(["Request body must be valid JSON"])
        try:
            result = await get_service(request).search(payload, user_id=x_user_id)
        except ValidationError:
            raise
        except Exception as e:
            log_event("flight_search_error", level="ERROR", error=str(e), error_type=type(e).__name__)
            return _error("Failed to search flights. Please try again.", 500)
        return result.to_json_dict()

    @app.post("/api/flights/pricing")
    async def confirm_pricing(request: Request):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError(["Request body must be valid JSON"])
        offer = payload.get("offer") if isinstance(payload, dict) else None
        try:
            priced = await get_service(request).confirm_price(offer)
        except ValidationError:
            raise
        except VendorError as e:
            log_event("pricing_error", level="ERROR", **e.to_dict())
            return _error("Failed to confirm flight price", 500, error=e.to_dict())
        except Exception as e:
            log_event("pricing_error", level="ERROR", error=str(e))
            return _error("Failed to confirm flight price", 500)
        return {"success": True, "data": priced.get("data", priced)}

    @app.get("/api/airports/search")
    async def search_airports(request: Request, city: Optional[str] = None):
        try:
            result = await get_service(request).search_airports(city)
        except ValidationError:
            raise
        except Exception as e:
            log_event("airport_search_error", level="ERROR", error=str(e))
            return _error("Airport search failed", 500)
        return result.to_json_dict()

    @app.get("/api/airports/{code}")
    async def get_airport(request: Request, code: str):
        try:
            airport = await get_service(request).get_airport(code)
        except (ValidationError, NotFoundError):
            raise
        except VendorError as e:
            log_event("airport_lookup_error", level="ERROR", **e.to_dict())
            return _error("Failed to fetch airport details", 500, error=e.to_dict())
        except Exception as e:
            log_event("airport_lookup_error", level="ERROR", error=str(e))
            return _error("Failed to fetch airport details", 500)
        return {"success": True, "data": airport.to_json_dict()}

    @app.get("/api/history")
    async def search_history(request: Request, limit: int = 10, x_user_id: Optional[str] = Header(None)):
        if not x_user_id:
            return _error("Authentication required", 401)
        history = get_service(request).history
        try:
            entries = history.recent(x_user_id, limit=max(1, min(limit, 50))) if history else []
        except redis.RedisError as e:
            log_event("history_read_failed", level="ERROR", error=str(e))
            return _error("Failed to load search history", 500)
        return {"success": True, "data": entries, "count": len(entries)}

    @app.get("/api/health")
    async def health(request: Request):
        service = get_service(request)
        checker = HealthChecker()
        checker.register_check("amadeus_credentials", lambda: service.client.configured)
        if service.history is not None:
            checker.register_check("history_store", service.history.ping)
        results = await checker.run_checks()
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
            "retryConfig": service.retry_policy.describe(),
            "config": {
                "amadeus": service.client.configured,
                "amadeusEnv": settings.AMADEUS_ENV,
                "affiliate": bool(service.affiliate_id),
                "historyBackend": service.history.backend if service.history else None,
            },
            "checks": results["checks"],
        }

    @app.get("/metrics")
    async def metrics():
        return get_metrics_snapshot()

    app.add_middleware(ObservabilityMiddleware)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8001,
        reload=settings.APP_ENV == "dev",
        log_level="info"
    )
