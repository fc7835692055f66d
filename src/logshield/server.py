"""HTTP REST server for logshield."""

import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from logshield import __version__
from logshield.catalog import RuleCatalog, default_catalog, load_catalog
from logshield.engine import Engine
from logshield.errors import InputTooLarge
from logshield.models import MatchRecord, Tier
from logshield.modes import parse_tier, resolve_mode

logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "logshield_requests_total",
    "Total requests",
    ["endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "logshield_request_duration_seconds",
    "Request duration in seconds",
    ["endpoint"],
)
REDACTION_COUNT = Counter(
    "logshield_redactions_total",
    "Total redactions",
    ["rule"],
)


# Request/Response models
class SanitizeRequest(BaseModel):
    """Request model for /sanitize endpoint."""

    text: str
    strict: Optional[bool] = None
    dry_run: bool = False
    tier: Optional[Tier] = None


class ScanRequest(BaseModel):
    """Request model for /scan endpoint."""

    text: str
    strict: Optional[bool] = None
    tier: Optional[Tier] = None


class MatchModel(BaseModel):
    """A single redaction event. Carries the rule name only."""

    rule: str


class SanitizeResponse(BaseModel):
    """Response model for /sanitize endpoint."""

    output: str
    matches: list[MatchModel]


class ScanResponse(BaseModel):
    """Response model for /scan endpoint."""

    matches: list[MatchModel]


class RuleInfo(BaseModel):
    """Public description of an active rule."""

    name: str
    group: str
    mode: str
    description: str


class RulesResponse(BaseModel):
    """Response model for /rules endpoint."""

    tier: str
    strict: bool
    rules: list[RuleInfo]


class LicenseRequest(BaseModel):
    """Request model for /license/validate endpoint."""

    license_key: str


class LicenseResponse(BaseModel):
    """Response model for /license/validate endpoint."""

    valid: bool
    tier: str


class HealthResponse(BaseModel):
    """Response model for /health endpoint."""

    status: str
    version: str
    rules_loaded: int


class LogShieldServer:
    """Server wrapper for managing state."""

    def __init__(self, config: Optional[dict[str, Any]] = None) -> None:
        """Initialize server with configuration."""
        self.config = config or {}
        engine_config = self.config.get("engine") or {}

        self.default_strict = bool(engine_config.get("strict", False))
        self.default_tier = parse_tier(engine_config.get("tier"))
        self.licenses = {
            str(key): parse_tier(tier)
            for key, tier in (self.config.get("licenses") or {}).items()
        }

        self.catalog = self._load_catalog(engine_config.get("catalog"))
        self.engine = Engine(self.catalog)

    @staticmethod
    def _load_catalog(path: Optional[str]) -> RuleCatalog:
        """Load the configured catalog, or the bundled one."""
        if path:
            logger.info(f"Loading catalog from: {path}")
            return load_catalog(path)
        return default_catalog()

    def options(self, strict: Optional[bool], tier: Optional[Tier]) -> tuple[bool, Tier]:
        """Fill unset request options from the configured defaults."""
        return (
            self.default_strict if strict is None else strict,
            self.default_tier if tier is None else tier,
        )

    def validate_license(self, key: str) -> tuple[bool, Tier]:
        """Look a license key up in the configured key map."""
        tier = self.licenses.get(key.strip())
        if tier is None:
            return False, Tier.FREE
        return True, tier


def _record_redactions(matches: list[MatchRecord]) -> None:
    for match in matches:
        REDACTION_COUNT.labels(rule=match.rule).inc()


def create_app(config: Optional[dict[str, Any]] = None) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Server configuration dictionary

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="logshield",
        description="Local log sanitization service",
        version=__version__,
    )

    # Create server instance
    server = LogShieldServer(config)

    # Middleware for metrics and timing
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Any) -> Response:
        """Record metrics for each request."""
        start_time = time.time()
        endpoint = request.url.path

        response = await call_next(request)

        duration = time.time() - start_time
        REQUEST_COUNT.labels(endpoint=endpoint, status=response.status_code).inc()
        REQUEST_DURATION.labels(endpoint=endpoint).observe(duration)

        return response

    @app.post("/sanitize", response_model=SanitizeResponse)
    async def sanitize(request: SanitizeRequest) -> SanitizeResponse:
        """Sanitize log text."""
        strict, tier = server.options(request.strict, request.tier)
        try:
            result = server.engine.sanitize(
                request.text, strict=strict, dry_run=request.dry_run, tier=tier
            )
        except InputTooLarge as e:
            raise HTTPException(status_code=413, detail=str(e))

        _record_redactions(result.matches)
        return SanitizeResponse(**result.to_dict())

    @app.post("/scan", response_model=ScanResponse)
    async def scan(request: ScanRequest) -> ScanResponse:
        """Report what would be redacted, without returning text."""
        strict, tier = server.options(request.strict, request.tier)
        try:
            result = server.engine.scan(request.text, strict=strict, tier=tier)
        except InputTooLarge as e:
            raise HTTPException(status_code=413, detail=str(e))

        return ScanResponse(**result.to_dict())

    @app.get("/rules", response_model=RulesResponse)
    async def rules(tier: Optional[Tier] = None, strict: Optional[bool] = None) -> RulesResponse:
        """List active rules in execution order."""
        strict, tier = server.options(strict, tier)
        mode = resolve_mode(strict=strict, tier=tier, catalog=server.catalog)
        return RulesResponse(
            tier=mode.tier.value,
            strict=mode.context.strict,
            rules=[
                RuleInfo(
                    name=rule.name,
                    group=rule.group.value,
                    mode=rule.mode.value,
                    description=rule.description,
                )
                for rule in mode.rules
            ],
        )

    @app.post("/license/validate", response_model=LicenseResponse)
    async def validate_license(request: LicenseRequest) -> LicenseResponse:
        """Resolve a license key to its tier."""
        valid, tier = server.validate_license(request.license_key)
        return LicenseResponse(valid=valid, tier=tier.value)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            rules_loaded=len(server.catalog),
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
