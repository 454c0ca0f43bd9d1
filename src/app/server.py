"""
WealthDesk — FastAPI Backend

Client / asset management, portfolio projections and the advisor assistant.
Collaborators (store, assistant, identity) are built once in create_app and
handed to request handlers through app.state; nothing is looked up ad hoc.

Every response uses the envelope {success, data?, message?, errors?}.
"""

import logging
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.clients import demo_clients
from config.settings import Settings, load_settings
from src.app.auth import IdentityProvider, StaticTokenIdentity, bearer_token
from src.app.schemas import (
    AssetCreate, AssetUpdate, ChatRequest, ClientCreate, ClientUpdate,
    ExpenseCreate, GoalCreate, IncomeCreate, RiskTolerance,
)
from src.context.builder import ContextBuilder, ContextCache
from src.data.store import ClientStore, create_store
from src.errors import NotFound, Unauthorized, UpstreamFailure, WealthDeskError
from src.finance.allocation import classify_allocation, weighted_risk_score
from src.finance.portfolio import build_snapshot, project_assets, projection_timeline
from src.llm.chat import ChatService
from src.llm.narrator import AdvisorAssistant
from src.models.domain import Client, Principal

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# Envelope helpers
# ─────────────────────────────────────────────────────────────────────

def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    return body


def fail(status_code: int, message: str, errors: Optional[List[str]] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def filter_clients(clients: List[Client], query: Optional[str] = None,
                   risk_tolerance: Optional[str] = None) -> List[Client]:
    """Case-insensitive name/email search plus an exact risk-profile match."""
    needle = (query or "").strip().lower()
    matched = []
    for client in clients:
        if needle and needle not in client.name.lower() and needle not in client.email.lower():
            continue
        if risk_tolerance and client.risk_tolerance != risk_tolerance:
            continue
        matched.append(client)
    return matched


# ─────────────────────────────────────────────────────────────────────
# Dependencies
# ─────────────────────────────────────────────────────────────────────

def get_principal(request: Request, authorization: Optional[str] = Header(None)) -> Principal:
    token = bearer_token(authorization)
    principal = request.app.state.identity.resolve(token) if token else None
    if principal is None:
        raise Unauthorized()
    return principal


def get_store(request: Request) -> ClientStore:
    return request.app.state.store


def get_builder(request: Request) -> ContextBuilder:
    return request.app.state.builder


def get_assistant(request: Request) -> AdvisorAssistant:
    return request.app.state.assistant


def get_chat(request: Request) -> ChatService:
    return request.app.state.chat


def _require(found, what: str, ident: str):
    if found is None or found is False:
        raise NotFound(f"{what} '{ident}' not found")
    return found


# ─────────────────────────────────────────────────────────────────────
# App factory
# ─────────────────────────────────────────────────────────────────────

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ClientStore] = None,
    assistant: Optional[AdvisorAssistant] = None,
    identity: Optional[IdentityProvider] = None,
) -> FastAPI:
    settings = settings or load_settings()
    if store is None:
        seed = demo_clients() if settings.seed_demo_data else None
        store = create_store(settings.database_url, seed=seed)

    cache = ContextCache(settings.context_cache_ttl_seconds) if settings.context_cache_ttl_seconds > 0 else None
    builder = ContextBuilder(store, cache=cache, normalisation_years=settings.growth_normalisation_years)
    assistant = assistant or AdvisorAssistant(settings)

    app = FastAPI(title="WealthDesk", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.store = store
    app.state.builder = builder
    app.state.assistant = assistant
    app.state.chat = ChatService(store, builder, assistant)
    app.state.identity = identity or StaticTokenIdentity(settings.api_tokens)

    _register_error_handlers(app)
    _register_routes(app)

    logger.info("WealthDesk ready (assistant %s, store %s)",
                "enabled" if assistant.available else "template-only", type(store).__name__)
    return app


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(WealthDeskError)
    async def handle_domain_error(request: Request, exc: WealthDeskError):
        if isinstance(exc, UpstreamFailure):
            logger.warning("%s %s -> upstream failure: %s", request.method, request.url.path, exc.__cause__)
        return fail(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = exc.errors()
        if any(d.get("type") == "json_invalid" for d in details):
            return fail(400, "Malformed request body.")
        errors = [
            f"{'.'.join(str(p) for p in d.get('loc', ()) if p != 'body')}: {d.get('msg')}"
            for d in details
        ]
        return fail(422, "Invalid input.", errors)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return fail(500, "An unexpected error occurred.")


# ─────────────────────────────────────────────────────────────────────
# API Endpoints
# ─────────────────────────────────────────────────────────────────────

def _register_routes(app: FastAPI) -> None:

    @app.get("/api/health")
    def health(request: Request):
        return ok({
            "status": "ready",
            "assistant": "enabled" if request.app.state.assistant.available else "template-only",
        })

    # -- clients -------------------------------------------------------

    @app.get("/api/clients")
    def list_clients(q: Optional[str] = None, risk_tolerance: Optional[RiskTolerance] = None,
                     principal: Principal = Depends(get_principal), store: ClientStore = Depends(get_store)):
        summaries = []
        for client in filter_clients(store.list_clients(principal.advisor_id), q, risk_tolerance):
            snapshot = build_snapshot(client.id, client.assets, _normalisation_years(app))
            summaries.append({**client.profile_dict(), "portfolio": snapshot.summary.to_dict()})
        return ok(summaries)

    @app.post("/api/clients")
    def create_client(body: ClientCreate, principal: Principal = Depends(get_principal),
                      store: ClientStore = Depends(get_store)):
        client = store.create_client(body.to_client(principal.advisor_id))
        logger.info("Advisor %s created client %s", principal.advisor_id, client.id)
        return ok(client, "Client created")

    @app.get("/api/clients/{client_id}")
    def get_client(client_id: str, principal: Principal = Depends(get_principal),
                   store: ClientStore = Depends(get_store)):
        return ok(_require(store.get_client(principal.advisor_id, client_id), "Client", client_id))

    @app.patch("/api/clients/{client_id}")
    def update_client(client_id: str, body: ClientUpdate, principal: Principal = Depends(get_principal),
                      store: ClientStore = Depends(get_store)):
        client = store.update_client(principal.advisor_id, client_id, body.to_changes())
        return ok(_require(client, "Client", client_id), "Client updated")

    @app.delete("/api/clients/{client_id}")
    def delete_client(client_id: str, principal: Principal = Depends(get_principal),
                      store: ClientStore = Depends(get_store)):
        _require(store.delete_client(principal.advisor_id, client_id), "Client", client_id)
        logger.info("Advisor %s deleted client %s", principal.advisor_id, client_id)
        return ok({"id": client_id}, "Client deleted")

    # -- owned rows ----------------------------------------------------

    @app.post("/api/clients/{client_id}/assets")
    def add_asset(client_id: str, body: AssetCreate, principal: Principal = Depends(get_principal),
                  store: ClientStore = Depends(get_store)):
        asset = store.add_asset(principal.advisor_id, body.to_asset(client_id))
        return ok(_require(asset, "Client", client_id), "Asset added")

    @app.patch("/api/clients/{client_id}/assets/{asset_id}")
    def update_asset(client_id: str, asset_id: str, body: AssetUpdate,
                     principal: Principal = Depends(get_principal), store: ClientStore = Depends(get_store)):
        asset = store.update_asset(principal.advisor_id, client_id, asset_id, body.to_changes())
        return ok(_require(asset, "Asset", asset_id), "Asset updated")

    @app.delete("/api/clients/{client_id}/assets/{asset_id}")
    def delete_asset(client_id: str, asset_id: str, principal: Principal = Depends(get_principal),
                     store: ClientStore = Depends(get_store)):
        _require(store.delete_asset(principal.advisor_id, client_id, asset_id), "Asset", asset_id)
        return ok({"id": asset_id}, "Asset deleted")

    @app.post("/api/clients/{client_id}/income")
    def add_income(client_id: str, body: IncomeCreate, principal: Principal = Depends(get_principal),
                   store: ClientStore = Depends(get_store)):
        item = store.add_income_source(principal.advisor_id, body.to_income(client_id))
        return ok(_require(item, "Client", client_id), "Income source added")

    @app.post("/api/clients/{client_id}/expenses")
    def add_expense(client_id: str, body: ExpenseCreate, principal: Principal = Depends(get_principal),
                    store: ClientStore = Depends(get_store)):
        item = store.add_expense(principal.advisor_id, body.to_expense(client_id))
        return ok(_require(item, "Client", client_id), "Expense added")

    @app.post("/api/clients/{client_id}/goals")
    def add_goal(client_id: str, body: GoalCreate, principal: Principal = Depends(get_principal),
                 store: ClientStore = Depends(get_store)):
        item = store.add_goal(principal.advisor_id, body.to_goal(client_id))
        return ok(_require(item, "Client", client_id), "Goal added")

    # -- projections & context ----------------------------------------

    @app.get("/api/clients/{client_id}/portfolio")
    def portfolio(client_id: str, principal: Principal = Depends(get_principal),
                  store: ClientStore = Depends(get_store)):
        client = _require(store.get_client(principal.advisor_id, client_id), "Client", client_id)
        allocation = classify_allocation(client.assets)
        snapshot = build_snapshot(client.id, client.assets, _normalisation_years(app))
        return ok({
            "snapshot": snapshot.to_dict(),
            "assets": project_assets(client.assets),
            "allocation": [s.to_dict() for s in allocation],
            "risk_score": weighted_risk_score(allocation),
            "timeline": projection_timeline(client.assets).to_dict(orient="records"),
        })

    @app.get("/api/clients/{client_id}/context")
    def context(client_id: str, principal: Principal = Depends(get_principal),
                builder: ContextBuilder = Depends(get_builder)):
        return ok(builder.build(principal, client_id).to_prompt_dict())

    @app.get("/api/clients/{client_id}/insights")
    def insights(client_id: str, principal: Principal = Depends(get_principal),
                 builder: ContextBuilder = Depends(get_builder),
                 assistant: AdvisorAssistant = Depends(get_assistant)):
        ctx = builder.build(principal, client_id)
        return ok(assistant.summarise(ctx).model_dump())

    # -- chat ----------------------------------------------------------

    @app.post("/api/chat")
    def chat(req: ChatRequest, principal: Principal = Depends(get_principal),
             chat_service: ChatService = Depends(get_chat)):
        """Advisor question about one client; the turn is saved to its session."""
        result = chat_service.ask(principal, req.client_id, req.question, req.session_id)
        return ok({"session_id": result.session_id, "response": result.reply})

    @app.get("/api/clients/{client_id}/chat")
    def chat_history(client_id: str, session_id: Optional[str] = None,
                     principal: Principal = Depends(get_principal),
                     chat_service: ChatService = Depends(get_chat)):
        return ok(chat_service.history(principal, client_id, session_id))


def _normalisation_years(app: FastAPI) -> Optional[int]:
    return app.state.settings.growth_normalisation_years


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format="%(asctime)s [%(levelname)s] %(message)s")


def build_app() -> FastAPI:
    """Application factory for uvicorn (`--factory`); reads settings from the environment."""
    settings = load_settings()
    _configure_logging(settings.log_level)
    return create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.app.server:build_app", factory=True, host="0.0.0.0", port=8000)
