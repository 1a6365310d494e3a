"""
FastAPI REST API Module

Exposes the token operations over HTTP. The caller identity is read from a
request header (X-Caller-Id by default) and bound for the duration of the
call; omitted identities in request bodies default to it.
"""

from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
import uvicorn

from .config import TokenLedgerConfig, get_config
from .errors import (
    AccountAlreadyExists, AccountNotFound, TokenAlreadyExists, TokenError,
    TokenNotFound
)
from .identity import ContextCallerIdentity, caller_context
from .logging_config import setup_logging
from .notifications import (
    CompositeNotificationSink, LogNotificationSink, NotificationSink,
    WebhookNotificationSink
)
from .schemas import (
    ApproveRequest, BurnRequest, CreateTokenRequest, DecreaseAllowanceRequest,
    IncreaseAllowanceRequest, MintRequest, OpenAccountRequest, TokenSnapshot,
    TransferFromRequest, TransferRequest
)
from .service import TokenService
from .storage import create_store
from . import __version__


def build_notifier(config: TokenLedgerConfig) -> NotificationSink:
    sinks = []
    if config.notification_log:
        sinks.append(LogNotificationSink())
    if config.notification_webhook_url:
        sinks.append(WebhookNotificationSink(
            config.notification_webhook_url, timeout=config.notification_timeout
        ))
    return CompositeNotificationSink(sinks)


def build_service(config: Optional[TokenLedgerConfig] = None) -> TokenService:
    """Assemble a TokenService from configuration"""
    config = config or get_config()
    return TokenService(
        store=create_store(config.storage_backend, config.database_path),
        identity=ContextCallerIdentity(default=config.default_caller or ""),
        notifier=build_notifier(config),
        table=config.ledger_table,
        key=config.ledger_key,
    )


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_caller(request: Request) -> str:
    return request.headers.get(request.app.state.caller_header, "")


def _status_for(error: TokenError) -> int:
    if isinstance(error, (TokenNotFound, AccountNotFound)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (TokenAlreadyExists, AccountAlreadyExists)):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


router = APIRouter()


@router.post("/token", status_code=status.HTTP_201_CREATED)
async def create_token(
    request: CreateTokenRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Create the token (once)"""
    with caller_context(caller):
        token = service.create_token(
            request.name, request.symbol, request.decimals, request.total_supply
        )
    return {
        "success": True,
        "message": "Token created successfully",
        "token": token.to_dict()
    }


@router.get("/token", response_model=TokenSnapshot)
async def get_token(
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Full token record"""
    with caller_context(caller):
        return service.snapshot()


@router.get("/token/name")
async def get_name(caller: str = Depends(get_caller), service: TokenService = Depends(get_token_service)):
    with caller_context(caller):
        return {"name": service.name()}


@router.get("/token/symbol")
async def get_symbol(caller: str = Depends(get_caller), service: TokenService = Depends(get_token_service)):
    with caller_context(caller):
        return {"symbol": service.symbol()}


@router.get("/token/decimals")
async def get_decimals(caller: str = Depends(get_caller), service: TokenService = Depends(get_token_service)):
    with caller_context(caller):
        return {"decimals": service.decimals()}


@router.get("/token/total-supply")
async def get_total_supply(caller: str = Depends(get_caller), service: TokenService = Depends(get_token_service)):
    with caller_context(caller):
        return {"total_supply": service.total_supply()}


@router.post("/accounts", status_code=status.HTTP_201_CREATED)
async def open_account(
    request: OpenAccountRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Open an account for the given owner or the caller"""
    with caller_context(caller):
        owner = service.open_account(request.owner)
    return {"success": True, "owner": owner, "message": f"Account for {owner} successfully created"}


@router.get("/balances")
@router.get("/balances/{owner}")
async def balance_of(
    owner: Optional[str] = None,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Balance of owner, or of the caller when owner is omitted"""
    with caller_context(caller):
        balance = service.balance_of(owner)
    return {"owner": owner or caller, "balance": balance}


@router.get("/allowances/{spender}")
async def allowance(
    spender: str,
    owner: Optional[str] = None,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Allowance spender holds on owner's account (owner defaults to the caller)"""
    with caller_context(caller):
        value = service.allowance(spender, owner)
    return {"owner": owner or caller, "spender": spender, "allowance": value}


@router.post("/transfers")
async def transfer(
    request: TransferRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        service.transfer(request.to, request.value)
    return {"success": True, "from": caller, "to": request.to, "value": request.value}


@router.post("/transfers/from")
async def transfer_from(
    request: TransferFromRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    """Delegated transfer spending the caller's allowance on from's account"""
    with caller_context(caller):
        service.transfer_from(request.to, request.value, request.from_)
    return {
        "success": True,
        "from": request.from_ or caller,
        "to": request.to,
        "spender": caller,
        "value": request.value
    }


@router.post("/approvals")
async def approve(
    request: ApproveRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        value = service.approve(request.spender, request.value)
    return {"success": True, "owner": caller, "spender": request.spender, "allowance": value}


@router.post("/allowances/increase")
async def increase_allowance(
    request: IncreaseAllowanceRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        value = service.increase_allowance(request.spender, request.added_value)
    return {"success": True, "owner": caller, "spender": request.spender, "allowance": value}


@router.post("/allowances/decrease")
async def decrease_allowance(
    request: DecreaseAllowanceRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        value = service.decrease_allowance(request.spender, request.subtracted_value)
    return {"success": True, "owner": caller, "spender": request.spender, "allowance": value}


@router.post("/mint")
async def mint(
    request: MintRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        service.mint(request.value, request.to)
    return {"success": True, "to": request.to or caller, "value": request.value}


@router.post("/burn")
async def burn(
    request: BurnRequest,
    caller: str = Depends(get_caller),
    service: TokenService = Depends(get_token_service)
):
    with caller_context(caller):
        service.burn(request.value, request.from_)
    return {"success": True, "from": request.from_ or caller, "value": request.value}


def create_app(
    service: Optional[TokenService] = None,
    config: Optional[TokenLedgerConfig] = None
) -> FastAPI:
    """Create and configure the FastAPI application"""
    config = config or get_config()
    app = FastAPI(
        title="Token Ledger API",
        description="Fungible token ledger with ERC20-style operations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.token_service = service or build_service(config)
    app.state.caller_header = config.caller_header

    @app.exception_handler(TokenError)
    async def token_error_handler(request: Request, exc: TokenError):
        return JSONResponse(
            status_code=_status_for(exc),
            content={"success": False, "error": type(exc).__name__, "detail": exc.message}
        )

    app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "token_ledger_api",
            "version": __version__,
            "token_created": app.state.token_service.is_created()
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Token Ledger API",
            "version": __version__,
            "caller_header": config.caller_header,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "token": "/token",
                "accounts": "/accounts",
                "balances": "/balances",
                "allowances": "/allowances",
                "transfers": "/transfers",
                "approvals": "/approvals",
                "mint": "/mint",
                "burn": "/burn",
            }
        }

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False) -> None:
    """Start the API server with uvicorn"""
    config = get_config()
    setup_logging(config.log_level, "token_ledger", config.log_format)
    app = create_app(config=config)
    uvicorn.run(
        app,
        host=host or config.api_host,
        port=port or config.api_port,
        log_level="debug" if debug else config.log_level.lower()
    )
