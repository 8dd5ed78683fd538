"""
Norma API.

HTTP handlers for the condominium platform: resident chatbot, user deletion,
financial health check, financial report import, AI FAQ administration and
announcement emails. All data lives in Supabase.

Every failure is answered as ``{"error": "<message>"}``.
"""

import os
from contextlib import asynccontextmanager
from typing import Annotated, Any

from dotenv import load_dotenv

# Load environment variables before other imports
load_dotenv()

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.logging import configure_root_logging, get_logger, log_error, log_event
from api.models import (
    AIFaqMutationResponse,
    AskAIRequest,
    AskAIResponse,
    DeleteUserRequest,
    DeleteUserResponse,
    ErrorResponse,
    FinancialHealthResponse,
    HealthCheckRequest,
    HealthResponse,
    ImportReportRequest,
    ImportReportResponse,
    NotifyRequest,
    NotifyResponse,
)
from api.services.notifications import notify_announcement, notify_push, push_configured
from api.services.supabase import SupabaseService, error_message
from chatbot.rag import answer_query, compose_answer
from finance.health import compute_health, window_start
from knowledge.faqs import FaqValidationError, prepare_faq_insert, prepare_faq_update

API_VERSION = "1.0.0"

ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

ADMIN_ROLES = ("admin", "sindico")

METHOD_NOT_ALLOWED_MESSAGE = "Método não suportado"

logger = get_logger(__name__)


# Global service instance
_supabase: SupabaseService | None = None


def get_supabase() -> SupabaseService:
    """Get or create the Supabase service instance."""
    global _supabase
    if _supabase is None:
        _supabase = SupabaseService()
    return _supabase


def bearer_token(authorization: str | None) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    return token if scheme.lower() == "bearer" and token else None


async def require_authorization(authorization: Annotated[str | None, Header()] = None) -> str:
    """Reject requests without an Authorization header (admin endpoints)."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Não autorizado")
    return authorization


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - initialize services on startup."""
    configure_root_logging()
    logger.info("Starting Norma API...")

    global _supabase
    try:
        _supabase = SupabaseService()
        logger.info("Supabase service initialized")
    except Exception as e:
        logger.warning(f"Could not initialize Supabase: {type(e).__name__}: {e}")

    logger.info("Norma API ready")
    yield

    logger.info("Shutting down Norma API...")
    _supabase = None


app = FastAPI(
    title="Norma",
    description="Backend handlers for the Versix condominium platform",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
    max_age=3600,
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as ``{"error": ...}``."""
    message = METHOD_NOT_ALLOWED_MESSAGE if exc.status_code == 405 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render body/query validation failures as 400 ``{"error": ...}``."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    message = first.get("msg", "Requisição inválida")
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message},
    )


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health():
    """Health check endpoint."""
    return HealthResponse(version=API_VERSION)


# --- Chatbot ---


@app.post(
    "/ask-ai",
    response_model=AskAIResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Embedding or search failed"},
    },
    tags=["Chatbot"],
)
async def ask_ai(body: AskAIRequest):
    """
    Answer a resident's question from the knowledge base.

    This endpoint:
    1. Embeds the question (Supabase/gte-small)
    2. Finds the closest rules through the `match_documents` RPC
    3. Returns a templated answer quoting the best match and its source

    A blank question gets the no-match answer without a search.
    """
    query = body.query.strip()
    if not query:
        return AskAIResponse(answer=compose_answer(body.user_name, []))

    logger.info(f"Ask-AI request: {query[:50]}")

    try:
        result = await run_in_threadpool(answer_query, query, body.user_name, get_supabase())
    except Exception as e:
        log_error(logger, "Ask-AI failed", e, query=query[:50])
        raise HTTPException(status_code=500, detail=error_message(e))

    log_event(
        logger,
        "Ask-AI answered",
        sources=len(result.sources),
        top_title=result.sources[0].title if result.sources else None,
    )
    return AskAIResponse(answer=result.answer)


# --- Users ---


@app.post(
    "/delete-user",
    response_model=DeleteUserResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Not authenticated, missing id, or backend error"},
        403: {"model": ErrorResponse, "description": "Caller is not admin/síndico"},
    },
    tags=["Users"],
)
async def delete_user(
    body: DeleteUserRequest,
    authorization: Annotated[str | None, Header()] = None,
):
    """
    Delete a user account (admin or síndico only).

    The caller's bearer token is validated by Supabase auth and their role is
    read from `users`. The auth user is deleted with the service role; the
    profile row follows through the foreign key cascade.
    """
    try:
        supabase = get_supabase()
        token = bearer_token(authorization)
        caller = supabase.get_auth_user(token) if token else None
        if caller is None:
            raise ValueError("Não autenticado")
        role = supabase.get_user_role(caller.id)
    except Exception as e:
        log_error(logger, "Delete-user auth failed", e)
        raise HTTPException(status_code=400, detail=error_message(e))

    if role not in ADMIN_ROLES:
        logger.warning(f"Delete-user denied for caller {caller.id} (role={role})")
        raise HTTPException(status_code=403, detail="Sem permissão (Apenas Admin/Síndico)")

    if not body.user_id:
        raise HTTPException(status_code=400, detail="ID do usuário não fornecido")

    try:
        supabase.delete_auth_user(body.user_id)
    except Exception as e:
        log_error(logger, "Delete-user failed", e, user_id=body.user_id)
        raise HTTPException(status_code=400, detail=error_message(e))

    log_event(logger, "User deleted", user_id=body.user_id, by=caller.id)
    return DeleteUserResponse()


# --- Finance ---


@app.post(
    "/financial-health-check",
    response_model=FinancialHealthResponse,
    responses={500: {"model": ErrorResponse, "description": "Backend error"}},
    tags=["Finance"],
)
async def financial_health_check(body: HealthCheckRequest):
    """Score the condominium's finances over the last 12 months of approved transactions."""
    try:
        supabase = get_supabase()
        saldo = supabase.get_condominio_balance(body.condominio_id)
        amounts = supabase.list_approved_amounts(body.condominio_id, since=window_start())
    except Exception as e:
        log_error(logger, "Health check failed", e, condominio_id=body.condominio_id)
        raise HTTPException(status_code=500, detail=error_message(e))

    report = compute_health(saldo, amounts)
    log_event(
        logger,
        "Health check",
        condominio_id=body.condominio_id,
        transactions=len(amounts),
        score=report.health_score,
    )
    return FinancialHealthResponse(**report.to_dict())


@app.post(
    "/import-financial-report",
    response_model=ImportReportResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Empty import or rows of another condominium"},
        500: {"model": ErrorResponse, "description": "Insert failed"},
    },
    tags=["Finance"],
)
async def import_financial_report(body: ImportReportRequest):
    """
    Insert a batch of financial transactions for one condominium.

    Rows without `condominio_id` are assigned to the request's condominium;
    rows naming another condominium reject the whole batch.
    """
    if not body.transactions:
        raise HTTPException(status_code=400, detail="Nenhuma transação informada")

    rows = []
    for transaction in body.transactions:
        row = transaction.model_dump(exclude_unset=True)
        owner = row.get("condominio_id")
        if owner and owner != body.condominio_id:
            raise HTTPException(
                status_code=400,
                detail=f"Transação pertence a outro condomínio: {owner}",
            )
        row["condominio_id"] = body.condominio_id
        rows.append(row)

    try:
        count = get_supabase().insert_transactions(rows)
    except Exception as e:
        log_error(logger, "Import failed", e, condominio_id=body.condominio_id, rows=len(rows))
        raise HTTPException(status_code=500, detail=error_message(e))

    log_event(logger, "Financial report imported", condominio_id=body.condominio_id, count=count)
    return ImportReportResponse(count=count)


# --- AI FAQ administration ---


@app.get(
    "/admin-ai-faqs",
    responses={
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        404: {"model": ErrorResponse, "description": "FAQ not found"},
        500: {"model": ErrorResponse, "description": "Backend error"},
    },
    tags=["AI FAQs"],
    dependencies=[Depends(require_authorization)],
)
async def get_ai_faqs(
    id: Annotated[str | None, Query(description="Return a single FAQ")] = None,
    condominio_id: Annotated[str | None, Query(description="Filter by condominium")] = None,
):
    """List AI FAQs, newest first, or fetch one by id."""
    try:
        supabase = get_supabase()
        if id:
            result: Any = supabase.get_ai_faq(id)
        else:
            result = supabase.list_ai_faqs(condominio_id=condominio_id)
    except Exception as e:
        log_error(logger, "AI FAQ read failed", e, id=id)
        raise HTTPException(status_code=500, detail=error_message(e))

    if id and result is None:
        raise HTTPException(status_code=404, detail="AI FAQ não encontrada")
    return result


@app.post(
    "/admin-ai-faqs",
    response_model=AIFaqMutationResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        500: {"model": ErrorResponse, "description": "Backend error"},
    },
    tags=["AI FAQs"],
    dependencies=[Depends(require_authorization)],
)
async def create_ai_faq(payload: Annotated[dict[str, Any], Body()]):
    """Create an AI FAQ. `category`, `question` and `answer` are required."""
    try:
        row = prepare_faq_insert(payload)
    except FaqValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        created = get_supabase().create_ai_faq(row)
    except Exception as e:
        log_error(logger, "AI FAQ create failed", e, category=row["category"])
        raise HTTPException(status_code=500, detail=error_message(e))

    return AIFaqMutationResponse(message="AI FAQ criada com sucesso", data=created)


@app.put(
    "/admin-ai-faqs",
    response_model=AIFaqMutationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing id or validation error"},
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        404: {"model": ErrorResponse, "description": "FAQ not found"},
        500: {"model": ErrorResponse, "description": "Backend error"},
    },
    tags=["AI FAQs"],
    dependencies=[Depends(require_authorization)],
)
async def update_ai_faq(
    payload: Annotated[dict[str, Any], Body()],
    id: Annotated[str | None, Query(description="FAQ to update")] = None,
):
    """Partially update an AI FAQ."""
    if not id:
        raise HTTPException(status_code=400, detail="ID obrigatório para atualização")

    try:
        fields = prepare_faq_update(payload)
    except FaqValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        updated = get_supabase().update_ai_faq(id, fields)
    except Exception as e:
        log_error(logger, "AI FAQ update failed", e, id=id)
        raise HTTPException(status_code=500, detail=error_message(e))

    if updated is None:
        raise HTTPException(status_code=404, detail="AI FAQ não encontrada")
    return AIFaqMutationResponse(message="AI FAQ atualizada com sucesso", data=updated)


@app.delete(
    "/admin-ai-faqs",
    response_model=AIFaqMutationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing id"},
        401: {"model": ErrorResponse, "description": "Missing Authorization header"},
        500: {"model": ErrorResponse, "description": "Backend error"},
    },
    tags=["AI FAQs"],
    dependencies=[Depends(require_authorization)],
)
async def delete_ai_faq(id: Annotated[str | None, Query(description="FAQ to delete")] = None):
    """Delete an AI FAQ."""
    if not id:
        raise HTTPException(status_code=400, detail="ID obrigatório para exclusão")

    try:
        get_supabase().delete_ai_faq(id)
    except Exception as e:
        log_error(logger, "AI FAQ delete failed", e, id=id)
        raise HTTPException(status_code=500, detail=error_message(e))

    return AIFaqMutationResponse(message="AI FAQ excluída com sucesso")


# --- Notifications ---


@app.post(
    "/notify-users",
    response_model=NotifyResponse,
    responses={500: {"model": ErrorResponse, "description": "Missing record or backend error"}},
    tags=["Notifications"],
)
async def notify_users(body: NotifyRequest):
    """
    Email every user and push to every browser subscription about a new announcement.

    Called by the database webhook on `comunicados` inserts; the body carries
    the inserted row in `record`.
    """
    if not body.record:
        raise HTTPException(status_code=500, detail="Nenhum registro encontrado no payload.")

    logger.info(f"Processing announcement: {body.record.get('title')}")

    try:
        supabase = get_supabase()
        users = supabase.list_users()
        sent = await notify_announcement(body.record, users)
        subscriptions = supabase.list_push_subscriptions() if push_configured() else []
        pushes = await notify_push(body.record, subscriptions, supabase.delete_push_subscription)
    except Exception as e:
        log_error(logger, "Notification failed", e)
        raise HTTPException(status_code=500, detail=error_message(e))

    return NotifyResponse(
        emails_sent=sent,
        pushes_sent=pushes.sent,
        subscriptions_removed=pushes.removed,
    )
