"""
Pydantic models for the Norma API request/response schemas.

Field names follow the JSON contract used by the web dashboard, which mixes
camelCase (`userName`, `userId`) and snake_case (`condominio_id`).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Chatbot ---


class AskAIRequest(BaseModel):
    """Request body for POST /ask-ai."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(default="", description="The resident's question")
    user_name: str = Field(
        default="Morador",
        alias="userName",
        description="Name used to greet the resident in the answer",
    )


class AskAIResponse(BaseModel):
    """Response from POST /ask-ai."""

    answer: str = Field(description="Answer text (may contain **bold** markers)")


# --- Users ---


class DeleteUserRequest(BaseModel):
    """Request body for POST /delete-user."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId", description="Auth id of the user to delete")


class DeleteUserResponse(BaseModel):
    """Response from POST /delete-user."""

    success: bool = True
    message: str = "Usuário deletado com sucesso"


# --- Finance ---


class HealthCheckRequest(BaseModel):
    """Request body for POST /financial-health-check."""

    condominio_id: str = Field(description="Condominium to evaluate")


class FinancialHealthResponse(BaseModel):
    """Response from POST /financial-health-check."""

    saldo_atual: float = Field(description="Current balance")
    total_receitas: float = Field(description="Income over the last 12 months")
    total_despesas: float = Field(description="Expenses over the last 12 months (positive)")
    resultado: float = Field(description="Income minus expenses")
    health_score: int = Field(description="Score, 50 is neutral")
    classification: Literal["Crítico", "Atenção", "Saudável", "Excelente"]
    color: str = Field(description="Hex color for the dashboard badge")
    margem_operacional: float = Field(description="Operating margin in percent")
    indice_liquidez: float = Field(description="Balance over average monthly expense")


class FinancialTransaction(BaseModel):
    """A `financial_transactions` row as sent by the report importer.

    Unknown columns are passed through to the database.
    """

    model_config = ConfigDict(extra="allow")

    condominio_id: str | None = None
    category_code: str | None = None
    description: str | None = None
    amount: float
    reference_month: str | None = None
    payment_date: str | None = None
    status: str | None = None
    created_by: str | None = None


class ImportReportRequest(BaseModel):
    """Request body for POST /import-financial-report."""

    condominio_id: str = Field(description="Condominium the transactions belong to")
    transactions: list[FinancialTransaction] = Field(default=[], description="Rows to insert")


class ImportReportResponse(BaseModel):
    """Response from POST /import-financial-report."""

    success: bool = True
    count: int = Field(description="Number of rows inserted")


# --- AI FAQs ---


class AIFaqMutationResponse(BaseModel):
    """Response from POST/PUT/DELETE /admin-ai-faqs."""

    message: str
    data: dict[str, Any] | None = None


# --- Notifications ---


class NotifyRequest(BaseModel):
    """Database webhook payload for a new announcement."""

    model_config = ConfigDict(extra="allow")

    record: dict[str, Any] | None = Field(default=None, description="The inserted `comunicados` row")


class NotifyResponse(BaseModel):
    """Response from POST /notify-users."""

    success: bool = True
    emails_sent: int = 0
    pushes_sent: int = 0
    subscriptions_removed: int = 0


# --- Common ---


class ErrorResponse(BaseModel):
    """Error body returned by every handler."""

    error: str = Field(description="Error message")


class HealthResponse(BaseModel):
    """Response from GET /health."""

    status: str = "ok"
    version: str = "1.0.0"
