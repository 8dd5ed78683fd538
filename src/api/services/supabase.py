"""
Supabase service: every table, RPC and auth call the backend makes.
"""

import os
from datetime import datetime
from typing import Any

from supabase import Client, create_client

DOCUMENTS_TABLE = "documents"
AI_FAQS_TABLE = "ai_faqs"
FAQS_TABLE = "faqs"
USERS_TABLE = "users"
CONDOMINIOS_TABLE = "condominios"
TRANSACTIONS_TABLE = "financial_transactions"
CATEGORIES_TABLE = "financial_categories"
PUSH_SUBSCRIPTIONS_TABLE = "push_subscriptions"

MATCH_DOCUMENTS_RPC = "match_documents"


def error_message(error: Exception) -> str:
    """Message of a backend error, falling back to ``str(error)``.

    PostgREST and auth errors carry a ``message`` attribute; plain exceptions
    don't.
    """
    message = getattr(error, "message", None)
    return message if isinstance(message, str) and message else str(error)


class SupabaseService:
    """Service-role access to the Supabase project (bypasses row-level security)."""

    def __init__(self, client: Client | None = None):
        if client is None:
            url = os.environ.get("SUPABASE_URL")
            key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

            if not url:
                raise ValueError("SUPABASE_URL not set")
            if not key:
                raise ValueError("SUPABASE_SERVICE_ROLE_KEY not set")

            client = create_client(url, key)

        self.client = client

    # --- Knowledge base ---

    def match_documents(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict]:
        """Run the vector similarity RPC. Returns rows ordered by similarity."""
        response = self.client.rpc(
            MATCH_DOCUMENTS_RPC,
            {
                "query_embedding": query_embedding,
                "match_threshold": match_threshold,
                "match_count": match_count,
            },
        ).execute()
        return response.data or []

    def clear_documents(self) -> None:
        self.client.table(DOCUMENTS_TABLE).delete().neq("id", 0).execute()

    def insert_document(self, document: dict) -> None:
        self.client.table(DOCUMENTS_TABLE).insert(document).execute()

    # --- FAQ menu (chat quick replies) ---

    def list_faq_categories(self) -> list[str]:
        """Distinct FAQ categories, sorted."""
        response = self.client.table(FAQS_TABLE).select("category").execute()
        return sorted({row["category"] for row in response.data or [] if row.get("category")})

    def list_faq_questions(self, category: str, limit: int = 5) -> list[dict]:
        response = (
            self.client.table(FAQS_TABLE)
            .select("id, question")
            .eq("category", category)
            .limit(limit)
            .execute()
        )
        return response.data or []

    def get_faq_answer(self, faq_id: str) -> str | None:
        response = (
            self.client.table(FAQS_TABLE).select("answer").eq("id", faq_id).limit(1).execute()
        )
        rows = response.data or []
        return rows[0].get("answer") if rows else None

    # --- AI FAQs ---

    def list_ai_faqs(self, condominio_id: str | None = None, ascending: bool = False) -> list[dict]:
        query = self.client.table(AI_FAQS_TABLE).select("*").order("created_at", desc=not ascending)
        if condominio_id:
            query = query.eq("condominio_id", condominio_id)
        return query.execute().data or []

    def get_ai_faq(self, faq_id: str) -> dict | None:
        response = self.client.table(AI_FAQS_TABLE).select("*").eq("id", faq_id).limit(1).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def create_ai_faq(self, row: dict) -> dict:
        response = self.client.table(AI_FAQS_TABLE).insert(row).execute()
        return (response.data or [row])[0]

    def update_ai_faq(self, faq_id: str, fields: dict) -> dict | None:
        response = self.client.table(AI_FAQS_TABLE).update(fields).eq("id", faq_id).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def delete_ai_faq(self, faq_id: str) -> None:
        self.client.table(AI_FAQS_TABLE).delete().eq("id", faq_id).execute()

    # --- Users and auth ---

    def get_auth_user(self, jwt: str) -> Any | None:
        """Validate a bearer token with Supabase auth. Returns the user or None."""
        response = self.client.auth.get_user(jwt)
        return response.user if response else None

    def get_user_role(self, user_id: str) -> str | None:
        response = self.client.table(USERS_TABLE).select("role").eq("id", user_id).limit(1).execute()
        rows = response.data or []
        return rows[0].get("role") if rows else None

    def delete_auth_user(self, user_id: str) -> None:
        """Delete an auth user. The profile row goes with it through ON DELETE CASCADE."""
        self.client.auth.admin.delete_user(user_id)

    def list_users(self) -> list[dict]:
        response = self.client.table(USERS_TABLE).select("id, email, full_name").execute()
        return response.data or []

    def list_push_subscriptions(self) -> list[dict]:
        response = self.client.table(PUSH_SUBSCRIPTIONS_TABLE).select("subscription, user_id").execute()
        return response.data or []

    def delete_push_subscription(self, endpoint: str) -> None:
        """Remove the subscription whose push endpoint is ``endpoint``."""
        self.client.table(PUSH_SUBSCRIPTIONS_TABLE).delete().eq("subscription->>endpoint", endpoint).execute()

    # --- Finance ---

    def get_condominio_balance(self, condominio_id: str) -> float:
        response = (
            self.client.table(CONDOMINIOS_TABLE)
            .select("saldo_atual")
            .eq("id", condominio_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return float(rows[0].get("saldo_atual") or 0) if rows else 0.0

    def list_approved_amounts(self, condominio_id: str, since: datetime) -> list[float]:
        """Amounts of approved transactions with reference month on or after ``since``."""
        response = (
            self.client.table(TRANSACTIONS_TABLE)
            .select("amount")
            .eq("condominio_id", condominio_id)
            .eq("status", "approved")
            .gte("reference_month", since.isoformat())
            .execute()
        )
        return [float(row["amount"]) for row in response.data or [] if row.get("amount") is not None]

    def insert_transactions(self, rows: list[dict]) -> int:
        response = self.client.table(TRANSACTIONS_TABLE).insert(rows).execute()
        return len(response.data) if response.data else len(rows)

    def upsert_categories(self, rows: list[dict]) -> None:
        self.client.table(CATEGORIES_TABLE).upsert(
            rows, on_conflict="code", ignore_duplicates=True
        ).execute()
