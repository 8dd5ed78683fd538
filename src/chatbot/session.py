"""
Conversation state for the resident chat panel.

A ChatSession lives as long as the chat panel is open. It keeps the
transcript, validates input before anything is sent, allows a single
outstanding ask-ai request, and sanitizes every answer before it reaches the
transcript. Quick-reply options walk the FAQ menu (category -> questions ->
answer) without calling ask-ai.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Literal, Protocol

from chatbot.sanitize import sanitize_answer
from prompts import render_prompt

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Por favor, digite sua dúvida antes de enviar."
NO_CONDOMINIO_MESSAGE = (
    "Seu perfil não está vinculado a um condomínio. "
    "Fale com a administração para liberar o assistente."
)
REQUEST_FAILED_MESSAGE = "Desculpe, não consegui responder agora. Tente novamente em instantes."
MISSING_ANSWER_MESSAGE = "Desculpe, não consegui carregar a resposta."
FOLLOW_UP_MESSAGE = "Posso ajudar em algo mais?"

RESTART_VALUE = "restart"
FAQ_QUESTIONS_LIMIT = 5
DEFAULT_FIRST_NAME = "Morador"

Sender = Literal["user", "bot"]
OptionType = Literal["category", "question"]


@dataclass
class ChatOption:
    """A quick-reply button attached to a bot message."""

    label: str
    value: str
    type: OptionType


@dataclass
class ChatMessage:
    """One transcript entry."""

    sender: Sender
    text: str
    timestamp: datetime
    is_error: bool = False
    options: list[ChatOption] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class UserProfile:
    """The signed-in resident, as loaded from `users`."""

    full_name: str | None = None
    condominio_id: str | None = None

    @property
    def first_name(self) -> str:
        parts = (self.full_name or "").split()
        return parts[0] if parts else DEFAULT_FIRST_NAME


class AnswerProvider(Protocol):
    def ask(self, query: str, user_name: str) -> str: ...


class FaqSource(Protocol):
    def list_faq_categories(self) -> list[str]: ...

    def list_faq_questions(self, category: str, limit: int = FAQ_QUESTIONS_LIMIT) -> list[dict]: ...

    def get_faq_answer(self, faq_id: str) -> str | None: ...


def greeting_for(moment: datetime) -> str:
    if moment.hour >= 18:
        return "Boa noite"
    if moment.hour >= 12:
        return "Boa tarde"
    return "Bom dia"


class ChatSession:
    """
    Transcript and send logic for one open chat panel.

    Usage:
        session = ChatSession(profile, AskAIClient(access_token=token), faq_source=service)
        session.open()
        session.send_message("Qual o horário de silêncio?")
        for msg in session.messages: ...
    """

    def __init__(
        self,
        profile: UserProfile,
        answers: AnswerProvider,
        faq_source: FaqSource | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.profile = profile
        self.answers = answers
        self.faq_source = faq_source
        self._now = now

        self.messages: list[ChatMessage] = []
        self.input_text = ""
        self.sending = False
        self._opened = False

    # --- Transcript helpers ---

    def _append(
        self,
        sender: Sender,
        text: str,
        is_error: bool = False,
        options: list[ChatOption] | None = None,
    ) -> ChatMessage:
        message = ChatMessage(
            sender=sender,
            text=text,
            timestamp=self._now(),
            is_error=is_error,
            options=options or [],
        )
        self.messages.append(message)
        return message

    def _error(self, text: str) -> ChatMessage:
        return self._append("bot", text, is_error=True)

    # --- Lifecycle ---

    def open(self) -> None:
        """Show the greeting the first time the panel opens."""
        if self._opened:
            return
        self._opened = True
        self._greet()

    def close(self) -> None:
        """Drop the transcript; the next open() starts over."""
        self.messages = []
        self.input_text = ""
        self._opened = False

    def restart(self) -> None:
        """Replace the transcript with a fresh greeting."""
        self.messages = []
        self._greet()

    def _greet(self) -> None:
        text = render_prompt(
            "chat_greeting_v1",
            greeting=greeting_for(self._now()),
            first_name=self.profile.first_name,
        )
        self._append("bot", text, options=self._category_options())

    def _category_options(self) -> list[ChatOption]:
        if self.faq_source is None:
            return []
        try:
            categories = self.faq_source.list_faq_categories()
        except Exception as e:
            logger.warning(f"Could not load FAQ categories: {type(e).__name__}: {e}")
            return []
        return [ChatOption(label=c, value=c, type="category") for c in sorted(set(categories))]

    # --- Free text ---

    def send_message(self, text: str | None = None) -> ChatMessage | None:
        """
        Send a question to ask-ai.

        Uses the current input text when ``text`` is omitted. Validation
        failures add one bot error message and send nothing. A successful
        round trip adds exactly one user message and one bot message.

        Returns:
            The bot message added, or None when a request is already in flight
        """
        if self.sending:
            return None

        query = (self.input_text if text is None else text or "").strip()
        if not query:
            return self._error(EMPTY_QUERY_MESSAGE)

        if not self.profile.condominio_id:
            return self._error(NO_CONDOMINIO_MESSAGE)

        self._append("user", query)
        self.input_text = ""
        self.sending = True
        try:
            raw_answer = self.answers.ask(query, self.profile.first_name)
        except Exception as e:
            logger.error(f"ask-ai failed: {type(e).__name__}: {e}")
            return self._error(REQUEST_FAILED_MESSAGE)
        finally:
            self.sending = False

        answer = sanitize_answer(raw_answer)
        if not answer:
            return self._error(MISSING_ANSWER_MESSAGE)
        return self._append("bot", answer)

    # --- Quick replies ---

    def select_option(self, option: ChatOption) -> ChatMessage | None:
        """
        Handle a quick-reply click.

        Returns:
            The last bot message added, or None when ignored
        """
        if self.sending:
            return None

        if option.value == RESTART_VALUE:
            self.restart()
            return self.messages[-1]

        if self.faq_source is None:
            return None

        self._append("user", option.label)
        try:
            if option.type == "category":
                return self._show_questions(option.value)
            return self._show_answer(option.value)
        except Exception as e:
            logger.error(f"FAQ lookup failed: {type(e).__name__}: {e}")
            return self._error(REQUEST_FAILED_MESSAGE)

    def _show_questions(self, category: str) -> ChatMessage:
        rows = self.faq_source.list_faq_questions(category, limit=FAQ_QUESTIONS_LIMIT)
        options = [
            ChatOption(label=row["question"], value=str(row["id"]), type="question") for row in rows
        ]
        return self._append(
            "bot",
            f"Entendido! Aqui estão as dúvidas mais comuns sobre **{category}**:",
            options=options,
        )

    def _show_answer(self, faq_id: str) -> ChatMessage:
        answer = sanitize_answer(self.faq_source.get_faq_answer(faq_id))
        self._append("bot", answer or MISSING_ANSWER_MESSAGE)
        return self._append(
            "bot",
            FOLLOW_UP_MESSAGE,
            options=[ChatOption(label="Voltar ao Início", value=RESTART_VALUE, type="category")],
        )
