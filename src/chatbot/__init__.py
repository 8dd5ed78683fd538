"""
Resident chatbot.

Server side: ``answer_query`` answers a question from the knowledge base.
Client side: ``ChatSession`` keeps the conversation and calls ask-ai.
"""

from chatbot.client import AskAIClient, AskAIError
from chatbot.rag import AnswerResult, answer_query
from chatbot.sanitize import sanitize_answer
from chatbot.session import ChatMessage, ChatOption, ChatSession, UserProfile

__all__ = [
    "AnswerResult",
    "AskAIClient",
    "AskAIError",
    "ChatMessage",
    "ChatOption",
    "ChatSession",
    "UserProfile",
    "answer_query",
    "sanitize_answer",
]
