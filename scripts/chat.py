#!/usr/bin/env python3
"""
Terminal chat with Norma against a running API.

Type a question, a number to pick one of the listed options, or an empty
line to quit.

Usage:
    PYTHONPATH=src python scripts/chat.py --name "Ana Souza" --condominio <uuid>
    ASK_AI_URL=https://api.example.com PYTHONPATH=src python scripts/chat.py --no-faq
"""

import argparse

from dotenv import load_dotenv

load_dotenv()

from api.services.supabase import SupabaseService
from chatbot import AskAIClient, ChatMessage, ChatSession, UserProfile
from knowledge.config import DEFAULT_CONDOMINIO_ID


def print_message(message: ChatMessage) -> None:
    prefix = "Você" if message.sender == "user" else "Norma"
    marker = " [erro]" if message.is_error else ""
    print(f"\n{prefix}{marker}: {message.text}")
    for i, option in enumerate(message.options, start=1):
        print(f"  {i}. {option.label}")


def main():
    parser = argparse.ArgumentParser(description="Chat with Norma from the terminal")
    parser.add_argument("--name", default=None, help="Resident full name")
    parser.add_argument("--condominio", default=DEFAULT_CONDOMINIO_ID, help="Resident condominium id")
    parser.add_argument("--token", default=None, help="Bearer token sent to ask-ai")
    parser.add_argument("--no-faq", action="store_true", help="Disable the FAQ quick replies")
    args = parser.parse_args()

    profile = UserProfile(full_name=args.name, condominio_id=args.condominio)
    faq_source = None if args.no_faq else SupabaseService()

    with AskAIClient(access_token=args.token) as client:
        session = ChatSession(profile, client, faq_source=faq_source)
        session.open()
        seen: set[str] = set()

        while True:
            for message in session.messages:
                if message.id not in seen:
                    print_message(message)
                    seen.add(message.id)

            try:
                text = input("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                break
            if not text:
                break

            options = session.messages[-1].options if session.messages else []
            if text.isdigit() and 1 <= int(text) <= len(options):
                session.select_option(options[int(text) - 1])
            else:
                session.send_message(text)

        session.close()


if __name__ == "__main__":
    main()
