"""
WealthDesk — Chat Turns

One advisor question in, one assistant reply out. The client context is
built first, so an unknown or foreign client stops the turn before any model
call. The user/assistant pair is persisted only when the reply succeeds.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from src.context.builder import ContextBuilder
from src.data.store import ClientStore
from src.errors import NotFound
from src.llm.narrator import AdvisorAssistant
from src.models.domain import ChatMessage, Principal

logger = logging.getLogger(__name__)

# Older turns are dropped from the replayed history beyond this many messages
MAX_HISTORY_MESSAGES = 20


@dataclass
class ChatReply:
    session_id: str
    reply: str
    messages: List[ChatMessage]


class ChatService:

    def __init__(self, store: ClientStore, builder: ContextBuilder, assistant: AdvisorAssistant):
        self.store = store
        self.builder = builder
        self.assistant = assistant

    def ask(
        self,
        principal: Principal,
        client_id: str,
        question: str,
        session_id: Optional[str] = None,
    ) -> ChatReply:
        context = self.builder.build(principal, client_id)

        session_id = session_id or str(uuid.uuid4())
        history = self.store.list_chat_messages(principal.advisor_id, client_id, session_id)
        history = history[-MAX_HISTORY_MESSAGES:]

        asked = ChatMessage(str(uuid.uuid4()), client_id, principal.advisor_id, session_id, "user", question)
        reply = self.assistant.answer(question, context, history)
        answered = ChatMessage(str(uuid.uuid4()), client_id, principal.advisor_id, session_id, "assistant", reply)

        pair = [asked, answered]
        self.store.save_chat_messages(pair)
        logger.info("Chat turn for %s saved to session %s", client_id, session_id)
        return ChatReply(session_id=session_id, reply=reply, messages=pair)

    def history(self, principal: Principal, client_id: str, session_id: Optional[str] = None) -> List[ChatMessage]:
        # foreign clients look exactly like missing ones
        if self.store.get_client(principal.advisor_id, client_id) is None:
            raise NotFound(f"Client '{client_id}' not found")
        return self.store.list_chat_messages(principal.advisor_id, client_id, session_id)
