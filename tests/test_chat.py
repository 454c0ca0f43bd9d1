import anthropic
import httpx
import pytest

from src.context.builder import ContextBuilder
from src.errors import NotFound, UpstreamFailure
from src.llm.chat import ChatService
from src.llm.narrator import AdvisorAssistant
from tests.helpers import FakeAnthropic, text_response


def make_service(store, settings, fake):
    return ChatService(store, ContextBuilder(store), AdvisorAssistant(settings, client=fake))


def test_turn_is_persisted_with_session(store, settings, principal):
    fake = FakeAnthropic([text_response("About $945k.")])
    service = make_service(store, settings, fake)

    result = service.ask(principal, "sarah", "What is Sarah worth?")

    assert result.reply == "About $945k."
    assert result.session_id
    saved = store.list_chat_messages(principal.advisor_id, "sarah", result.session_id)
    assert [(m.role, m.content) for m in saved] == [
        ("user", "What is Sarah worth?"),
        ("assistant", "About $945k."),
    ]


def test_follow_up_reuses_session_history(store, settings, principal):
    fake = FakeAnthropic([text_response("First."), text_response("Second.")])
    service = make_service(store, settings, fake)

    first = service.ask(principal, "sarah", "Q1")
    second = service.ask(principal, "sarah", "Q2", session_id=first.session_id)

    assert second.session_id == first.session_id
    replayed = fake.messages.calls[1]["messages"]
    assert [m["content"] for m in replayed[:2]] == ["Q1", "First."]
    assert len(service.history(principal, "sarah", first.session_id)) == 4


def test_model_failure_persists_nothing(store, settings, principal):
    error = anthropic.APITimeoutError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
    service = make_service(store, settings, FakeAnthropic(error=error))

    with pytest.raises(UpstreamFailure):
        service.ask(principal, "sarah", "Anything?", session_id="s-1")
    assert store.list_chat_messages(principal.advisor_id, "sarah") == []


def test_foreign_client_stops_before_model_call(store, settings, other_principal):
    fake = FakeAnthropic([text_response("should not be used")])
    service = make_service(store, settings, fake)

    with pytest.raises(NotFound):
        service.ask(other_principal, "sarah", "Tell me about Sarah")
    assert fake.messages.calls == []


def test_history_of_foreign_client_is_not_found(store, settings, other_principal):
    service = make_service(store, settings, FakeAnthropic())
    with pytest.raises(NotFound):
        service.history(other_principal, "sarah")
