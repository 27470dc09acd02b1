"""Tests for intent classification and session inference."""

from typing import Optional

import pytest

from order_agent.conversation.intent_router import (
    ClosingClassifier,
    IntentRouter,
    StatusQueryClassifier,
)
from order_agent.schemas.conversation_schema import Intent
from order_agent.schemas.customer_schema import Role, Session


class TestClosingClassifier:
    def setup_method(self):
        self.classifier = ClosingClassifier()
        self.session = Session()

    @pytest.mark.parametrize(
        "text", ["obrigado!", "Valeu", "ok", "beleza, até mais", "  Perfeito  ", "tmj", "obrigado pelo pedido"]
    )
    def test_closing_messages(self, text):
        assert self.classifier.classify(self.session, text) == Intent.CLOSING

    def test_long_message_is_not_closing(self):
        text = "ok, mas queria trocar a pizza por uma de frango com catupiry grande"
        assert self.classifier.classify(self.session, text) is None

    def test_confirmation_words_are_not_closing(self):
        assert self.classifier.classify(self.session, "sim, pode confirmar") is None
        assert self.classifier.classify(self.session, "certo") is None

    def test_empty_is_not_closing(self):
        assert self.classifier.classify(self.session, "") is None

    @pytest.mark.parametrize("text", ["ok, pode confirmar", "ok", "beleza", "perfeito, fecha"])
    def test_acknowledgement_answers_pending_confirmation(self, text):
        self.session.add_turn(Role.ASSISTANT, "Perfeito! Posso confirmar seu pedido assim?")
        assert self.classifier.classify(self.session, text) is None

    def test_thanks_still_closes_while_confirmation_pending(self):
        self.session.add_turn(Role.ASSISTANT, "Quer adicionar mais algum item ou posso fechar assim?")
        assert self.classifier.classify(self.session, "obrigado") == Intent.CLOSING

    def test_acknowledgement_after_confirmed_order_is_closing(self):
        self.session.add_turn(Role.ASSISTANT, "Pedido confirmado! Já vamos preparar. 🍕")
        assert self.classifier.classify(self.session, "ok") == Intent.CLOSING
        assert self.classifier.classify(self.session, "ok, obrigado") == Intent.CLOSING


class TestStatusQueryClassifier:
    def setup_method(self):
        self.classifier = StatusQueryClassifier()
        self.session = Session()

    @pytest.mark.parametrize(
        "text",
        [
            "qual o status do meu pedido?",
            "Meu pedido já saiu?",
            "cadê meu pedido",
            "o pedido está a caminho?",
            "já saiu pra entrega?",
            "tem previsão de entrega?",
            "quando chega?",
            "quanto tempo pra chegar",
        ],
    )
    def test_status_questions(self, text):
        assert self.classifier.classify(self.session, text) == Intent.STATUS_QUERY

    def test_new_order_is_not_status(self):
        assert self.classifier.classify(self.session, "quero uma pizza calabresa") is None


class TestIntentRouter:
    def setup_method(self):
        self.router = IntentRouter()
        self.session = Session()

    def test_generic_fallback(self):
        assert self.router.classify(self.session, "quero uma pizza") == Intent.GENERIC

    def test_closing_wins_over_status(self):
        assert self.router.classify(self.session, "ok, e o status do pedido?") == Intent.CLOSING

    def test_status_query(self):
        assert self.router.classify(self.session, "qual o status do pedido") == Intent.STATUS_QUERY

    def test_custom_classifiers(self):
        class AlwaysStatus:
            def classify(self, session: Session, text: str) -> Optional[Intent]:
                return Intent.STATUS_QUERY

        router = IntentRouter(classifiers=[AlwaysStatus()])
        assert router.classify(self.session, "obrigado") == Intent.STATUS_QUERY

    def test_no_classifiers_means_generic(self):
        router = IntentRouter(classifiers=[])
        assert router.classify(self.session, "obrigado") == Intent.GENERIC


class TestSessionInference:
    def setup_method(self):
        self.router = IntentRouter()
        self.session = Session()

    def test_answer_to_name_question(self):
        self.session.add_turn(Role.ASSISTANT, "Olá! Qual o seu nome, por favor?")
        self.router.infer_session_updates(self.session, "Ana Paula")
        assert self.session.customer_name == "Ana Paula"

    def test_no_name_question_keeps_name(self):
        self.session.add_turn(Role.ASSISTANT, "O que vai querer hoje?")
        self.router.infer_session_updates(self.session, "Ana Paula")
        assert self.session.customer_name is None

    def test_explicit_name(self):
        self.router.infer_session_updates(self.session, "Oi, meu nome é Carlos.")
        assert self.session.customer_name == "Carlos"

    def test_me_chamo(self):
        self.router.infer_session_updates(self.session, "me chamo Júlia")
        assert self.session.customer_name == "Júlia"

    def test_address_reconfirmation(self):
        self.session.add_turn(
            Role.ASSISTANT, "Seu endereço e região continuam como Rua das Flores, 45 - Centro?"
        )
        self.router.infer_session_updates(self.session, "sim")
        assert self.session.address_confirmed is True

    def test_address_confirmation_needs_question(self):
        self.session.add_turn(Role.ASSISTANT, "Posso confirmar seu pedido?")
        self.router.infer_session_updates(self.session, "sim")
        assert self.session.address_confirmed is False

    def test_address_confirmation_is_sticky(self):
        self.session.address_confirmed = True
        self.session.add_turn(Role.ASSISTANT, "Mais alguma coisa?")
        self.router.infer_session_updates(self.session, "não")
        assert self.session.address_confirmed is True
