"""Tests for canned replies, notifications, and restaurant data loading."""

import json

from order_agent.prompts.prompt_templates import (
    STATUS_REPLIES,
    build_status_notification,
    build_status_reply,
    build_system_info,
)
from order_agent.schemas.conversation_schema import AgentContext
from order_agent.schemas.order_schema import LastOrderSnapshot, OrderStatus
from order_agent.tools.restaurant import load_restaurant_data


class TestStatusReplies:
    def test_known_statuses_use_canned_phrasing(self):
        assert build_status_reply("SAIU PRA ENTREGA") == STATUS_REPLIES[OrderStatus.OUT_FOR_DELIVERY]
        assert build_status_reply(" aceito ") == STATUS_REPLIES[OrderStatus.ACCEPTED]
        assert build_status_reply("PENDENTE CONFIRMACAO") == STATUS_REPLIES[OrderStatus.PENDING]

    def test_unknown_status_is_echoed(self):
        assert "EM PREPARO" in build_status_reply("EM PREPARO")

    def test_empty_status(self):
        assert "sem status" in build_status_reply("")


class TestStatusNotifications:
    def test_accepted(self):
        text = build_status_notification(OrderStatus.ACCEPTED, "Ana")
        assert text.startswith("Olá, Ana!")
        assert "ACEITO" in text

    def test_out_for_delivery_without_name(self):
        text = build_status_notification(OrderStatus.OUT_FOR_DELIVERY, "")
        assert text.startswith("Olá!")
        assert "SAIU PARA ENTREGA" in text

    def test_pending_is_not_notifiable(self):
        assert build_status_notification(OrderStatus.PENDING, "Ana") is None


class TestSystemInfo:
    def test_minimal_context(self):
        info = build_system_info(AgentContext(message="oi"))
        assert info.split("\n\n") == ["oi", "[INFO DO SISTEMA: PRIMEIRA_INTERACAO=NAO]"]

    def test_full_context(self):
        context = AgentContext(
            message="segue o comprovante",
            has_media=True,
            customer_name="Ana",
            phone="5541999998888",
            last_order=LastOrderSnapshot(name="Ana", region="Centro", address="Rua X, 1"),
            address_confirmed=True,
            first_interaction=True,
        )
        info = build_system_info(context)
        assert "PRIMEIRA_INTERACAO=SIM" in info
        assert '"Ana"' in info
        assert "HOUVE_COMPROVANTE_PIX=SIM" in info
        assert "ULTIMO_PEDIDO_PLANILHA=" in info
        assert "ENDERECO_JA_CONFIRMADO=SIM" in info


class TestRestaurantData:
    def test_loads_data_directory(self, tmp_path):
        (tmp_path / "cardapio.json").write_text(
            json.dumps([{"nome": "Pizza Calabresa", "preco": 45.0}]), encoding="utf-8"
        )
        (tmp_path / "taxas.json").write_text(
            json.dumps([{"regiao": "Centro", "taxa": 5.0}]), encoding="utf-8"
        )
        (tmp_path / "config.json").write_text(
            json.dumps({"nome": "Cantina da Nona", "pix_key": "chave-pix"}), encoding="utf-8"
        )
        data = load_restaurant_data(str(tmp_path))
        assert data.name == "Cantina da Nona"
        assert data.pix_key == "chave-pix"
        assert data.menu[0]["nome"] == "Pizza Calabresa"
        assert data.delivery_fees[0]["regiao"] == "Centro"

    def test_missing_files_fall_back(self, tmp_path):
        data = load_restaurant_data(str(tmp_path))
        assert data.menu == []
        assert data.delivery_fees == []
        assert data.name

    def test_invalid_json_falls_back(self, tmp_path):
        (tmp_path / "cardapio.json").write_text("{not json", encoding="utf-8")
        data = load_restaurant_data(str(tmp_path))
        assert data.menu == []
