from datetime import datetime

import pytest
import requests

from wabridge.core.errors import ProviderUnavailableError, ValidationError
from wabridge.models import Message
from wabridge.services.providers import BaileysProviderService

from tests.conftest import CHANNEL_PHONE, GATEWAY_URL, GROUP_ID, make_response

CONNECTION_URL = f"{GATEWAY_URL}/connections/{CHANNEL_PHONE}"


@pytest.fixture
def provider(channel, db, http):
    return BaileysProviderService(channel, db=db, http=http)


def sent_json(http, index=-1):
    return http.request.call_args_list[index].kwargs["json"]


def test_every_request_carries_the_api_key(provider, http):
    provider.update_presence("online")

    headers = http.request.call_args.kwargs["headers"]
    assert headers["x-api-key"] == "test-api-key"
    assert headers["Content-Type"] == "application/json"


def test_setup_channel_provider_registers_webhook(provider, http):
    assert provider.setup_channel_provider() is True

    method, url = http.request.call_args.args
    assert (method, url) == ("POST", CONNECTION_URL)
    assert sent_json(http) == {
        "webhookUrl": "http://app.test/webhooks/whatsapp",
        "webhookVerifyToken": "verify-me",
        "includeMedia": False,
    }


def test_disconnect_channel_provider(provider, http):
    assert provider.disconnect_channel_provider() is True
    assert http.request.call_args.args == ("DELETE", CONNECTION_URL)


def test_send_message_returns_id_and_writes_back_timestamp(provider, http, db, direct_conversation):
    message = Message(conversation_id=direct_conversation.id, content="hi")
    db.add(message)
    db.commit()
    http.request.return_value = make_response(200, {
        "data": {"key": {"id": "WA-123"}, "messageTimestamp": 1704067200},
    })

    message_id = provider.send_message("+5511987654321", message)

    assert message_id == "WA-123"
    assert http.request.call_args.args == ("POST", f"{CONNECTION_URL}/send-message")
    assert sent_json(http) == {
        "jid": "5511987654321@s.whatsapp.net",
        "messageContent": {"text": "hi"},
    }
    db.refresh(message)
    assert message.external_created_at == datetime(2024, 1, 1)


def test_unsupported_message_is_flagged_and_skipped(provider, http, db, direct_conversation):
    message = Message(conversation_id=direct_conversation.id)
    db.add(message)
    db.commit()

    assert provider.send_message("+5511987654321", message) is None

    http.request.assert_not_called()
    db.refresh(message)
    assert message.is_unsupported is True


def test_set_presence_maps_typing_events(provider, http):
    provider.set_presence("+5511987654321", "conversation.typing_on")
    assert sent_json(http) == {"toJid": "5511987654321@s.whatsapp.net", "type": "composing"}

    provider.set_presence("+5511987654321", "paused")
    assert sent_json(http)["type"] == "paused"


def test_update_presence_maps_busy_to_unavailable(provider, http):
    provider.update_presence("busy")
    assert http.request.call_args.args == ("PATCH", f"{CONNECTION_URL}/presence")
    assert sent_json(http) == {"type": "unavailable"}


def test_unknown_presence_is_rejected_before_the_network(provider, http):
    with pytest.raises(ValidationError):
        provider.update_presence("away")
    http.request.assert_not_called()


def test_read_messages_sends_message_keys(provider, http, db, direct_conversation):
    incoming = Message(conversation_id=direct_conversation.id, source_id="IN-1", message_type="incoming", content="a")
    outgoing = Message(conversation_id=direct_conversation.id, source_id="OUT-1", message_type="outgoing", content="b")
    db.add_all([incoming, outgoing])
    db.commit()

    provider.read_messages([incoming, outgoing], recipient_id="+5511987654321")

    assert sent_json(http) == {"keys": [
        {"id": "IN-1", "remoteJid": "5511987654321@s.whatsapp.net", "fromMe": False},
        {"id": "OUT-1", "remoteJid": "5511987654321@s.whatsapp.net", "fromMe": True},
    ]}


def test_unread_message_uses_chat_modify(provider, http, db, direct_conversation):
    message = Message(
        conversation_id=direct_conversation.id,
        source_id="IN-2",
        message_type="incoming",
        content="a",
        external_created_at=datetime(2024, 1, 1),
    )
    db.add(message)
    db.commit()

    provider.unread_message("+5511987654321", message)

    body = sent_json(http)
    assert http.request.call_args.args == ("POST", f"{CONNECTION_URL}/chat-modify")
    assert body["jid"] == "5511987654321@s.whatsapp.net"
    assert body["mod"]["markRead"] is False
    assert body["mod"]["lastMessages"][0]["messageTimestamp"] == 1704067200


def test_on_whatsapp_defaults_to_not_registered(provider, http):
    http.request.return_value = make_response(200, [])
    assert provider.on_whatsapp("+5511987654321") == {
        "jid": "5511987654321@s.whatsapp.net",
        "exists": False,
    }

    http.request.return_value = make_response(200, [{"jid": "5511987654321@s.whatsapp.net", "exists": True}])
    assert provider.on_whatsapp("+5511987654321")["exists"] is True


def test_get_profile_pic(provider, http):
    http.request.return_value = make_response(200, {"data": {"profilePictureUrl": "https://pps.test/a.jpg"}})
    assert provider.get_profile_pic("5511987654321@s.whatsapp.net") == "https://pps.test/a.jpg"
    assert http.request.call_args.kwargs["params"] == {"jid": "5511987654321@s.whatsapp.net"}


def test_forward_message_returns_results(provider, http, db, direct_conversation):
    message = Message(conversation_id=direct_conversation.id, source_id="WA-7", content="fwd")
    db.add(message)
    db.commit()
    http.request.return_value = make_response(200, {"data": {"results": [{"jid": "x", "success": True}]}})

    results = provider.forward_message(message, ["+5511111111111", "222@lid"])

    assert results == [{"jid": "x", "success": True}]
    assert sent_json(http)["destinationJids"] == ["5511111111111@s.whatsapp.net", "222@lid"]


def test_get_group_info_parses_roster(provider, http):
    http.request.return_value = make_response(200, {
        "id": GROUP_ID,
        "subject": "Family",
        "desc": "Weekend plans",
        "participants": [{"id": "5511999", "isAdmin": True}],
    })

    info = provider.get_group_info("120363123456789123-1234567890")

    assert http.request.call_args.kwargs["params"] == {"jid": GROUP_ID}
    assert info.name == "Family"
    assert info.description == "Weekend plans"
    assert info.participants[0].is_admin is True


@pytest.mark.parametrize("operation, action", [
    ("add_group_participant", "add"),
    ("remove_group_participant", "remove"),
    ("promote_group_admin", "promote"),
    ("demote_group_admin", "demote"),
])
def test_participant_operations(provider, http, operation, action):
    assert getattr(provider, operation)(GROUP_ID, "+5511999") is True

    assert http.request.call_args.args == ("PATCH", f"{CONNECTION_URL}/modify-group-participants")
    assert sent_json(http) == {
        "jid": GROUP_ID,
        "participants": ["5511999@s.whatsapp.net"],
        "action": action,
    }


def test_rename_and_describe_group(provider, http):
    provider.update_group_name(GROUP_ID, "New name")
    assert sent_json(http) == {"jid": GROUP_ID, "subject": "New name"}

    provider.update_group_description(GROUP_ID, "New description")
    assert sent_json(http) == {"jid": GROUP_ID, "description": "New description"}


def test_non_success_status_raises_provider_unavailable(channel, http):
    provider = BaileysProviderService(channel, http=http)
    http.request.return_value = make_response(503, {"error": "down"})

    with pytest.raises(ProviderUnavailableError) as excinfo:
        provider.update_group_name(GROUP_ID, "x")
    assert excinfo.value.status_code == 503


def test_transport_failure_raises_provider_unavailable(channel, http):
    provider = BaileysProviderService(channel, http=http)
    http.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(ProviderUnavailableError):
        provider.update_presence("online")


def test_validate_provider_config(provider, http):
    http.request.return_value = make_response(401, {"error": "bad key"})
    assert provider.validate_provider_config() is False
    assert http.request.call_args.args == ("GET", f"{GATEWAY_URL}/status/auth")


def test_media_url(provider):
    assert provider.media_url("abc") == f"{GATEWAY_URL}/media/abc"


def test_provider_status_requires_configuration(monkeypatch):
    monkeypatch.setattr("wabridge.core.config.BAILEYS_PROVIDER_DEFAULT_URL", None)
    with pytest.raises(ProviderUnavailableError):
        BaileysProviderService.provider_status()


def test_provider_status_reports_gateway_state(monkeypatch, http):
    monkeypatch.setattr("wabridge.core.config.BAILEYS_PROVIDER_DEFAULT_URL", GATEWAY_URL)
    monkeypatch.setattr("wabridge.core.config.BAILEYS_PROVIDER_DEFAULT_API_KEY", "default-key")
    http.request.return_value = make_response(200, {"status": "ok"})

    assert BaileysProviderService.provider_status(http=http) == {"status": "ok"}
    assert http.request.call_args.args == ("GET", f"{GATEWAY_URL}/status")
