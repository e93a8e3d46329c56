import pytest
import requests

from wabridge.core.errors import ProviderUnavailableError
from wabridge.services.providers import BaileysProviderService
from wabridge.services.providers.error_handling import ChannelRecovery, RecoveryState

from tests.conftest import CHANNEL_PHONE, GATEWAY_URL, GROUP_ID, make_response, requested_urls

CONNECTION_URL = f"{GATEWAY_URL}/connections/{CHANNEL_PHONE}"


def gateway(failing_actions=(), reconnect_status=200):
    """request() side effect failing the listed connection actions"""
    def _request(method, url, **kwargs):
        if url == CONNECTION_URL:
            return make_response(reconnect_status, {})
        if url.rsplit("/", 1)[-1] in failing_actions:
            return make_response(500, {"error": "boom"})
        return make_response(200, {})
    return _request


def reconnect_calls(http):
    return [url for url in requested_urls(http) if url == CONNECTION_URL]


@pytest.mark.parametrize("reconnect_status", [200, 500])
def test_failure_reconnects_once_and_reraises(channel, db, http, reconnect_status):
    http.request.side_effect = gateway({"update-group-subject"}, reconnect_status=reconnect_status)
    provider = BaileysProviderService(channel, db=db, http=http)

    with pytest.raises(ProviderUnavailableError):
        provider.update_group_name(GROUP_ID, "New name")

    assert len(reconnect_calls(http)) == 1
    db.refresh(channel)
    assert channel.connection == "close"


def test_failed_operation_is_never_retried(channel, db, http):
    http.request.side_effect = gateway({"presence"})
    provider = BaileysProviderService(channel, db=db, http=http)

    with pytest.raises(ProviderUnavailableError):
        provider.update_presence("online")

    presence_calls = [url for url in requested_urls(http) if url.endswith("/presence")]
    assert len(presence_calls) == 1


def test_transport_error_triggers_recovery(channel, db, http):
    def _request(method, url, **kwargs):
        if url == CONNECTION_URL:
            return make_response(200, {})
        raise requests.ConnectionError("connection reset")

    http.request.side_effect = _request
    provider = BaileysProviderService(channel, db=db, http=http)

    with pytest.raises(ProviderUnavailableError):
        provider.modify_group_participants(GROUP_ID, "5511999", "add")

    assert len(reconnect_calls(http)) == 1


def test_failing_setup_does_not_recurse(channel, db, http):
    http.request.return_value = make_response(500, {})
    provider = BaileysProviderService(channel, db=db, http=http)

    with pytest.raises(ProviderUnavailableError):
        provider.setup_channel_provider()

    # the failed setup plus one reconnection attempt
    assert len(reconnect_calls(http)) == 2


def test_participant_helpers_recover_once(channel, db, http):
    http.request.side_effect = gateway({"modify-group-participants"}, reconnect_status=500)
    provider = BaileysProviderService(channel, db=db, http=http)

    with pytest.raises(ProviderUnavailableError):
        provider.promote_group_admin(GROUP_ID, "5511999")

    assert len(reconnect_calls(http)) == 1


def test_best_effort_reads_do_not_trigger_recovery(channel, db, http):
    http.request.return_value = make_response(500, {})
    provider = BaileysProviderService(channel, db=db, http=http)

    assert provider.get_profile_pic("5511999@s.whatsapp.net") is None
    assert provider.on_whatsapp("5511999")["exists"] is False

    assert reconnect_calls(http) == []
    db.refresh(channel)
    assert channel.connection == "open"


def test_recovery_keeps_original_error_when_marking_closed_fails():
    def mark_closed():
        raise RuntimeError("database gone")

    reconnects = []
    recovery = ChannelRecovery(RecoveryState(), on_failure=mark_closed, reconnect=lambda: reconnects.append(1))

    @recovery.wrap
    def operation():
        raise ValueError("original")

    with pytest.raises(ValueError, match="original"):
        operation()
    assert reconnects == [1]


def test_recovery_guard_skips_nested_reconnection():
    state = RecoveryState()
    reconnects = []

    def reconnect():
        reconnects.append(1)
        recovery.handle_failure()

    recovery = ChannelRecovery(state, on_failure=lambda: None, reconnect=reconnect)
    recovery.handle_failure()

    assert reconnects == [1]
    assert state.handling_error is False


def test_success_passes_result_through(channel, http):
    provider = BaileysProviderService(channel, http=http)
    assert provider.update_group_description(GROUP_ID, "desc") is True
    assert reconnect_calls(http) == []
