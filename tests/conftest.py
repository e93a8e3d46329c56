"""Shared fixtures: in-memory database, channel/conversation factories and a fake gateway."""
import json
import os

# Keep tests off any real database or gateway configured in .env
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
import requests
from unittest.mock import MagicMock
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wabridge.models import Base, Conversation, WhatsAppChannel, WhatsAppGroupMember

GATEWAY_URL = "http://gateway.test"
CHANNEL_PHONE = "5511900000000"
GROUP_ID = "120363123456789123-1234567890@g.us"


def make_response(status_code=200, body=None):
    """Real requests.Response carrying a JSON body"""
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; emit it ourselves so SAVEPOINT works
    @event.listens_for(engine, "connect")
    def disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def emit_begin(connection):
        connection.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def channel(db):
    channel = WhatsAppChannel(
        phone_number=CHANNEL_PHONE,
        provider="baileys",
        provider_config={
            "provider_url": GATEWAY_URL,
            "api_key": "test-api-key",
            "webhook_verify_token": "verify-me",
        },
        provider_connection={"connection": "open"},
        callback_webhook_url="http://app.test/webhooks/whatsapp",
    )
    db.add(channel)
    db.commit()
    return channel


@pytest.fixture
def group_conversation(db, channel):
    conversation = Conversation(
        channel_id=channel.id,
        contact_identifier=GROUP_ID,
        contact_name="Family",
        additional_attributes={},
    )
    db.add(conversation)
    db.commit()
    return conversation


@pytest.fixture
def direct_conversation(db, channel):
    conversation = Conversation(
        channel_id=channel.id,
        contact_identifier="+5511987654321",
        contact_name="Alice",
    )
    db.add(conversation)
    db.commit()
    return conversation


@pytest.fixture
def add_member(db):
    def _add(conversation, phone_number, name=None, is_admin=False):
        member = WhatsAppGroupMember(
            conversation_id=conversation.id,
            phone_number=phone_number,
            name=name,
            is_admin=is_admin,
        )
        db.add(member)
        db.commit()
        return member
    return _add


@pytest.fixture
def http():
    """Fake transport; every request succeeds with an empty JSON object unless overridden"""
    http = MagicMock()
    http.request.return_value = make_response(200, {})
    return http


def requested_urls(http):
    return [call.args[1] for call in http.request.call_args_list]
