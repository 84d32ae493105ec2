import asyncio
from typing import Any

import pytest
from aiokafka.errors import KafkaConnectionError
from twilio.base.exceptions import TwilioException

from services.route_relay.app import deps, emergency
from services.route_relay.app.emergency import EmergencyNotifier, format_alert
from services.route_relay.app.schemas import GeoPoint

LOCATION = GeoPoint(lat=11.0168, lng=76.9558)


class RecordingSms:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[str] = []
        self.fail = fail

    def send(self, body: str) -> None:
        if self.fail:
            raise TwilioException("Unable to create record")
        self.sent.append(body)


class DummyProducer:
    messages: list[dict[str, Any]] = []

    def __init__(self, brokers: str) -> None:
        self.brokers = brokers

    async def __aenter__(self) -> "DummyProducer":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        pass

    async def send(self, topic: str, key: Any, value: Any) -> None:
        self.messages.append({"topic": topic, "key": key, "value": value})


@pytest.fixture(autouse=True)
def producer(monkeypatch: pytest.MonkeyPatch) -> type[DummyProducer]:
    DummyProducer.messages = []
    monkeypatch.setattr(emergency, "KafkaProducer", DummyProducer)
    return DummyProducer


def test_format_alert() -> None:
    assert format_alert("Help", LOCATION) == (
        "EMERGENCY ALERT: Help\n"
        "Location: https://maps.google.com/maps?q=11.0168,76.9558"
    )


def test_alert_sends_sms() -> None:
    sms = RecordingSms()
    notifier = EmergencyNotifier(sms, clock=lambda: 1700000000.5)

    result = asyncio.run(notifier.raise_alert("user-1", LOCATION, "Help"))

    assert result.success is True
    assert result.message == "Emergency alert sent"
    assert result.emergency_id == "EMG-1700000000500"
    assert sms.sent == [format_alert("Help", LOCATION)]


def test_alert_survives_sms_failure() -> None:
    notifier = EmergencyNotifier(RecordingSms(fail=True), clock=lambda: 1.0)

    result = asyncio.run(notifier.raise_alert("user-1", LOCATION, "Help"))

    assert result.success is True
    assert result.emergency_id == "EMG-1000"


def test_alert_without_sms_configured() -> None:
    result = asyncio.run(EmergencyNotifier(None).raise_alert("u", LOCATION, ""))
    assert result.success is True
    assert result.emergency_id.startswith("EMG-")


def test_alert_published_to_kafka(producer: type[DummyProducer]) -> None:
    notifier = EmergencyNotifier(
        RecordingSms(), kafka_brokers="kafka:9092", clock=lambda: 2.0
    )

    asyncio.run(notifier.raise_alert("user-7", LOCATION, "Fell down"))

    assert len(producer.messages) == 1
    msg = producer.messages[0]
    assert msg["topic"] == "emergency.raised"
    assert msg["key"] == "EMG-2000"
    assert msg["value"]["user_id"] == "user-7"
    assert msg["value"]["sms"] == "sent"
    assert msg["value"]["lat"] == 11.0168


def test_no_kafka_without_brokers(producer: type[DummyProducer]) -> None:
    asyncio.run(EmergencyNotifier(None).raise_alert("u", LOCATION, "x"))
    assert producer.messages == []


def test_alert_survives_kafka_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingProducer(DummyProducer):
        async def send(self, topic: str, key: Any, value: Any) -> None:
            raise KafkaConnectionError("broker unreachable")

    monkeypatch.setattr(emergency, "KafkaProducer", FailingProducer)
    sms = RecordingSms()
    notifier = EmergencyNotifier(sms, kafka_brokers="kafka:9092", clock=lambda: 3.0)

    result = asyncio.run(notifier.raise_alert("user-1", LOCATION, "Help"))

    assert result.success is True
    assert result.emergency_id == "EMG-3000"
    assert sms.sent == [format_alert("Help", LOCATION)]


def test_notifier_from_settings(
    monkeypatch: pytest.MonkeyPatch, producer: type[DummyProducer]
) -> None:
    class TestSettings(deps.Settings):
        kafka_brokers = "kafka:9092"
        emergency_topic = "alerts.test"
        twilio_account_sid = None

    monkeypatch.setattr(deps, "get_settings", lambda: TestSettings())
    emergency.get_sms_sender.cache_clear()
    try:
        notifier = emergency.get_notifier()
        asyncio.run(notifier.raise_alert("user-2", LOCATION, "Lost"))
    finally:
        emergency.get_sms_sender.cache_clear()

    assert [m["topic"] for m in producer.messages] == ["alerts.test"]
    assert producer.messages[0]["value"]["sms"] == "disabled"
