"""Экстренные оповещения: SMS через Twilio и событие в Kafka."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Callable, Protocol

from aiokafka.errors import KafkaError
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from src.common.kafka import KafkaProducer
from src.common.metrics import EMERGENCY_ALERTS

from . import deps
from .schemas import EmergencyResponse, GeoPoint

logger = logging.getLogger(__name__)

SERVICE_NAME = "route_relay"
ALERT_MESSAGE = "Emergency alert sent"


class SmsSender(Protocol):
    """Интерфейс отправки SMS."""

    def send(self, body: str) -> None:
        """Отправить сообщение экстренному контакту."""


class TwilioSmsSender:
    """Отправка SMS экстренному контакту через Twilio."""

    def __init__(self, settings: deps.Settings) -> None:
        self._client = TwilioClient(
            settings.twilio_account_sid, settings.twilio_auth_token
        )
        self._from = settings.twilio_phone_number
        self._to = settings.emergency_contact

    def send(self, body: str) -> None:
        self._client.messages.create(body=body, from_=self._from, to=self._to)


@lru_cache
def get_sms_sender() -> SmsSender | None:
    """Вернуть отправщика SMS, если Twilio настроен, иначе `None`."""

    settings = deps.get_settings()
    if not (settings.twilio_account_sid and settings.emergency_contact):
        return None
    return TwilioSmsSender(settings)


def format_alert(message: str, location: GeoPoint) -> str:
    return (
        f"EMERGENCY ALERT: {message}\n"
        f"Location: https://maps.google.com/maps?q={location.lat},{location.lng}"
    )


class EmergencyNotifier:
    """Рассылает экстренное оповещение по всем настроенным каналам.

    Сбой канала доставки не прерывает запрос: ошибка пишется в лог, клиент
    всё равно получает идентификатор оповещения.
    """

    def __init__(
        self,
        sms: SmsSender | None,
        *,
        kafka_brokers: str | None = None,
        topic: str = "emergency.raised",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sms = sms
        self._kafka_brokers = kafka_brokers
        self._topic = topic
        self._clock = clock

    async def _send_sms(self, body: str) -> str:
        if self._sms is None:
            return "disabled"
        try:
            await asyncio.to_thread(self._sms.send, body)
        except (TwilioException, OSError) as exc:
            logger.error("Не удалось отправить SMS: %s", exc)
            return "failed"
        logger.info("Экстренное SMS отправлено")
        return "sent"

    async def _publish(self, payload: dict[str, object]) -> None:
        if not self._kafka_brokers:
            return
        try:
            async with KafkaProducer(self._kafka_brokers) as producer:
                await producer.send(self._topic, payload["emergency_id"], payload)
        except KafkaError:
            logger.exception("Не удалось опубликовать событие %s", self._topic)

    async def raise_alert(
        self, user_id: str | int, location: GeoPoint, message: str
    ) -> EmergencyResponse:
        emergency_id = f"EMG-{int(self._clock() * 1000)}"
        logger.warning(
            "EMERGENCY ALERT - User: %s, location: %s, %s",
            user_id,
            location.lat,
            location.lng,
        )
        sms_status = await self._send_sms(format_alert(message, location))
        EMERGENCY_ALERTS.labels(SERVICE_NAME, sms_status).inc()
        await self._publish(
            {
                "emergency_id": emergency_id,
                "user_id": user_id,
                "lat": location.lat,
                "lng": location.lng,
                "message": message,
                "sms": sms_status,
            }
        )
        return EmergencyResponse(
            success=True, message=ALERT_MESSAGE, emergency_id=emergency_id
        )


def get_notifier() -> EmergencyNotifier:
    settings = deps.get_settings()
    return EmergencyNotifier(
        get_sms_sender(),
        kafka_brokers=settings.kafka_brokers,
        topic=settings.emergency_topic,
    )
