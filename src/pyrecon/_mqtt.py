"""MQTT relay for change notifications between processes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from pyrecon.broadcast import ChangeBroadcaster
from pyrecon.config import MqttSettings
from pyrecon.state.events import ChangeNotification


def _default_client(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv5,
    )


class MqttChangeRelay:
    """Bridges a local :class:`ChangeBroadcaster` and an MQTT topic.

    Local notifications are published as JSON; notifications received from
    the broker are delivered to local subscribers, except for this
    broadcaster's own echoes. Remote deliveries run on paho's network
    thread, so subscribers must not assume the caller's thread.
    """

    def __init__(
        self,
        broadcaster: ChangeBroadcaster,
        settings: MqttSettings,
        *,
        client_factory: Callable[[str], mqtt.Client] = _default_client,
        logger: logging.Logger | None = None,
    ) -> None:
        self._broadcaster = broadcaster
        self._settings = settings
        self._client_factory = client_factory
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Connect, subscribe to the change topic and start forwarding."""
        self.stop()
        settings = self._settings
        self._logger.debug(
            "MQTT relay start requested host=%s port=%s topic=%s",
            settings.host,
            settings.port,
            settings.topic,
        )

        client = self._client_factory(f"pyrecon_{self._broadcaster.origin}")
        client.enable_logger(self._logger)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", settings.topic)
            c.subscribe(settings.topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self.handle_payload(msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._unsubscribe = self._broadcaster.subscribe(self._publish)
        self._running = True
        self._logger.debug("MQTT relay started")

    def stop(self) -> None:
        """Stop forwarding and disconnect if running."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT relay stopped")

    def _publish(self, notification: ChangeNotification) -> None:
        # Only changes made in this process go out; relayed ones already did.
        if notification.origin != self._broadcaster.origin or self._client is None:
            return
        payload = notification.model_dump_json(by_alias=True)
        self._client.publish(self._settings.topic, payload, qos=1)
        self._logger.debug("Published change key=%s", notification.collection_key)

    def handle_payload(self, payload: bytes) -> None:
        """Deliver a change received from the broker to local subscribers."""
        try:
            notification = ChangeNotification.model_validate_json(payload)
        except ValidationError:
            self._logger.debug("Ignoring malformed change payload", exc_info=True)
            return
        if notification.origin == self._broadcaster.origin:
            return
        self._broadcaster.deliver(notification)
