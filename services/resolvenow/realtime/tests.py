"""Tests for the notification registry, publisher and websocket consumer."""
from __future__ import annotations

from types import SimpleNamespace
from unittest import mock

from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase, TransactionTestCase

from resolvenow_service.exceptions import AccessDenied, Unauthenticated

from . import notifier
from .consumers import UNAUTHENTICATED_CLOSE_CODE, NotificationConsumer
from .registry import ChannelRegistry, registry


class ChannelRegistryTests(SimpleTestCase):
    def setUp(self) -> None:
        self.registry = ChannelRegistry()

    def test_join_and_leave(self) -> None:
        self.registry.connect("a")
        self.registry.connect("b")
        self.registry.join("7", "a")
        self.registry.join(7, "b")

        self.assertCountEqual(self.registry.members("7"), ["a", "b"])
        self.assertCountEqual(self.registry.everyone(), ["a", "b"])

        self.registry.leave("7", "a")
        self.assertEqual(self.registry.members("7"), ["b"])
        self.registry.leave("7", "b")
        self.assertNotIn("7", self.registry.groups)

    def test_leave_unknown_channel_is_a_no_op(self) -> None:
        self.registry.leave("missing", "a")
        self.assertEqual(self.registry.members("missing"), [])

    def test_disconnect_drops_every_membership(self) -> None:
        self.registry.connect("a")
        self.registry.join("1", "a")
        self.registry.join("2", "a")

        self.registry.disconnect("a")

        self.assertEqual(self.registry.everyone(), [])
        self.assertEqual(self.registry.groups, {})


class PublishTests(SimpleTestCase):
    def setUp(self) -> None:
        self.registry = ChannelRegistry()
        self.layer = mock.Mock()
        self.layer.send = mock.AsyncMock()
        patcher = mock.patch("realtime.notifier.get_channel_layer", return_value=self.layer)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_global_event_reaches_every_connection(self) -> None:
        for handle in ("a", "b", "c"):
            self.registry.connect(handle)
        self.registry.join("5", "a")

        delivered = notifier.publish(
            notifier.GLOBAL, notifier.NEW_COMPLAINT, {"message": "hi"}, registry=self.registry
        )

        self.assertEqual(delivered, 3)
        sent_to = sorted(call.args[0] for call in self.layer.send.await_args_list)
        self.assertEqual(sent_to, ["a", "b", "c"])
        self.assertEqual(
            self.layer.send.await_args.args[1],
            {"type": "realtime.event", "event": "new-complaint", "payload": {"message": "hi"}},
        )

    def test_complaint_event_reaches_only_members(self) -> None:
        self.registry.connect("a")
        self.registry.connect("b")
        self.registry.join("5", "b")

        delivered = notifier.publish(5, notifier.STATUS_UPDATED, {}, registry=self.registry)

        self.assertEqual(delivered, 1)
        self.layer.send.assert_awaited_once()
        self.assertEqual(self.layer.send.await_args.args[0], "b")

    def test_no_subscribers_skips_the_layer(self) -> None:
        self.assertEqual(notifier.publish(9, notifier.NEW_MESSAGE, {}, registry=self.registry), 0)
        self.layer.send.assert_not_awaited()

    def test_unreachable_connection_is_skipped(self) -> None:
        self.registry.join("5", "dead")
        self.registry.join("5", "alive")

        async def send(handle, message):
            if handle == "dead":
                raise RuntimeError("gone")

        self.layer.send.side_effect = send

        with self.assertLogs("realtime.notifier", level="WARNING"):
            delivered = notifier.publish(
                5, notifier.COMPLAINT_RESOLVED, {}, registry=self.registry
            )

        self.assertEqual(delivered, 1)
        self.assertEqual(self.layer.send.await_count, 2)


class NotificationConsumerTests(TransactionTestCase):
    def setUp(self) -> None:
        registry.clear()
        self.addCleanup(registry.clear)
        self.principal = SimpleNamespace(pk=1, role="user")

    def communicator(self, path: str = "/ws/notifications/?token=abc") -> WebsocketCommunicator:
        return WebsocketCommunicator(NotificationConsumer.as_asgi(), path)

    async def test_rejects_connection_without_valid_token(self) -> None:
        with mock.patch(
            "realtime.consumers.resolve_principal", side_effect=Unauthenticated()
        ) as resolve:
            communicator = self.communicator("/ws/notifications/")
            connected, code = await communicator.connect()

        self.assertFalse(connected)
        self.assertEqual(code, UNAUTHENTICATED_CLOSE_CODE)
        resolve.assert_called_once_with(None)
        self.assertEqual(registry.everyone(), [])

    async def test_join_relay_and_leave(self) -> None:
        with mock.patch("realtime.consumers.resolve_principal", return_value=self.principal), \
                mock.patch("realtime.consumers.check_complaint_access") as check:
            communicator = self.communicator()
            connected, _ = await communicator.connect()
            self.assertTrue(connected)

            await communicator.send_json_to({"action": "join-complaint", "complaintId": "12"})
            self.assertEqual(
                await communicator.receive_json_from(),
                {"event": "joined", "payload": {"complaintId": 12}},
            )
            check.assert_called_once_with(12, self.principal)

            (channel_name,) = registry.members("12")
            await get_channel_layer().send(
                channel_name,
                {
                    "type": notifier.EVENT_MESSAGE_TYPE,
                    "event": notifier.STATUS_UPDATED,
                    "payload": {"complaintId": 12, "status": "resolved"},
                },
            )
            self.assertEqual(
                await communicator.receive_json_from(),
                {"event": "status-updated", "payload": {"complaintId": 12, "status": "resolved"}},
            )

            await communicator.send_json_to({"action": "leave-complaint", "complaintId": 12})
            self.assertEqual(
                await communicator.receive_json_from(),
                {"event": "left", "payload": {"complaintId": 12}},
            )
            self.assertEqual(registry.members("12"), [])

            await communicator.disconnect()
        self.assertEqual(registry.everyone(), [])

    async def test_join_refused_without_access(self) -> None:
        with mock.patch("realtime.consumers.resolve_principal", return_value=self.principal), \
                mock.patch(
                    "realtime.consumers.check_complaint_access", side_effect=AccessDenied()
                ):
            communicator = self.communicator()
            await communicator.connect()

            await communicator.send_json_to({"action": "join-complaint", "complaintId": 3})
            reply = await communicator.receive_json_from()

            self.assertEqual(reply["event"], "error")
            self.assertEqual(reply["payload"]["complaintId"], 3)
            self.assertEqual(registry.members("3"), [])
            await communicator.disconnect()

    async def test_unknown_action_and_bad_id(self) -> None:
        with mock.patch("realtime.consumers.resolve_principal", return_value=self.principal):
            communicator = self.communicator()
            await communicator.connect()

            await communicator.send_json_to({"action": "subscribe-all"})
            self.assertEqual((await communicator.receive_json_from())["event"], "error")

            await communicator.send_json_to({"action": "join-complaint", "complaintId": "x"})
            self.assertEqual((await communicator.receive_json_from())["event"], "error")
            await communicator.disconnect()
