"""
Notification Service

Real-time notifications for issue reporters, admins and all connected users.

``NotificationHub`` is the server side: it tracks connections and the rooms
they joined (``user:<id>`` and ``admin``) and fans events out to them.
WebSocket connections attach to it from the notifications endpoint;
``NotificationClient`` attaches in-process and exposes the connect / listen /
teardown interface used by consumers.

Every ``on_*`` registration returns a ``Subscription`` handle. Unsubscribing
removes exactly that listener, so several listeners can share an event and
reconnecting never leaks handlers.
"""

import itertools
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from app.schemas.health import ServiceHealth
from app.schemas.issue import IssueStatus
from app.schemas.notification import StatusChangeNotification, SystemNotification

logger = logging.getLogger(__name__)

EVENT_NOTIFICATION = "notification"
EVENT_ADMIN_NOTIFICATION = "admin-notification"
EVENT_SYSTEM_NOTIFICATION = "system-notification"

ADMIN_ROOM = "admin"

Payload = Dict[str, Any]
Sink = Callable[[str, Payload], Awaitable[None]]
Listener = Callable[[Payload], None]
DropCallback = Callable[[int], None]


def user_room(user_id: Any) -> str:
    return f"user:{user_id}"


class NotificationHub:
    """
    Tracks live connections and room membership.

    Runs on the application's event loop; all methods are called from that
    loop, so no locking is needed.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._sinks: Dict[int, Sink] = {}
        self._drop_callbacks: Dict[int, DropCallback] = {}
        self._rooms: Dict[str, Set[int]] = defaultdict(set)

    @property
    def connection_count(self) -> int:
        return len(self._sinks)

    def attach(self, sink: Sink, on_drop: Optional[DropCallback] = None) -> int:
        """
        Register a delivery callable and return its connection id.

        ``on_drop`` is called with the connection id if the hub detaches the
        connection itself after a failed delivery.
        """
        connection_id = next(self._ids)
        self._sinks[connection_id] = sink
        if on_drop is not None:
            self._drop_callbacks[connection_id] = on_drop
        logger.debug("Connection %s attached", connection_id)
        return connection_id

    def is_attached(self, connection_id: int) -> bool:
        return connection_id in self._sinks

    def detach(self, connection_id: int) -> None:
        """Drop a connection and its room memberships. Unknown ids are ignored."""
        self._drop_callbacks.pop(connection_id, None)
        if self._sinks.pop(connection_id, None) is None:
            return
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(connection_id)
            if not members:
                del self._rooms[room]
        logger.debug("Connection %s detached", connection_id)

    def join(self, connection_id: int, room: str) -> None:
        if connection_id not in self._sinks:
            raise KeyError(f"Unknown connection {connection_id}")
        self._rooms[room].add(connection_id)
        logger.debug("Connection %s joined room %s", connection_id, room)

    def leave(self, connection_id: int, room: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    def room_members(self, room: str) -> Set[int]:
        return set(self._rooms.get(room, ()))

    async def publish(self, event: str, payload: Payload, room: Optional[str] = None) -> int:
        """
        Deliver an event to a room, or to every connection when room is None.

        A connection whose sink raises is detached and its owner is told
        through the ``on_drop`` callback given to ``attach``.

        Returns:
            Number of connections the event was delivered to
        """
        targets = list(self._sinks) if room is None else list(self._rooms.get(room, ()))
        delivered = 0
        for connection_id in targets:
            sink = self._sinks.get(connection_id)
            if sink is None:
                continue
            try:
                await sink(event, payload)
                delivered += 1
            except Exception as e:  # pylint: disable=broad-except
                logger.warning(
                    "Dropping connection %s after failed delivery: %s", connection_id, str(e)
                )
                on_drop = self._drop_callbacks.get(connection_id)
                self.detach(connection_id)
                if on_drop is not None:
                    on_drop(connection_id)
        return delivered

    def health_check(self) -> ServiceHealth:
        return ServiceHealth(
            healthy=True,
            message=f"Notification hub running with {self.connection_count} connection(s)",
        )


class Subscription:
    """Handle for a single registered listener."""

    def __init__(
        self, event: str, callback: Listener, dispose: Callable[["Subscription"], None]
    ):
        self.event = event
        self.callback = callback
        self._dispose: Optional[Callable[["Subscription"], None]] = dispose

    @property
    def active(self) -> bool:
        return self._dispose is not None

    def unsubscribe(self) -> None:
        """Remove this listener. Safe to call more than once."""
        if self._dispose is None:
            return
        dispose, self._dispose = self._dispose, None
        dispose(self)


class NotificationClient:
    """
    In-process notification client.

    Teardown order is ``remove_listeners()`` then ``disconnect()``;
    ``close()`` does both.
    """

    def __init__(self, hub: NotificationHub):
        self._hub = hub
        self._connection_id: Optional[int] = None
        self._listeners: Dict[str, List[Subscription]] = defaultdict(list)

    def connect(self, user_id: Optional[Any] = None) -> None:
        """Connect to the hub, joining the user's room. No-op when already connected."""
        if self._connection_id is not None:
            return
        self._connection_id = self._hub.attach(self._deliver, on_drop=self._handle_drop)
        if user_id is not None:
            self._hub.join(self._connection_id, user_room(user_id))
        logger.info("Connected to notification hub (user=%s)", user_id)

    def join_admin_room(self) -> None:
        if self._connection_id is not None and self._hub.is_attached(self._connection_id):
            self._hub.join(self._connection_id, ADMIN_ROOM)

    def disconnect(self) -> None:
        if self._connection_id is None:
            return
        self._hub.detach(self._connection_id)
        self._connection_id = None
        logger.info("Disconnected from notification hub")

    def get_connection_status(self) -> bool:
        return self._connection_id is not None

    def on_notification(self, callback: Listener) -> Subscription:
        return self._subscribe(EVENT_NOTIFICATION, callback)

    def on_admin_notification(self, callback: Listener) -> Subscription:
        return self._subscribe(EVENT_ADMIN_NOTIFICATION, callback)

    def on_system_notification(self, callback: Listener) -> Subscription:
        return self._subscribe(EVENT_SYSTEM_NOTIFICATION, callback)

    def remove_listeners(self) -> None:
        """Unsubscribe every listener registered through this client."""
        for subscriptions in list(self._listeners.values()):
            for subscription in list(subscriptions):
                subscription.unsubscribe()

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(subscriptions) for subscriptions in self._listeners.values())

    def close(self) -> None:
        self.remove_listeners()
        self.disconnect()

    def _subscribe(self, event: str, callback: Listener) -> Subscription:
        subscription = Subscription(event, callback, self._unsubscribe)
        self._listeners[event].append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        subscriptions = self._listeners.get(subscription.event)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
            if not subscriptions:
                del self._listeners[subscription.event]

    def _handle_drop(self, connection_id: int) -> None:
        if self._connection_id == connection_id:
            self._connection_id = None
            logger.warning("Notification hub dropped connection %s", connection_id)

    async def _deliver(self, event: str, payload: Payload) -> None:
        # Listener errors stay inside the client
        for subscription in list(self._listeners.get(event, ())):
            try:
                subscription.callback(payload)
            except Exception as e:  # pylint: disable=broad-except
                logger.error("Notification listener for %s failed: %s", event, str(e))


class NotificationService:
    """Publishes domain events (status changes, system messages) to the hub."""

    def __init__(self, hub: NotificationHub):
        self._hub = hub

    @property
    def hub(self) -> NotificationHub:
        return self._hub

    def create_client(self) -> NotificationClient:
        return NotificationClient(self._hub)

    async def notify_status_change(
        self,
        issue: Any,
        previous_status: Optional[IssueStatus],
        new_status: IssueStatus,
        comment: str,
    ) -> int:
        """
        Notify an issue's reporter that its status changed.

        Anonymous issues and issues without a reporter are skipped. Errors are
        logged and swallowed so the status update itself never fails here.

        Returns:
            Number of connections notified
        """
        try:
            if issue.is_anonymous or not issue.reporter_id:
                logger.info("Issue %s has no notifiable reporter, skipping", issue.id)
                return 0

            notification = StatusChangeNotification(
                issue_id=issue.id,
                issue_title=issue.title,
                previous_status=previous_status,
                new_status=new_status,
                comment=comment,
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
            delivered = await self._hub.publish(
                EVENT_NOTIFICATION,
                notification.model_dump(mode="json"),
                room=user_room(issue.reporter_id),
            )
            logger.info(
                "Status change notification for issue %s delivered to %d connection(s)",
                issue.id,
                delivered,
            )
            return delivered
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Error sending status change notification: %s", str(e))
            return 0

    async def notify_new_issue(self, issue: Any) -> int:
        """
        Tell connected admins that an issue was reported.

        Errors are logged and swallowed so issue creation never fails here.
        """
        try:
            return await self.notify_admins(
                f"New {issue.category} issue reported: {issue.title}", issue_id=issue.id
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Error sending new issue notification: %s", str(e))
            return 0

    async def notify_admins(self, message: str, issue_id: Optional[int] = None) -> int:
        notification = SystemNotification(
            type="admin",
            message=message,
            issue_id=issue_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        return await self._hub.publish(
            EVENT_ADMIN_NOTIFICATION, notification.model_dump(mode="json"), room=ADMIN_ROOM
        )

    async def broadcast_system_notification(self, message: str) -> int:
        notification = SystemNotification(
            message=message, timestamp=datetime.now(timezone.utc).isoformat()
        )
        return await self._hub.publish(
            EVENT_SYSTEM_NOTIFICATION, notification.model_dump(mode="json")
        )

    def health_check(self) -> ServiceHealth:
        return self._hub.health_check()


# Singleton instances for dependency injection
notification_hub = NotificationHub()
notification_service = NotificationService(notification_hub)
