# ============================================
#     Watch Party — Session Coordinator
#     Registry of users + sessions, join/leave/typing/chat fan-out
# ============================================

import time
import threading
from contextlib import ExitStack

from watchparty.config import (
    DEFAULT_SESSION_STATE,
    JOINED_NOTICE,
    LEFT_NOTICE,
    LOCK_STRIPES,
)
from watchparty.errors import (
    AlreadyInSession,
    Disconnected,
    InvalidMessageBody,
    InvalidPayload,
    NotInSession,
)
from watchparty.ids import make_id, is_valid_id
from watchparty.validation import (
    get_field,
    is_boolean,
    is_valid_message_body,
    is_valid_session_id,
)
from watchparty.logger import get_logger

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionCoordinator:
    """
    Authoritative in-memory state of the watch party server.

    users = {
        user_id: {
            "id": str,
            "username": str,            # "guest<id>", informational
            "sessionId": str | None,
            "typing": bool,
            "connection": <handle with .emit(event, payload)>,
        }
    }

    sessions = {
        session_id: {
            "id": str,
            "userIds": [user_id, ...],
            "messages": [{"body", "isSystemMessage", "timestamp", "userId"}, ...],
            "ownerId": str,              # first joiner, never enforced
            "state": "playing" | "paused",
            "lastKnownTime": int,        # reserved for playback sync
            "lastKnownTimeUpdatedAt": int,
        }
    }

    Locking:
        - every user operation holds the stripe of its user, then the
          stripe of the session it touches (always in that order)
        - broadcasts are emitted while the session stripe is held, so all
          members see one session's messages in log order
        - connect / user removal also take the registry lock
    """

    def __init__(self, id_factory=make_id, stripes=LOCK_STRIPES):
        self._users = {}
        self._sessions = {}
        self._id_factory = id_factory

        stripes = max(1, int(stripes))
        self._registry_lock = threading.Lock()
        self._user_locks = [threading.Lock() for _ in range(stripes)]
        self._session_locks = [threading.Lock() for _ in range(stripes)]

    # =====================================================
    #   LOCKS / LOOKUPS
    # =====================================================

    def _user_lock(self, user_id):
        return self._user_locks[hash(user_id) % len(self._user_locks)]

    def _session_lock(self, session_id):
        return self._session_locks[hash(session_id) % len(self._session_locks)]

    def _require_user(self, user_id):
        user = self._users.get(user_id)
        if user is None:
            logger.warning(f"Event received for unknown user {user_id} (already disconnected).")
            raise Disconnected()
        return user

    def _require_session(self, user):
        if user["sessionId"] is None:
            raise NotInSession()
        return self._sessions[user["sessionId"]]

    # =====================================================
    #   FAN-OUT
    # =====================================================

    def _emit(self, user, event, payload):
        # Fire-and-forget: a broken peer must not stall the others
        try:
            user["connection"].emit(event, payload)
        except Exception:
            logger.exception(f"Failed to emit '{event}' to user {user['id']}")

    def _post_message(self, session, author_id, body, is_system):
        message = {
            "body": body,
            "isSystemMessage": is_system,
            "timestamp": _now_ms(),
            "userId": author_id,
        }
        session["messages"].append(message)

        for member_id in session["userIds"]:
            member = self._users.get(member_id)
            if member is None:
                continue
            self._emit(member, "sendMessage", dict(message))

        return message

    def _broadcast_presence(self, session, not_to_user_id=None):
        anyone_typing = False
        for member_id in session["userIds"]:
            member = self._users.get(member_id)
            if member is not None and member["typing"]:
                anyone_typing = True
                break

        for member_id in session["userIds"]:
            if member_id == not_to_user_id:
                continue
            member = self._users.get(member_id)
            if member is None:
                continue
            self._emit(member, "setPresence", {"anyoneTyping": anyone_typing})

    # =====================================================
    #   CONNECT
    # =====================================================

    def connect(self, connection) -> str:
        """
        Register a new connection and send it its user id.
        Ids are re-rolled until they are free in the live registry.
        """
        with self._registry_lock:
            user_id = self._id_factory()
            while user_id in self._users or not is_valid_id(user_id):
                logger.warning(f"Discarding unusable user id {user_id!r}, re-rolling.")
                user_id = self._id_factory()

            user = {
                "id": user_id,
                "username": f"guest{user_id}",
                "sessionId": None,
                "typing": False,
                "connection": connection,
            }
            self._users[user_id] = user

        self._emit(user, "userId", user_id)
        logger.info(f"User {user_id} connected.")
        return user_id

    # =====================================================
    #   JOIN
    # =====================================================

    def join(self, user_id, session_id) -> dict:
        with self._user_lock(user_id):
            user = self._require_user(user_id)

            if user["sessionId"] is not None:
                logger.warning(
                    f"User {user_id} attempted to join session {session_id!r}, "
                    f"but the user is already in session {user['sessionId']}."
                )
                raise AlreadyInSession()

            if not is_valid_session_id(session_id):
                logger.warning(f"User {user_id} attempted to join invalid session id {session_id!r}.")
                raise InvalidPayload("Invalid session id.")

            with self._session_lock(session_id):
                session = self._sessions.get(session_id)

                if session is None:
                    now = _now_ms()
                    session = {
                        "id": session_id,
                        "userIds": [user_id],
                        "messages": [],
                        "ownerId": user_id,
                        "state": DEFAULT_SESSION_STATE,
                        "lastKnownTime": 0,
                        "lastKnownTimeUpdatedAt": now,
                    }
                    self._sessions[session_id] = session
                    history = []
                    logger.info(f"Session {session_id} created by user {user_id}.")
                else:
                    session["userIds"].append(user_id)
                    history = None

                user["sessionId"] = session_id
                self._post_message(session, user_id, JOINED_NOTICE, True)

                # Existing sessions hand back the full log, own notice included
                if history is None:
                    history = [dict(m) for m in session["messages"]]

                ack = {
                    "messages": history,
                    "ownerId": session["ownerId"],
                    "sessionId": session["id"],
                    "state": session["state"],
                }

        logger.info(f"User {user_id} joined session {session_id}.")
        return ack

    # =====================================================
    #   LEAVE
    # =====================================================

    def _leave(self, user, session):
        """
        Caller holds the user stripe and the session stripe,
        and the user is a member of the session.
        """
        user_id = user["id"]
        session_id = session["id"]

        # Leaver is still a member here and gets the notice too
        self._post_message(session, user_id, LEFT_NOTICE, True)

        session["userIds"].remove(user_id)
        user["sessionId"] = None
        user["typing"] = False

        if not session["userIds"]:
            del self._sessions[session_id]
            logger.info(f"Session {session_id} was deleted because there were no more users in it.")
        else:
            self._broadcast_presence(session)

    def leave_session(self, user_id) -> dict:
        with self._user_lock(user_id):
            user = self._require_user(user_id)

            session_id = user["sessionId"]
            if session_id is None:
                logger.warning(f"User {user_id} attempted to leave a session, but the user was not in one.")
                raise NotInSession()

            with self._session_lock(session_id):
                self._leave(user, self._sessions[session_id])

        logger.info(f"User {user_id} left session {session_id}.")
        return {}

    # =====================================================
    #   TYPING PRESENCE
    # =====================================================

    def set_typing(self, user_id, data) -> dict:
        typing = get_field(data, "typing")

        with self._user_lock(user_id):
            user = self._require_user(user_id)

            if user["sessionId"] is None:
                logger.warning(f"User {user_id} attempted to set presence, but the user was not in a session.")
                raise NotInSession()

            if not is_boolean(typing):
                logger.warning(f"User {user_id} attempted to set invalid presence {typing!r}.")
                raise InvalidPayload("Invalid typing.")

            with self._session_lock(user["sessionId"]):
                session = self._require_session(user)
                user["typing"] = typing
                self._broadcast_presence(session, not_to_user_id=user_id)

        if typing:
            logger.info(f"User {user_id} is typing...")
        else:
            logger.info(f"User {user_id} is done typing.")
        return {}

    # =====================================================
    #   CHAT
    # =====================================================

    def send_message(self, user_id, data) -> dict:
        body = get_field(data, "body")

        with self._user_lock(user_id):
            user = self._require_user(user_id)

            if user["sessionId"] is None:
                logger.warning(f"User {user_id} attempted to send a message, but the user was not in a session.")
                raise NotInSession()

            if not is_valid_message_body(body):
                logger.warning(f"User {user_id} attempted to send an invalid message {body!r}.")
                raise InvalidMessageBody()

            with self._session_lock(user["sessionId"]):
                session = self._require_session(user)
                self._post_message(session, user_id, body, False)

        logger.info(f"User {user_id} sent message {body[:80]!r}.")
        return {}

    # =====================================================
    #   DISCONNECT
    # =====================================================

    def disconnect(self, user_id):
        with self._user_lock(user_id):
            user = self._users.get(user_id)
            if user is None:
                logger.warning(f"Duplicate disconnect for user {user_id}, ignoring.")
                return

            session_id = user["sessionId"]
            if session_id is not None:
                with self._session_lock(session_id):
                    self._leave(user, self._sessions[session_id])

            with self._registry_lock:
                self._users.pop(user_id, None)

        logger.info(f"User {user_id} disconnected.")

    # =====================================================
    #   DIAGNOSTICS (read / reset, no invariants of their own)
    # =====================================================

    def session_count(self) -> int:
        return len(self._sessions)

    def user_count(self) -> int:
        return len(self._users)

    def dump_sessions(self) -> dict:
        """
        JSON-serializable copy of the whole session registry.
        """
        with ExitStack() as stack:
            for lock in self._session_locks:
                stack.enter_context(lock)

            return {
                session_id: {
                    "id": session["id"],
                    "userIds": list(session["userIds"]),
                    "messages": [dict(m) for m in session["messages"]],
                    "ownerId": session["ownerId"],
                    "state": session["state"],
                    "lastKnownTime": session["lastKnownTime"],
                    "lastKnownTimeUpdatedAt": session["lastKnownTimeUpdatedAt"],
                }
                for session_id, session in self._sessions.items()
            }

    def _describe_user(self, user_id):
        """
        Copy of a user record without its connection handle, or None.
        """
        user = self._users.get(user_id)
        if user is None:
            return None
        return {k: v for k, v in user.items() if k != "connection"}

    def reset(self):
        """
        Drop every session and user. Open connections keep their
        transport but are answered "Disconnected." from then on.
        """
        with ExitStack() as stack:
            for lock in self._user_locks:
                stack.enter_context(lock)
            for lock in self._session_locks:
                stack.enter_context(lock)
            stack.enter_context(self._registry_lock)

            dropped_users = len(self._users)
            dropped_sessions = len(self._sessions)
            self._users.clear()
            self._sessions.clear()

        logger.warning(f"State reset: dropped {dropped_sessions} sessions and {dropped_users} users.")
