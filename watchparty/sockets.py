# ============================================
#   Watch Party — Socket.IO Handlers
# ============================================

from flask import request

import watchparty.state as state
from watchparty.errors import CoordinatorError, Disconnected
from watchparty.logger import get_logger

logger = get_logger(__name__)


INTERNAL_ERROR_ACK = {"errorMessage": "Internal error."}


class SocketConnection:
    """
    Transport handle for one Socket.IO client, as seen by the coordinator.
    """

    def __init__(self, socketio, sid, namespace="/"):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def emit(self, event, payload):
        self.socketio.emit(event, payload, to=self.sid, namespace=self.namespace)

    def __repr__(self):
        return f"<SocketConnection sid={self.sid}>"


def register_socket_handlers(socketio):

    # -----------------------------------------
    # Resolve sid -> user, run op, shape the ack
    # -----------------------------------------
    def _dispatch(event, operation, *args):
        user_id = state.connections.get(request.sid)
        if user_id is None:
            logger.warning(f"'{event}' received after disconnect (sid={request.sid}).")
            return Disconnected().to_ack()

        try:
            return operation(user_id, *args)
        except CoordinatorError as e:
            return e.to_ack()
        except Exception:
            logger.exception(f"Unexpected error handling '{event}' for user {user_id}")
            return dict(INTERNAL_ERROR_ACK)

    # -----------------------------------------
    # CONNECT
    # -----------------------------------------
    @socketio.on("connect", namespace="/")
    def on_connect(auth=None):
        connection = SocketConnection(socketio, request.sid)
        user_id = state.coordinator.connect(connection)
        state.connections[request.sid] = user_id
        logger.info(f"Client connected: sid={request.sid} user={user_id}")

    # -----------------------------------------
    # JOIN (payload: session id string)
    # -----------------------------------------
    @socketio.on("join", namespace="/")
    def on_join(session_id=None, *_):
        return _dispatch("join", state.coordinator.join, session_id)

    # -----------------------------------------
    # LEAVE SESSION (payload ignored)
    # -----------------------------------------
    @socketio.on("leaveSession", namespace="/")
    def on_leave_session(*_):
        return _dispatch("leaveSession", state.coordinator.leave_session)

    # -----------------------------------------
    # TYPING (payload: {"typing": bool})
    # -----------------------------------------
    @socketio.on("typing", namespace="/")
    def on_typing(data=None, *_):
        return _dispatch("typing", state.coordinator.set_typing, data)

    # -----------------------------------------
    # SEND MESSAGE (payload: {"body": str})
    # -----------------------------------------
    @socketio.on("sendMessage", namespace="/")
    def on_send_message(data=None, *_):
        return _dispatch("sendMessage", state.coordinator.send_message, data)

    # -----------------------------------------
    # DISCONNECT
    # -----------------------------------------
    @socketio.on("disconnect", namespace="/")
    def on_disconnect(*_):
        user_id = state.connections.pop(request.sid, None)
        if user_id is None:
            logger.warning(f"Disconnect for unknown sid={request.sid}")
            return

        try:
            state.coordinator.disconnect(user_id)
        except Exception:
            logger.exception(f"Error while disconnecting user {user_id}")

        logger.info(f"Client disconnected: sid={request.sid} user={user_id}")
