# ============================================
#     Watch Party — Coordinator Errors
# ============================================
#
# Every rejection is reported back to the client through the
# acknowledgement callback as {"errorMessage": <message>}.
# None of these is ever fatal to the server.


class CoordinatorError(Exception):
    """Base class for requests rejected by the session coordinator."""

    message = "Request rejected."

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_ack(self) -> dict:
        return {"errorMessage": self.message}


class Disconnected(CoordinatorError):
    """The user id is no longer registered (request raced a disconnect)."""

    message = "Disconnected."


class AlreadyInSession(CoordinatorError):
    message = "Already in a session."


class NotInSession(CoordinatorError):
    message = "Not in a session."


class InvalidPayload(CoordinatorError):
    message = "Invalid payload."


class InvalidMessageBody(CoordinatorError):
    message = "Invalid message body."
