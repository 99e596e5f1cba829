# ============================================
#     Watch Party — Main Application
#     Session / presence coordination server
# ============================================

# -------------------------------------------------
#   EVENTLET PATCH (REQUIRED FOR GUNICORN)
# -------------------------------------------------
import eventlet
eventlet.monkey_patch()

from flask import Flask
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

# -----------------------------------------
#   ENV VARIABLES (.env / host secrets)
# -----------------------------------------
from dotenv import load_dotenv
load_dotenv()

from watchparty.config import HOST, PORT, CORS_ALLOWED_ORIGINS
from watchparty.sockets import register_socket_handlers
from watchparty.routes import register_http_routes
from watchparty.logger import get_logger

logger = get_logger("app")

# =========================================
#   FLASK + SOCKET.IO
# =========================================
app = Flask(__name__)
app.url_map.strict_slashes = True

# Honour X-Forwarded-* from the reverse proxy
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

socketio = SocketIO(app, cors_allowed_origins=CORS_ALLOWED_ORIGINS)

# =========================================
#   REGISTER HANDLERS + ROUTES
# =========================================
try:
    register_socket_handlers(socketio)
    register_http_routes(app)
    logger.info("Socket handlers and HTTP routes registered successfully.")
except Exception as e:
    logger.exception(f"Error registering handlers: {e}")
    raise

# =========================================
#   RUN SERVER (DEV / PROD)
# =========================================
if __name__ == "__main__":
    logger.info(f"Server starting on {HOST}:{PORT}...")
    socketio.run(app, host=HOST, port=PORT)
