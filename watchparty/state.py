# ============================================
#     Watch Party — Runtime Global State
# ============================================

from watchparty.coordinator import SessionCoordinator

# Single authority over sessions + users (volatile, memory only)
coordinator = SessionCoordinator()

# Socket.IO connection -> user id assigned at connect:
# { sid: user_id }
connections = {}
