import logging

from .common import app
from .routers.emergencies.endpoints import router as EmergencyEndpoints
from .routers.health.endpoints import router as HealthEndpoints
from .routers.llm.endpoints import router as AssistantEndpoints
from .routers.location.endpoints import router as LocationEndpoints
from .routers.notifications.endpoints import router as NotificationEndpoints
from .routers.users.endpoints import router as UserEndpoints
from .routers.users.friends import router as FriendEndpoints
from .routers.websocket.endpoints import router as WebSocketEndpoints

logger = logging.getLogger(__name__)

# Include routers
app.include_router(HealthEndpoints)
app.include_router(UserEndpoints)
app.include_router(FriendEndpoints)
app.include_router(NotificationEndpoints)
app.include_router(EmergencyEndpoints)
app.include_router(LocationEndpoints)
app.include_router(AssistantEndpoints)
app.include_router(WebSocketEndpoints)
