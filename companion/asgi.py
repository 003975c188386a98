"""
ASGI config for the companion project.

Wires both HTTP (Django) and WebSocket (Channels).
Order matters: configure Django before importing any Django-dependent modules.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "companion.settings")

import django  # noqa: E402
django.setup()  # noqa: E402

from django.core.asgi import get_asgi_application  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from django.urls import path  # noqa: E402

from care.realtime.consumers import TaskListConsumer  # noqa: E402

django_asgi_app = get_asgi_application()

# Consumers authenticate themselves from the ``token`` query parameter,
# so no session auth stack is wrapped around the router.
websocket_urlpatterns = [
    path("ws/task-lists/<int:task_list_id>/", TaskListConsumer.as_asgi()),
]

application = ProtocolTypeRouter({
    "http": django_asgi_app,
    "websocket": URLRouter(websocket_urlpatterns),
})
