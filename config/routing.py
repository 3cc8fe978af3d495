"""
WebSocket URL routing.
"""

from django.urls import path

from src.works.consumers import WorkConsumer

websocket_urlpatterns = [
    path("ws/works/<uuid:work_id>/", WorkConsumer.as_asgi()),
]
