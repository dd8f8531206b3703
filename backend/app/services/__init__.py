"""
Services package for integrations with external systems.
"""

from .ai_notification import AIAgentClient, VideoNotifier, get_video_notifier

__all__ = [
    "AIAgentClient",
    "VideoNotifier",
    "get_video_notifier",
]
