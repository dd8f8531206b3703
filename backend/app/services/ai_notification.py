"""Notifications to the external AI analysis agent.

When a video response is stored, the agent is told its id so it can fetch
and analyse the recording. Delivery is best-effort: failures are logged
and never affect the upload that triggered them.
"""

import logging
from typing import Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class VideoNotifier:
    """Notifier that does nothing; used when the AI agent is disabled."""

    async def notify_video_ready(self, video_response_id: str) -> bool:
        logger.debug(
            f"AI agent disabled; not notifying for video response {video_response_id}"
        )
        return False


class AIAgentClient(VideoNotifier):
    """Posts video-ready notifications to the AI agent over HTTP.

    Attributes:
        base_url: Base URL of the agent API
        analyze_path: Path of the analysis endpoint
        api_key: Bearer token sent with each request (optional)
        timeout: HTTP request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        analyze_path: str = "/api/analyze",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize AIAgentClient.

        Args:
            base_url: Base URL for the agent (e.g., "https://agent.example.com")
            api_key: Bearer token, empty for unauthenticated agents
            analyze_path: Endpoint path appended to base_url
            timeout: HTTP request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.analyze_path = "/" + analyze_path.lstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def notify_video_ready(self, video_response_id: str) -> bool:
        """Tell the agent a video is ready for analysis.

        Returns:
            True if the agent accepted the notification, False otherwise
        """
        url = f"{self.base_url}{self.analyze_path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    json={"video_response_id": video_response_id},
                    headers=self._get_headers(),
                )
                response.raise_for_status()
        except httpx.ConnectError as e:
            logger.error(
                f"Connection error notifying AI agent for video {video_response_id}: {e}"
            )
            return False
        except httpx.TimeoutException as e:
            logger.error(
                f"Timeout notifying AI agent for video {video_response_id}: {e}"
            )
            return False
        except httpx.HTTPStatusError as e:
            logger.error(
                f"AI agent rejected video {video_response_id}: "
                f"HTTP {e.response.status_code} - {e.response.text}"
            )
            return False

        logger.info(f"AI agent notified for video response {video_response_id}")
        return True


def get_video_notifier() -> VideoNotifier:
    """Notifier for the current configuration (FastAPI dependency)."""
    if not settings.AI_AGENT_ENABLED:
        return VideoNotifier()
    return AIAgentClient(
        base_url=settings.AI_AGENT_BASE_URL,
        api_key=settings.AI_AGENT_API_KEY,
        analyze_path=settings.AI_AGENT_ANALYZE_PATH,
        timeout=settings.AI_AGENT_TIMEOUT_SECONDS,
    )
