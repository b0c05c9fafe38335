import logging

from fastapi import WebSocket, WebSocketDisconnect

from callrelay.config.settings import Settings
from callrelay.services.connection import ClientConnection
from .router import SignalingRouter

logger = logging.getLogger(__name__)


class ConnectionOrchestrator:
    """
    Drives one WebSocket from accept to close.
    Handles:
    - Connection wrapping
    - Message loop (one message at a time, in arrival order)
    - Cleanup on disconnect
    """

    def __init__(self, websocket: WebSocket, router: SignalingRouter, settings: Settings):
        self.websocket = websocket
        self.router = router
        self.settings = settings
        self.connection = ClientConnection(websocket, send_timeout=settings.SEND_TIMEOUT_SEC)

    async def run(self):
        """
        Main entry point for handling a WebSocket connection.
        """
        await self.websocket.accept()
        logger.info(f"📱 New WebSocket connection {self.connection.connection_id}")

        try:
            await self._message_loop()

        except WebSocketDisconnect:
            pass

        except Exception as e:
            logger.error(f"[Orchestrator] Error during message loop: {e}")

        finally:
            await self._cleanup()

    async def _message_loop(self):
        """
        Main message processing loop.
        """
        while True:
            message = await self.websocket.receive()

            if message["type"] == "websocket.disconnect":
                return

            if message.get("text") is not None:
                await self.router.dispatch(self.connection, message["text"])
            elif message.get("bytes") is not None:
                await self.router.dispatch(self.connection, message["bytes"].decode("utf-8", errors="replace"))
            else:
                logger.warning(f"[Orchestrator] Unexpected message structure from {self.connection!r}")

    async def _cleanup(self):
        """
        Release the identity and end its calls.
        """
        user_id = self.connection.user_id
        self.connection.mark_closed()
        await self.router.release(self.connection)
        logger.info(f"👋 User {user_id} disconnected ({self.connection.connection_id})")
