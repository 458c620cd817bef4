from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.stats import stats_router
from registry import Connection
import backend
import json
import asyncio
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL, OUTBOX_SIZE, WS_PATH
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stats_router)

logger.info("FastAPI application initialized")


async def pump_outbox(websocket: WebSocket, connection: Connection):
    """Background task draining a connection's outbox onto its WebSocket."""
    try:
        while True:
            message = await connection.outbox.get()
            await websocket.send_text(json.dumps(message))
    except asyncio.CancelledError:
        raise
    except Exception as e:
        # Link is gone; further sends to this connection are dropped
        logger.debug(f"Send failed for connection {connection.id}: {e}")
        connection.close()


@app.websocket(WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    """Matchmaking and signaling relay. One WebSocket is one participant."""
    await websocket.accept()
    connection = Connection(outbox_size=OUTBOX_SIZE)
    logger.info(f"WebSocket connection accepted: {connection.id}")

    matchmaking_backend = backend.matchmaking_backend
    writer = None
    message_count = 0
    try:
        writer = asyncio.create_task(pump_outbox(websocket, connection))
        matchmaking_backend.connect(connection)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection.id}")
                break
            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection.id}")
            matchmaking_backend.handle_message(connection, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection.id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection.id}: {e}", exc_info=True)
    finally:
        matchmaking_backend.disconnect(connection)
        connection.close()
        if writer:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")
