import asyncio
import httpx
import websockets
import json
import logging
import uuid

import os

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

BASE_URL = os.getenv("BASE_URL", "http://localhost:8080")
WS_URL = os.getenv("WS_URL", "ws://localhost:8080/ws")

USER_A = int(os.getenv("USER_A", "1001"))
USER_B = int(os.getenv("USER_B", "1002"))


async def check_health(client):
    try:
        resp = await client.get(f"{BASE_URL}/health")
        logger.info(f"Health: {resp.json()}")
        return resp.status_code == 200
    except Exception as e:
        logger.error(f"Request Error (Health): {e}")
        return False


async def connect_user(user_id, event_queue, ready):
    logger.info(f"Connecting user {user_id}: {WS_URL}")
    try:
        async with websockets.connect(WS_URL) as ws:
            await ws.send(json.dumps({"type": "register", "user_id": user_id}))

            # Wait for registered message
            msg = json.loads(await ws.recv())
            logger.info(f"[{user_id}] Received: {msg}")
            ready.set_result(ws)

            # Keep alive and listen
            async for msg in ws:
                data = json.loads(msg)
                logger.info(f"[{user_id}] WS Message: {data['type']}")
                await event_queue.put(data)

    except Exception as e:
        logger.error(f"Connection Error ({user_id}): {e}")
        if not ready.done():
            ready.set_exception(e)


async def wait_for(event_queue, msg_type, timeout=5.0):
    while True:
        event = await asyncio.wait_for(event_queue.get(), timeout=timeout)
        if event['type'] == msg_type:
            return event


async def run_scenario():
    async with httpx.AsyncClient() as client:
        if not await check_health(client):
            return

    loop = asyncio.get_running_loop()
    queue_a, queue_b = asyncio.Queue(), asyncio.Queue()
    ready_a, ready_b = loop.create_future(), loop.create_future()

    # 1. Connect both users
    task_a = asyncio.create_task(connect_user(USER_A, queue_a, ready_a))
    task_b = asyncio.create_task(connect_user(USER_B, queue_b, ready_b))
    ws_a, ws_b = await ready_a, await ready_b

    call_id = uuid.uuid4().hex
    try:
        # 2. A calls B
        logger.info(f"User A calling User B (call {call_id})...")
        await ws_a.send(json.dumps({
            "type": "call_request",
            "call_id": call_id,
            "target_user_id": USER_B,
            "call_type": "video"
        }))
        event = await wait_for(queue_b, 'incoming_call')
        logger.info(f"SUCCESS: B received incoming call from {event['caller_id']}")

        # 3. B accepts
        await ws_b.send(json.dumps({"type": "call_response", "call_id": call_id, "response": "accept"}))
        await wait_for(queue_a, 'call_accepted')
        logger.info("SUCCESS: A saw call_accepted")

        # 4. Offer / answer round trip
        await ws_a.send(json.dumps({"type": "offer", "call_id": call_id, "offer": {"type": "offer", "sdp": "v=0"}}))
        await wait_for(queue_b, 'offer')
        await ws_b.send(json.dumps({"type": "answer", "call_id": call_id, "answer": {"type": "answer", "sdp": "v=0"}}))
        await wait_for(queue_a, 'answer')
        logger.info("SUCCESS: offer/answer relayed")

        # 5. A drops; B must be told
        task_a.cancel()
        event = await wait_for(queue_b, 'call_ended')
        logger.info(f"SUCCESS: B saw call_ended ({event.get('reason')})")

    except asyncio.TimeoutError:
        logger.error("FAILED: Timeout waiting for relay.")

    task_a.cancel()
    task_b.cancel()

if __name__ == "__main__":
    asyncio.run(run_scenario())
