import asyncio
import json
import uuid
import websockets  # lightweight client; to install: pip install websockets

FIELDS = ("messageAdded", "systemStatusChanged", "settingsUpdated")

async def main():
    uri = "ws://localhost:4000/graphql"
    async with websockets.connect(uri, subprotocols=["graphql-transport-ws"]) as ws:
        await ws.send(json.dumps({"type": "connection_init"}))
        print("Server:", await ws.recv())
        op_ids = {}
        for field in FIELDS:
            op_id = str(uuid.uuid4())
            op_ids[op_id] = field
            await ws.send(json.dumps({"type": "subscribe", "id": op_id, "payload": {"operation": field}}))
        print("Awaiting events... (press Ctrl+C to exit)")
        try:
            while True:
                msg = json.loads(await ws.recv())
                print(f"Received [{op_ids.get(msg.get('id'), '?')}]:", msg.get("payload"))
        except KeyboardInterrupt:
            for op_id in op_ids:
                await ws.send(json.dumps({"type": "complete", "id": op_id}))
            print("Unsubscribed.")

if __name__ == "__main__":
    asyncio.run(main())
