import asyncio
import json
import sys
import uuid
import websockets

async def main(text: str):
    uri = "ws://localhost:4000/graphql"
    async with websockets.connect(uri, subprotocols=["graphql-transport-ws"]) as ws:
        await ws.send(json.dumps({"type": "connection_init"}))
        await ws.recv()
        # run the sendMessage mutation; the result comes back as next + complete
        msg = {
            "type": "subscribe",
            "id": str(uuid.uuid4()),
            "payload": {"operation": "sendMessage", "variables": {"text": text}},
        }
        print("Client Message: ", msg)
        await ws.send(json.dumps(msg))
        while True:
            resp = json.loads(await ws.recv())
            print("Server:", resp)
            if resp["type"] in ("complete", "error"):
                break

if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "hello"))
