"""
Pub/Sub relay: topic fan-out of typed events to WebSocket subscribers,
with commands that publish events and demo generators that simulate
external activity.
"""
