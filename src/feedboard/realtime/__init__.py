"""Real-time layer — sessions, broadcast and protocol dispatch.

Learn: Everything flows through one asyncio event loop:
1. The WebSocket route hands raw frames to the ProtocolDispatcher
2. The dispatcher mutates the feedback store / identity registry
3. The Broadcaster fans the resulting event out to every open session

A single lock on the BoardContext serializes decode → mutate → broadcast,
so no handler's mutation is interleaved with another's broadcast.
"""
