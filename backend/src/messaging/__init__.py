"""
Omnichannel message dispatch

Accepts normalized send requests, proves the caller may use the channel,
resolves Contact/Conversation identities, routes the payload to the channel
adapter and returns a uniform envelope. Batches are processed sequentially
with per-item failure isolation.
"""
