"""GoalMates backend package.

Holds the realtime notification pipeline: websocket presence registries,
the notification domain service and the in-process email digest queue.
"""
