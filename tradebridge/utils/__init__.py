"""
Utility functions module.

Time Semantics:
- Timestamps carried by bus messages are authoritative and kept as sent
- Naive wire timestamps are interpreted as UTC
- Wall-clock time is only used for operational purposes (latency, timeouts)
"""
