"""Protocol helpers for WLED devices: colour codec, state model and client."""
