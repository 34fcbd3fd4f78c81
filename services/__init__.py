"""Business services: catalogue rules, YouTube client and bearer tokens."""
