"""
Core client logic for Morpha.

- api: OpenAI Assistants wrapper
- runs: run status model and poller
- render: terminal text reflow
"""
