"""
Agents used by the Morpha runtime.

For now there is a single SessionLoop that:

- reads user turns
- submits them and waits for each run
- renders and archives the replies
"""
