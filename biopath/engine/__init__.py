"""Game-state engine: deck construction, drawing, events, placement and advancing.

Kept free of FastAPI concerns so the command surface and the tests can drive it directly.
"""
