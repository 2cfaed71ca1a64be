"""Market brief: one-shot aggregation of quotes, headlines and the economic calendar.

Each invocation fans out to every upstream provider at once, tolerates any of
them failing, and returns a fully-shaped payload of display lines for the
dashboard front end.
"""

__version__ = "0.3.0"
