"""Upstream data sources.

One module per upstream family. Every fetcher returns a ``SourceResult`` and
never lets an exception reach the aggregator.
"""
