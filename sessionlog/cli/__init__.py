"""Command-line interface for sessionlog.

Run as ``python -m sessionlog.cli`` or through the ``sessionlog`` script;
the entry point is :func:`sessionlog.cli.main.main`.
"""
