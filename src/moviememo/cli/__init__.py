"""Command line interface for MovieMemo Insights."""

from moviememo.cli.main import moviememo

__all__ = ["moviememo"]
