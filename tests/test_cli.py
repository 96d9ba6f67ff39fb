"""Tests for the argparse surface in eventy/cli.py"""

import pytest

from eventy.cli import build_parser
from eventy.config import Settings, build_query_config


class TestMaxOption:
    def test_bare_max_is_unbounded(self):
        args = build_parser().parse_args(["Application", "-m"])
        assert args.max == "0"
        assert build_query_config(args, Settings()).max_entries is None

    def test_bare_max_followed_by_flag(self):
        args = build_parser().parse_args(["Application", "-m", "-r"])
        assert args.max == "0"
        assert args.reverse is True

    def test_explicit_value(self):
        args = build_parser().parse_args(["Application", "-m", "3"])
        assert build_query_config(args, Settings()).max_entries == 3

    def test_omitted_uses_default(self):
        args = build_parser().parse_args(["Application"])
        assert args.max is None
        assert build_query_config(args, Settings(default_max_entries=7)).max_entries == 7

    @pytest.mark.parametrize("argv", [["-m", "-3", "Application"], ["Application", "--max=0"]])
    def test_non_positive_is_unbounded(self, argv):
        args = build_parser().parse_args(argv)
        assert build_query_config(args, Settings()).max_entries is None
