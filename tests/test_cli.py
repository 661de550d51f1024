"""Argument parsing for the audiencescout CLI."""

import pytest

from audiencescout.interface.cli import _filters_from_args, build_parser, cmd_search, cmd_purge_cache, main


def test_search_filters_from_flags():
    args = build_parser().parse_args(
        ["search", "luxury cars", "--segment-type", "interest", "--max-cpm", "2.5", "--actively-generated", "no"]
    )
    assert args.func is cmd_search
    assert args.query == "luxury cars"
    assert _filters_from_args(args) == {"segment_type": "interest", "max_cpm": 2.5, "actively_generated": False}


def test_unset_filters_omitted():
    args = build_parser().parse_args(["search", "q"])
    assert _filters_from_args(args) == {}


def test_bad_boolean_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["search", "q", "--actively-generated", "maybe"])


def test_purge_all_flag():
    args = build_parser().parse_args(["purge-cache", "--all"])
    assert args.func is cmd_purge_cache
    assert args.all is True


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_browse_requires_one_selector():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["browse"])
    with pytest.raises(SystemExit):
        build_parser().parse_args(["browse", "--keyword", "golf", "--tier", "1"])


def test_browse_lists_matches(monkeypatch, capsys):
    from audiencescout.interface import cli
    from audiencescout.services.catalog_service import SegmentCatalogService

    from fakes import FakeCatalog, make_segment

    service = SegmentCatalogService(FakeCatalog([make_segment("1", "Golf Enthusiasts"), make_segment("2", "Gamers")]))
    monkeypatch.setattr(cli, "build_catalog_service", lambda: service)
    args = build_parser().parse_args(["browse", "--keyword", "golf"])
    assert args.func is cli.cmd_browse
    assert args.func(args) == 0
    out = capsys.readouterr().out
    assert "Golf Enthusiasts" in out
    assert "Gamers" not in out
    assert "1 segment(s)" in out


def test_similar_args():
    from audiencescout.interface.cli import cmd_similar

    args = build_parser().parse_args(["similar", "electric cars", "--limit", "3"])
    assert args.func is cmd_similar
    assert (args.text, args.limit, args.json) == ("electric cars", 3, False)
