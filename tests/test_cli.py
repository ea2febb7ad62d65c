from unittest.mock import patch

import pytest

from emailcrawler import cli
from emailcrawler.engine import CrawlEngine
from emailcrawler.parser import MarkupParser
from emailcrawler.storage import SnapshotStore
from tests.conftest import FakeFetcher, html


def test_missing_root_url_exits_non_zero(capsys) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main([])
    assert info.value.code != 0


def test_unparsable_root_url_exits_non_zero(tmp_path, capsys) -> None:
    code = cli.main(["http://", "--no-dns", "--data-dir", str(tmp_path)])
    assert code == cli.EXIT_CONFIG
    assert "--output--" not in capsys.readouterr().out


def test_proxy_host_without_port_is_config_error(tmp_path) -> None:
    assert cli.main(["http://site.com/", "proxy.local", "--data-dir", str(tmp_path)]) == cli.EXIT_CONFIG


def test_build_engine_from_config(tmp_path) -> None:
    cfg = cli.load_config(policy="default", workers=3, data_dir=str(tmp_path), check_dns=False)
    engine = cli.build_engine("http://site.com/", cfg)
    assert engine.workers == 3
    assert engine.extractor.check_dns is False
    assert isinstance(engine.store, SnapshotStore)


def test_prints_sorted_emails(tmp_path, capsys, extractor) -> None:
    pages = {
        "http://site.com/": html("/b", text="zed@example.com"),
        "http://site.com/b": html(text="amy@example.com"),
    }

    def fake_build(root_url, cfg):
        return CrawlEngine(
            root_url,
            fetcher=FakeFetcher(pages),
            parser=MarkupParser(),
            extractor=extractor,
            store=SnapshotStore(cfg.data_dir),
        )

    with patch.object(cli, "build_engine", side_effect=fake_build):
        code = cli.main(["http://site.com/", "--data-dir", str(tmp_path)])

    assert code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert out.splitlines() == ["--output--", "amy@example.com", "zed@example.com"]
    assert list(tmp_path.iterdir())
