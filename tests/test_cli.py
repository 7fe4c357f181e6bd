from __future__ import annotations

import json

import pytest

from image_discovery.cli import _build_parser, _handle_decode, _handle_discover
from image_discovery.models import FetchResult

SEED = (
    "https://www.jiomart.com/images/product/420x420/590196200/"
    "onion-product-images-59a1-p1-0-1699999999.jpg"
)
FOUND = (
    "https://www.jiomart.com/images/product/original/590196200/"
    "onion-product-images-59a1-p1-0-1699999999.jpg"
)


class StubProbe:
    def __init__(self, existing: set[str]) -> None:
        self.existing = existing

    def probe(self, url: str) -> bool:
        return url in self.existing


class StubFetcher:
    def __init__(self, html: str | None) -> None:
        self.html = html

    def fetch(self, url: str, timeout_sec: float) -> FetchResult:
        return FetchResult(
            url=url,
            ok=self.html is not None,
            html=self.html,
            status_code=200 if self.html is not None else 404,
            error=None if self.html is not None else "not found",
            elapsed_ms=1,
        )


def test_cli_help_is_chinese() -> None:
    help_text = _build_parser().format_help()
    assert "商品图片发现工具" in help_text
    assert "根据一张种子图片发现商品的全部高清图片。" in help_text


def test_discover_requires_seed_or_page() -> None:
    args = _build_parser().parse_args(["discover"])
    with pytest.raises(SystemExit) as exc:
        _handle_discover(args, probe=StubProbe(set()))
    assert str(exc.value) == "缺少必填项: --seed-url 或 --page-url。"


def test_discover_prints_json_summary(capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(["discover", "--seed-url", SEED])
    _handle_discover(args, probe=StubProbe({FOUND}))
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["urls"] == [FOUND]
    assert payload["count"] == 1
    assert payload["probes_issued"] == 32
    assert payload["decoded"]["product_id"] == "590196200"
    assert f"发现: {FOUND}" in captured.err


def test_discover_flags_override_config(capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(
        ["discover", "--seed-url", SEED, "--no-pnumber-fallback", "--quiet"]
    )
    _handle_discover(args, probe=StubProbe(set()))
    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["phases"] == ["priority", "secondary", "seed"]
    assert captured.err == ""


def test_discover_from_page_url(capsys: pytest.CaptureFixture[str]) -> None:
    html = f'<html><body><img src="{SEED}" /></body></html>'
    args = _build_parser().parse_args(["discover", "--page-url", "https://www.jiomart.com/p/onion"])
    _handle_discover(args, probe=StubProbe({FOUND}), fetcher=StubFetcher(html))
    payload = json.loads(capsys.readouterr().out)
    assert payload["seed_url"] == SEED
    assert payload["urls"] == [FOUND]


def test_discover_page_without_seed_exits() -> None:
    args = _build_parser().parse_args(["discover", "--page-url", "https://www.jiomart.com/p/x"])
    with pytest.raises(SystemExit) as exc:
        _handle_discover(args, probe=StubProbe(set()), fetcher=StubFetcher("<html></html>"))
    assert str(exc.value) == "页面中未找到可识别的商品图片: https://www.jiomart.com/p/x"


def test_decode_command(capsys: pytest.CaptureFixture[str]) -> None:
    _handle_decode(_build_parser().parse_args(["decode", SEED]))
    payload = json.loads(capsys.readouterr().out)
    assert payload["resolution"] == "420x420"
    assert payload["index"] == 0


def test_decode_command_rejects_unknown_url() -> None:
    with pytest.raises(SystemExit) as exc:
        _handle_decode(_build_parser().parse_args(["decode", "https://x.test/a.jpg"]))
    assert "URL 不符合已知图片命名规则" in str(exc.value)
