"""Command-line interface for product image discovery."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .codec import decode
from .config import CONFIG_KEYS, build_discovery_config, load_yaml_config
from .engine import ImageDiscoveryEngine
from .fetchers import RequestsFetcher
from .fetchers.base import BaseFetcher
from .models import DiscoveryConfig, DiscoveryReport
from .parser import extract_seed_urls
from .probe import BaseProbe


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    if args.command == "discover":
        _handle_discover(args)
    elif args.command == "decode":
        _handle_decode(args)
    else:
        parser.error(f"未知命令: {args.command}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="商品图片发现工具")
    subparsers = parser.add_subparsers(dest="command")

    discover_parser = subparsers.add_parser("discover", help="根据一张种子图片发现商品的全部高清图片。")
    discover_parser.add_argument("--config", type=Path, default=None, help="YAML 配置文件路径。")
    discover_parser.add_argument("--seed-url", dest="seed_url", default=None, help="已知有效的商品图片 URL。")
    discover_parser.add_argument(
        "--page-url",
        dest="page_url",
        default=None,
        help="商品页面 URL，从页面中提取种子图片。",
    )
    discover_parser.add_argument(
        "--probe-timeout-sec",
        dest="probe_timeout_sec",
        type=float,
        default=None,
        help="单个候选探测超时秒数。",
    )
    discover_parser.add_argument(
        "--max-workers",
        dest="max_workers",
        type=int,
        default=None,
        help="每个阶段同时探测的最大数量。",
    )
    discover_parser.add_argument(
        "--no-pnumber-fallback",
        dest="pnumber_fallback",
        action="store_false",
        help="禁用推测性的 p 编号 +1 回退。",
    )
    discover_parser.set_defaults(pnumber_fallback=None)
    discover_parser.add_argument(
        "--cache-ttl-sec",
        dest="cache_ttl_sec",
        type=float,
        default=None,
        help="探测结果内存缓存秒数，0 表示不缓存。",
    )
    discover_parser.add_argument(
        "--page-timeout-sec",
        dest="page_timeout_sec",
        type=float,
        default=None,
        help="商品页面抓取超时秒数。",
    )
    discover_parser.add_argument("--quiet", action="store_true", help="不在 stderr 输出逐张发现的图片。")

    decode_parser = subparsers.add_parser("decode", help="解析图片 URL 的命名结构。")
    decode_parser.add_argument("url", help="待解析的图片 URL。")

    return parser


def _handle_discover(
    args: argparse.Namespace,
    *,
    probe: BaseProbe | None = None,
    fetcher: BaseFetcher | None = None,
) -> None:
    yaml_data = load_yaml_config(args.config)
    config = build_discovery_config(_merge_settings(args, yaml_data))

    if args.seed_url is None and args.page_url is None:
        raise SystemExit("缺少必填项: --seed-url 或 --page-url。")

    seed_url = args.seed_url or _seed_from_page(args.page_url, config, fetcher or RequestsFetcher())
    engine = ImageDiscoveryEngine(config=config, probe=probe)

    def on_found(url: str) -> None:
        if not args.quiet:
            print(f"发现: {url}", file=sys.stderr)

    report = engine.discover_report(seed_url, on_found=on_found)
    print(json.dumps(_report_payload(report), ensure_ascii=False, indent=2))


def _handle_decode(args: argparse.Namespace) -> None:
    ref = decode(args.url)
    if ref is None:
        raise SystemExit(f"URL 不符合已知图片命名规则: {args.url}")
    print(json.dumps(ref.as_dict(), ensure_ascii=False, indent=2))


def _seed_from_page(page_url: str, config: DiscoveryConfig, fetcher: BaseFetcher) -> str:
    result = fetcher.fetch(page_url, timeout_sec=config.page_timeout_sec)
    if not result.ok or not result.html:
        raise SystemExit(f"商品页面抓取失败: {result.error}")
    parsed = extract_seed_urls(result.html, page_url)
    if not parsed.image_urls:
        raise SystemExit(f"页面中未找到可识别的商品图片: {page_url}")
    if len(parsed.image_urls) > 1:
        print(
            f"警告: 页面中找到 {len(parsed.image_urls)} 张候选种子，使用第一张。",
            file=sys.stderr,
        )
    return parsed.image_urls[0]


def _merge_settings(args: argparse.Namespace, yaml_data: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for key in CONFIG_KEYS:
        cli_value = getattr(args, key, None)
        if cli_value is not None:
            merged[key] = cli_value
        elif key in yaml_data:
            merged[key] = yaml_data[key]
    return merged


def _report_payload(report: DiscoveryReport) -> dict[str, Any]:
    return {
        "seed_url": report.seed_url,
        "decoded": report.decoded.as_dict() if report.decoded else None,
        "count": len(report.urls),
        "urls": sorted(report.urls),
        "probes_issued": report.probes_issued,
        "phases": report.phases,
        "started_at": report.started_at,
        "finished_at": report.finished_at,
        "events": [
            {
                "event_type": event.event_type,
                "message": event.message,
                "url": event.url,
                "created_at": event.created_at,
            }
            for event in report.events
        ],
    }
