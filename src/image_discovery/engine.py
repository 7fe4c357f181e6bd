"""Tiered existence-probing engine."""

from __future__ import annotations

import math
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable

from .codec import decode, encode, with_p_number
from .models import (
    IMAGE_TYPES,
    DecodedImageRef,
    DiscoveryConfig,
    DiscoveryEvent,
    DiscoveryReport,
    utc_now_iso,
)
from .probe import BaseProbe, CachedProbe, RequestsProbe

FoundCallback = Callable[[str], None]
ProgressCallback = Callable[[int, int], None]

PHASE_PRIORITY = "priority"
PHASE_SECONDARY = "secondary"
PHASE_PNUMBER_FALLBACK = "pnumber_fallback"
PHASE_SEED = "seed"

# Backstop only; each probe is timed individually in _probe_one.
_PHASE_SLACK_SEC = 1.0


class ImageDiscoveryEngine:
    """Turn one seed image URL into the set of existing original-tier images."""

    def __init__(
        self,
        config: DiscoveryConfig | None = None,
        probe: BaseProbe | None = None,
    ) -> None:
        self.config = config or DiscoveryConfig()
        if probe is None:
            probe = RequestsProbe(timeout_sec=self.config.probe_timeout_sec)
        if self.config.cache_ttl_sec > 0:
            probe = CachedProbe(
                probe,
                ttl_sec=self.config.cache_ttl_sec,
                max_duration_sec=self.config.probe_timeout_sec,
            )
        self.probe = probe

    def discover(
        self,
        seed_url: str,
        on_found: FoundCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> set[str]:
        """Return every validated image URL for the seed's product."""
        report = self.discover_report(seed_url, on_found=on_found, on_progress=on_progress)
        return report.urls

    def discover_report(
        self,
        seed_url: str,
        on_found: FoundCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> DiscoveryReport:
        """Run discovery and return the full report with events."""
        report = DiscoveryReport(seed_url=seed_url)
        self._add_event(report, "discover_start", "开始发现图片", url=seed_url)

        ref = decode(seed_url)
        report.decoded = ref
        if ref is None:
            self._add_event(
                report,
                "pattern_unknown",
                "种子 URL 不符合已知命名规则，按单张图片处理",
                url=seed_url,
            )
            self._run_phase(report, PHASE_SEED, [seed_url], on_found, on_progress)
            return self._finish(report)

        for phase, urls in self.plan_batches(ref):
            self._run_phase(report, phase, urls, on_found, on_progress)

        if not report.urls and self.config.pnumber_fallback:
            # Speculative: guesses an off-by-one p-number, unverified against the host.
            shifted = with_p_number(ref, int(ref.p_number) + 1)
            self._add_event(
                report,
                "pnumber_fallback",
                f"未找到图片，尝试推测的 p 编号: p{shifted.p_number}",
            )
            urls = [encode(shifted, "product-images", i) for i in self.config.priority_indices]
            self._run_phase(report, PHASE_PNUMBER_FALLBACK, urls, on_found, on_progress)

        if not report.urls:
            self._add_event(report, "seed_fallback", "候选均不存在，回退检查种子 URL", url=seed_url)
            self._run_phase(report, PHASE_SEED, [seed_url], on_found, on_progress)

        return self._finish(report)

    def plan_batches(self, ref: DecodedImageRef) -> list[tuple[str, list[str]]]:
        """Return the ordered (phase, candidate URLs) pairs for a decoded seed."""
        return [
            (PHASE_PRIORITY, self._candidates(ref, self.config.priority_indices)),
            (PHASE_SECONDARY, self._candidates(ref, self.config.secondary_indices)),
        ]

    def _candidates(self, ref: DecodedImageRef, indices: range) -> list[str]:
        return [encode(ref, image_type, index) for image_type in IMAGE_TYPES for index in indices]

    def _run_phase(
        self,
        report: DiscoveryReport,
        phase: str,
        urls: list[str],
        on_found: FoundCallback | None,
        on_progress: ProgressCallback | None,
    ) -> None:
        urls = list(dict.fromkeys(urls))
        total = len(urls)
        report.phases.append(phase)
        self._add_event(report, "phase_start", f"阶段 {phase} 开始: {total} 个候选")
        if total == 0:
            self._add_event(report, "phase_end", f"阶段 {phase} 结束: 找到 0 张")
            return

        workers = max(1, min(self.config.max_workers, total))
        deadline = self.config.probe_timeout_sec * math.ceil(total / workers) + _PHASE_SLACK_SEC
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"probe-{phase}")
        done = 0
        found = 0
        try:
            futures = {executor.submit(self._probe_one, url): url for url in urls}
            report.probes_issued += total
            try:
                for future in as_completed(futures, timeout=deadline):
                    url = futures[future]
                    done += 1
                    if future.result() and url not in report.urls:
                        report.urls.add(url)
                        found += 1
                        self._add_event(report, "image_found", "确认图片存在", url=url)
                        if on_found is not None:
                            on_found(url)
                    if on_progress is not None:
                        on_progress(done, total)
            except FuturesTimeoutError:
                self._add_event(
                    report,
                    "phase_timeout",
                    f"阶段 {phase} 超时，{total - done} 个候选按不存在处理",
                )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        self._add_event(report, "phase_end", f"阶段 {phase} 结束: 找到 {found} 张")

    def _probe_one(self, url: str) -> bool:
        started = time.perf_counter()
        try:
            exists = bool(self.probe.probe(url))
        except Exception:
            return False
        # A success that arrives after the timeout counts as a timeout.
        return exists and time.perf_counter() - started <= self.config.probe_timeout_sec

    def _add_event(
        self,
        report: DiscoveryReport,
        event_type: str,
        message: str,
        *,
        url: str | None = None,
    ) -> None:
        report.events.append(DiscoveryEvent(event_type=event_type, message=message, url=url))

    def _finish(self, report: DiscoveryReport) -> DiscoveryReport:
        report.finished_at = utc_now_iso()
        self._add_event(report, "discover_end", f"发现完成: 共 {len(report.urls)} 张图片")
        return report


def discover(
    seed_url: str,
    on_found: FoundCallback | None = None,
    *,
    config: DiscoveryConfig | None = None,
    probe: BaseProbe | None = None,
) -> set[str]:
    """Module-level shortcut for ``ImageDiscoveryEngine(config, probe).discover``."""
    return ImageDiscoveryEngine(config=config, probe=probe).discover(seed_url, on_found=on_found)
