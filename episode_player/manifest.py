"""Adaptive manifest parsing and bitrate selection."""

import time
from urllib.parse import urljoin

import m3u8
import requests

from .models import AUTO_VARIANT, Variant


def parse_master_playlist(text: str, uri: str) -> list[Variant]:
    """Parse a manifest into its variants, lowest bitrate first.

    A media playlist (no variant entries) is a single rendition that
    lives at `uri` itself.
    """
    parsed = m3u8.loads(text, uri=uri)

    if not parsed.is_variant:
        if not parsed.segments:
            raise ValueError(f"Manifest has neither variants nor segments: {uri}")
        return [Variant(index=0, height=0, width=0, bitrate=0, uri=uri)]

    entries = []
    for playlist in parsed.playlists:
        info = playlist.stream_info
        resolution = info.resolution if isinstance(info.resolution, tuple) else None
        width, height = resolution if resolution else (0, 0)
        bitrate = info.average_bandwidth or info.bandwidth or 0
        entries.append((bitrate, height, width, urljoin(uri, playlist.uri)))

    if not entries:
        raise ValueError(f"Master playlist lists no variants: {uri}")

    entries.sort(key=lambda entry: (entry[0], entry[1]))
    return [
        Variant(index=i, height=height, width=width, bitrate=bitrate, uri=variant_uri)
        for i, (bitrate, height, width, variant_uri) in enumerate(entries)
    ]


class ManifestLoader:
    """Fetches manifests over HTTP and measures throughput while doing so."""

    # Responses smaller than this say more about latency than bandwidth.
    MIN_SAMPLE_BYTES = 16 * 1024

    def __init__(self, session: requests.Session | None = None, timeout: float = 10.0):
        self._session = session
        self._timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def fetch(self, uri: str) -> tuple[str, float | None]:
        """Return the manifest text and a throughput sample in bits/s (or None)."""
        started = time.monotonic()
        res = self.session.get(uri, timeout=self._timeout)
        res.raise_for_status()
        elapsed = time.monotonic() - started

        sample = None
        size = len(res.content)
        if size >= self.MIN_SAMPLE_BYTES and elapsed > 0:
            sample = size * 8 / elapsed
        return res.text, sample

    def load(self, uri: str) -> tuple[list[Variant], float | None]:
        """Fetch and parse a manifest."""
        text, sample = self.fetch(uri)
        return parse_master_playlist(text, uri), sample

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None


class BandwidthEstimator:
    """Exponentially weighted throughput estimate in bits per second.

    Returns the configured initial guess until a real sample arrives.
    """

    def __init__(self, default_estimate: float = 500_000, weight: float = 0.5):
        self._default = float(default_estimate)
        self._weight = weight
        self._estimate: float | None = None

    @property
    def has_samples(self) -> bool:
        return self._estimate is not None

    def add_sample(self, bits_per_second: float) -> None:
        if bits_per_second <= 0:
            return
        if self._estimate is None:
            self._estimate = float(bits_per_second)
        else:
            self._estimate = self._weight * bits_per_second + (1 - self._weight) * self._estimate

    def penalize(self, factor: float = 0.5) -> None:
        """Scale the estimate down after a stall."""
        self._estimate = self.estimate * factor

    @property
    def estimate(self) -> float:
        return self._estimate if self._estimate is not None else self._default


def select_variant(
    variants: list[Variant],
    estimate: float,
    current: int = AUTO_VARIANT,
    bandwidth_factor: float = 0.95,
    up_factor: float = 0.7,
) -> int:
    """Pick the highest variant whose bitrate fits the estimate.

    Staying on or dropping below the current variant uses
    `bandwidth_factor` of the estimate; moving above it uses the stricter
    `up_factor`. Falls back to the lowest variant when nothing fits.
    """
    if not variants:
        return AUTO_VARIANT

    ordered = sorted(variants, key=lambda v: v.bitrate)
    current_bitrate = None
    for variant in ordered:
        if variant.index == current:
            current_bitrate = variant.bitrate

    chosen = ordered[0].index
    for variant in ordered:
        factor = bandwidth_factor
        if current_bitrate is not None and variant.bitrate > current_bitrate:
            factor = up_factor
        if variant.bitrate <= estimate * factor:
            chosen = variant.index
    return chosen
