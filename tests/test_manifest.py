"""Tests for manifest parsing and bitrate selection."""

from unittest.mock import MagicMock

import pytest

from episode_player.manifest import BandwidthEstimator, ManifestLoader, parse_master_playlist, select_variant
from episode_player.models import AUTO_VARIANT

MASTER = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080
1080/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=800000,RESOLUTION=640x360
360/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2500000,RESOLUTION=1280x720
https://other.test/720/index.m3u8
"""

MEDIA = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXTINF:6.0,
seg0.ts
#EXTINF:6.0,
seg1.ts
#EXT-X-ENDLIST
"""

URI = "https://cdn.test/show/ep1/master.m3u8"


class TestParseMasterPlaylist:
    """Test variant extraction."""

    def test_variants_sorted_by_bitrate(self):
        variants = parse_master_playlist(MASTER, URI)
        assert [v.height for v in variants] == [360, 720, 1080]
        assert [v.index for v in variants] == [0, 1, 2]
        assert variants[0].bitrate == 800_000
        assert variants[0].width == 640

    def test_relative_uris_resolved(self):
        variants = parse_master_playlist(MASTER, URI)
        assert variants[0].uri == "https://cdn.test/show/ep1/360/index.m3u8"
        assert variants[1].uri == "https://other.test/720/index.m3u8"

    def test_media_playlist_is_single_variant(self):
        """Test that a media playlist plays from the manifest itself."""
        [variant] = parse_master_playlist(MEDIA, URI)
        assert variant.uri == URI
        assert variant.index == 0

    def test_empty_manifest_raises(self):
        with pytest.raises(ValueError):
            parse_master_playlist("#EXTM3U\n", URI)


class TestSelectVariant:
    """Test bitrate selection."""

    def test_highest_that_fits(self, variants):
        assert select_variant(variants, 3_000_000) == 1
        assert select_variant(variants, 10_000_000) == 2

    def test_lowest_when_nothing_fits(self, variants):
        assert select_variant(variants, 100_000) == 0

    def test_switching_up_is_stricter(self, variants):
        """Test that moving above the current variant needs more headroom."""
        # 5 Mb/s fits 0.95 * 5.5 Mb/s but not 0.7 * 5.5 Mb/s.
        assert select_variant(variants, 5_500_000, current=AUTO_VARIANT) == 2
        assert select_variant(variants, 5_500_000, current=1) == 1

    def test_no_variants(self):
        assert select_variant([], 1_000_000) == AUTO_VARIANT


class TestBandwidthEstimator:
    """Test the throughput estimate."""

    def test_default_until_sampled(self):
        estimator = BandwidthEstimator(500_000)
        assert estimator.estimate == 500_000
        assert not estimator.has_samples

    def test_samples_move_estimate(self):
        estimator = BandwidthEstimator(500_000)
        estimator.add_sample(4_000_000)
        assert estimator.has_samples
        first = estimator.estimate
        estimator.add_sample(2_000_000)
        assert estimator.estimate < first

    def test_penalize_lowers_estimate(self):
        estimator = BandwidthEstimator(1_000_000)
        estimator.penalize(0.5)
        assert estimator.estimate == pytest.approx(500_000)


class TestManifestLoader:
    """Test HTTP loading with a mocked session."""

    def test_load(self):
        response = MagicMock()
        response.text = MASTER
        response.content = MASTER.encode()
        session = MagicMock()
        session.get.return_value = response

        loader = ManifestLoader(session=session, timeout=5.0)
        variants, sample = loader.load(URI)

        session.get.assert_called_once_with(URI, timeout=5.0)
        response.raise_for_status.assert_called_once()
        assert len(variants) == 3
        # Too small to say anything about bandwidth.
        assert sample is None
