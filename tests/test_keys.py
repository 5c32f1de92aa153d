"""Tests for key/path mapping."""

from pathlib import Path

import pytest

from srefsync import Namespace, local_path_to_remote_key, remote_key_to_local_path
from srefsync.keys import cdn_key, to_cdn_url


class TestRemoteKeyToLocalPath:
    def test_joins_segments(self, tmp_path):
        p = remote_key_to_local_path("srefs/sref-1/images/a.jpg", tmp_path)
        assert p == tmp_path / "srefs" / "sref-1" / "images" / "a.jpg"

    def test_accepts_string_root(self, tmp_path):
        assert remote_key_to_local_path("a.jpg", str(tmp_path)) == tmp_path / "a.jpg"

    @pytest.mark.parametrize("key", [
        "", "/abs/key", "a//b", "a/../b", "../escape", "./a", "dir/", "a\\b",
    ])
    def test_malformed_keys_rejected(self, tmp_path, key):
        with pytest.raises(ValueError):
            remote_key_to_local_path(key, tmp_path)


class TestLocalPathToRemoteKey:
    def test_relative_forward_slashes(self, tmp_path):
        p = tmp_path / "sref-1" / "images" / "a.jpg"
        assert local_path_to_remote_key(p, tmp_path) == "sref-1/images/a.jpg"

    def test_outside_root_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            local_path_to_remote_key(tmp_path.parent / "other.jpg", tmp_path)

    def test_dotdot_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            local_path_to_remote_key(tmp_path / ".." / "x.jpg", tmp_path)

    def test_root_itself_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            local_path_to_remote_key(tmp_path, tmp_path)

    @pytest.mark.parametrize("rel", [
        "a.jpg",
        "sref-1/images/a.jpg",
        "sref-42/meta.yaml",
        "deep/er/still/file name with spaces.png",
    ])
    def test_round_trip(self, tmp_path, rel):
        p = tmp_path.joinpath(*rel.split("/"))
        key = local_path_to_remote_key(p, tmp_path)
        assert remote_key_to_local_path(key, tmp_path) == p


class TestNamespace:
    def test_local_path_strips_prefix(self, tmp_path):
        ns = Namespace("srefs", tmp_path / "data" / "srefs")
        assert ns.local_path("srefs/sref-1/images/a.jpg") == \
            tmp_path / "data" / "srefs" / "sref-1" / "images" / "a.jpg"

    def test_remote_key_adds_prefix(self, tmp_path):
        ns = Namespace("public", tmp_path / "public")
        assert ns.remote_key(tmp_path / "public" / "favicon.ico") == "public/favicon.ico"

    def test_round_trip_from_key(self, tmp_path):
        ns = Namespace("srefs", tmp_path)
        key = "srefs/sref-42/images/a.jpg"
        assert ns.remote_key(ns.local_path(key)) == key

    def test_owns(self, tmp_path):
        ns = Namespace("public", tmp_path)
        assert ns.owns("public/a.ico")
        assert not ns.owns("publicity/a.ico")
        assert not ns.owns("srefs/a.ico")
        assert ns.list_prefix == "public/"

    def test_foreign_key_rejected(self, tmp_path):
        ns = Namespace("public", tmp_path)
        with pytest.raises(ValueError):
            ns.local_path("srefs/sref-1/images/a.jpg")

    def test_directory_marker_rejected(self, tmp_path):
        ns = Namespace("srefs", tmp_path)
        with pytest.raises(ValueError):
            ns.local_path("srefs/")


class TestCdnKeys:
    def test_processed_keeps_relative_path(self, tmp_path):
        p = tmp_path / "_astro" / "img.abc123.avif"
        assert cdn_key(p, "processed", tmp_path) == "cdn/processed/_astro/img.abc123.avif"

    def test_public_uses_basename(self, tmp_path):
        assert cdn_key(tmp_path / "favicon.ico", "public", tmp_path) == "cdn/public/favicon.ico"

    def test_original_under_data_srefs(self, tmp_path):
        p = tmp_path / "data" / "srefs" / "sref-1" / "images" / "a.jpg"
        assert cdn_key(p, "original", tmp_path) == "cdn/srefs/sref-1/images/a.jpg"

    def test_original_outside_tree(self, tmp_path):
        assert cdn_key(tmp_path / "elsewhere" / "a.jpg", "original", tmp_path) is None

    def test_custom_prefix(self, tmp_path):
        assert cdn_key(tmp_path / "a.png", "public", tmp_path, "edge") == "edge/public/a.png"

    def test_unknown_kind(self, tmp_path):
        with pytest.raises(ValueError):
            cdn_key(tmp_path / "a.png", "thumbnail", tmp_path)


class TestCdnUrl:
    def test_rewrites_astro_urls(self):
        assert to_cdn_url("/_astro/img.abc.avif", "d111.cloudfront.net") == \
            "https://d111.cloudfront.net/processed/_astro/img.abc.avif"

    def test_rewrites_original_entry_images(self):
        assert to_cdn_url("/data/srefs/sref-1/images/a.jpg", "d111.cloudfront.net") == \
            "https://d111.cloudfront.net/srefs/sref-1/images/a.jpg"

    def test_url_matches_published_key(self, tmp_path):
        p = tmp_path / "data" / "srefs" / "sref-1" / "images" / "a.jpg"
        url = to_cdn_url("/data/srefs/sref-1/images/a.jpg", "d111.cloudfront.net")
        assert "cdn/" + url.split("d111.cloudfront.net/", 1)[1] == cdn_key(p, "original", tmp_path)

    def test_other_urls_unchanged(self):
        assert to_cdn_url("/favicon.ico", "d111.cloudfront.net") == "/favicon.ico"
        assert to_cdn_url("_astro/img.abc.avif", "d111.cloudfront.net") == "_astro/img.abc.avif"

    def test_no_domain(self):
        assert to_cdn_url("/_astro/img.abc.avif", None) == "/_astro/img.abc.avif"
        assert to_cdn_url("/data/srefs/sref-1/images/a.jpg", "") == \
            "/data/srefs/sref-1/images/a.jpg"
