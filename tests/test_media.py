# tests/test_media.py
"""
Media assets: alt-text fallback chain, bundle processing, and the
one-asset-per-URL guarantee across bundles and on-demand lookups.
"""

import pytest

from models.content_model import MediaBundleSpec
from models.entities import AltRule
from services.importer.fetcher import ResourceFetcher
from services.importer.media import MediaAssetBuilder, choose_alt_text, suggested_path
from services.importer.store import MemoryStore
from helpers import FakeClient, PNG_BYTES

CDN = "https://cdn.example.com"


def _builder(store, client, settings, page_title=None, model_default="", base=None):
    return MediaAssetBuilder(
        store,
        ResourceFetcher(client, base, settings),
        page_title=page_title,
        model_default_alt=model_default,
        hard_default_alt=settings.default_alt,
        media_directory=settings.media_directory,
    )


# -------------------------------------------------------------------
# 1️⃣  Alt text chain
# -------------------------------------------------------------------
@pytest.mark.parametrize(
    "item_alt,page_title,model_default,expected",
    [
        ("  Logo ", "Home", "Foto", ("Logo", AltRule.ITEM_ALT)),
        ("", "Home", "Immagine", ("Home", AltRule.PAGE_TITLE)),
        ("   ", None, "Foto", ("Foto", AltRule.MODEL_DEFAULT)),
        (None, "", "", ("Immagine", AltRule.HARD_DEFAULT)),
    ],
)
def test_alt_text_fallback_order(item_alt, page_title, model_default, expected):
    assert choose_alt_text(item_alt, page_title, model_default, "Immagine") == expected


def test_suggested_path_uses_url_basename():
    assert suggested_path(f"{CDN}/img/photo.jpg?w=200", "aicontent") == "aicontent/photo.jpg"
    generated = suggested_path(f"{CDN}/", "aicontent")
    assert generated.startswith("aicontent/media_") and generated.endswith(".bin")


# -------------------------------------------------------------------
# 2️⃣  build_from_bundles
# -------------------------------------------------------------------
def test_bundle_items_become_assets(settings):
    client = FakeClient({f"{CDN}/a.png": PNG_BYTES, f"{CDN}/b.png": PNG_BYTES})
    store = MemoryStore()
    builder = _builder(store, client, settings, page_title="Home")
    bundles = [MediaBundleSpec(items=[{"url": f"{CDN}/a.png", "alt": "A"}, {"url": f"{CDN}/b.png"}])]

    url_to_asset, by_bundle = builder.build_from_bundles(bundles)

    assert [a.alt_text for a in by_bundle["image"]] == ["A", "Home"]
    assert url_to_asset[f"{CDN}/a.png"].bundle == "image"
    assert len(store.assets) == 2
    assert store.files[url_to_asset[f"{CDN}/b.png"].source_resource_id].path == "aicontent/b.png"


def test_failed_items_are_skipped(settings):
    client = FakeClient({f"{CDN}/ok.png": PNG_BYTES})
    builder = _builder(MemoryStore(), client, settings)
    bundles = [MediaBundleSpec(items=[{"url": f"{CDN}/gone.png"}, {"url": ""}, {"url": f"{CDN}/ok.png"}])]

    _, by_bundle = builder.build_from_bundles(bundles)

    assert [a.url for a in by_bundle["image"]] == [f"{CDN}/ok.png"]


def test_unknown_bundle_is_skipped(settings):
    client = FakeClient({f"{CDN}/a.mp4": b"video"})
    builder = _builder(MemoryStore(bundles=["image"]), client, settings)

    _, by_bundle = builder.build_from_bundles([MediaBundleSpec(bundle="video", items=[f"{CDN}/a.mp4"])])

    assert by_bundle == {}
    assert client.calls[f"{CDN}/a.mp4"] == 0


def test_store_write_failure_skips_item(settings):
    class BrokenStore(MemoryStore):
        def write_bytes(self, data, suggested_path):
            raise OSError("disk full")

    builder = _builder(BrokenStore(), FakeClient({f"{CDN}/a.png": PNG_BYTES}), settings)

    _, by_bundle = builder.build_from_bundles([MediaBundleSpec(items=[f"{CDN}/a.png"])])

    assert by_bundle == {}
    assert builder.created == []


# -------------------------------------------------------------------
# 3️⃣  One asset per URL
# -------------------------------------------------------------------
def test_raw_and_resolved_forms_share_one_asset(tmp_path, settings):
    (tmp_path / "a.png").write_bytes(PNG_BYTES)
    store = MemoryStore()
    builder = _builder(store, FakeClient(), settings, base=str(tmp_path))

    url_to_asset, _ = builder.build_from_bundles([MediaBundleSpec(items=["/a.png"])])

    resolved = f"file://{tmp_path / 'a.png'}"
    assert url_to_asset["/a.png"] is url_to_asset[resolved]
    assert builder.ensure_asset("a.png") is url_to_asset[resolved]
    assert builder.ensure_asset(resolved) is url_to_asset[resolved]
    assert len(store.assets) == 1


def test_ensure_asset_creates_once_on_miss(settings):
    client = FakeClient({f"{CDN}/new.png": PNG_BYTES})
    store = MemoryStore()
    builder = _builder(store, client, settings, model_default="Foto")

    first = builder.ensure_asset(f"{CDN}/new.png")
    second = builder.ensure_asset(f"{CDN}/new.png")

    assert first is second
    assert first.alt_text == "Foto"
    assert len(store.assets) == 1
    assert client.calls[f"{CDN}/new.png"] == 1
    # on-demand assets are not part of the bundle fallback pool
    assert builder.first_in_bundle("image") is None


def test_duplicate_items_across_bundles_reuse_asset(settings):
    client = FakeClient({f"{CDN}/a.png": PNG_BYTES})
    store = MemoryStore(bundles=["image", "gallery"])
    builder = _builder(store, client, settings)

    _, by_bundle = builder.build_from_bundles(
        [MediaBundleSpec(items=[f"{CDN}/a.png"]), MediaBundleSpec(bundle="gallery", items=[f"{CDN}/a.png"])]
    )

    assert by_bundle["image"][0] is by_bundle["gallery"][0]
    assert len(store.assets) == 1
