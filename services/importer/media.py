# services/importer/media.py
"""
Media assets: one per unique URL, created from the model's media bundles
up front and on demand for image fields that reference something new.
"""

import posixpath
import uuid
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
from urllib.parse import urlparse

from loguru import logger

from models.content_model import MediaBundleSpec
from models.entities import AltRule, Asset, RuleTrace
from .fetcher import ResourceFetcher
from .metrics import ASSETS_CREATED
from .store import ContentStore

DEFAULT_BUNDLE = "image"


class AltResolution(NamedTuple):
    text: str
    rule: AltRule


def choose_alt_text(
    item_alt: Optional[str],
    page_title: Optional[str],
    model_default: Optional[str],
    hard_default: str,
) -> AltResolution:
    """item alt → page title → model ``default_alt`` → hard-coded default."""
    if item_alt is not None and item_alt.strip():
        return AltResolution(item_alt.strip(), AltRule.ITEM_ALT)
    if page_title:
        return AltResolution(page_title, AltRule.PAGE_TITLE)
    if model_default is not None and model_default.strip():
        return AltResolution(model_default.strip(), AltRule.MODEL_DEFAULT)
    return AltResolution(hard_default, AltRule.HARD_DEFAULT)


def suggested_path(url: str, directory: str) -> str:
    """``<directory>/<basename of the URL path>``, or a random ``.bin`` name."""
    filename = posixpath.basename(urlparse(url).path)
    if not filename:
        filename = f"media_{uuid.uuid4().hex[:13]}.bin"
    return f"{directory.rstrip('/')}/{filename}" if directory else filename


class MediaAssetBuilder:
    """
    Owns the run's ``url_to_asset`` and ``assets_by_bundle`` caches.

    Every asset is registered under both the URL as written in the model or
    page *and* its resolved form, so later lookups hit regardless of which
    form a field uses.
    """

    def __init__(
        self,
        store: ContentStore,
        fetcher: ResourceFetcher,
        page_title: Optional[str],
        model_default_alt: Optional[str],
        hard_default_alt: str,
        media_directory: str = "",
    ):
        self._store = store
        self._fetcher = fetcher
        self._page_title = page_title
        self._model_default_alt = model_default_alt
        self._hard_default_alt = hard_default_alt
        self._media_directory = media_directory

        self.url_to_asset: Dict[str, Asset] = {}
        self.assets_by_bundle: Dict[str, List[Asset]] = {}
        self.created: List[Asset] = []
        self.rules: List[RuleTrace] = []

    # ------------------------------------------------------------------
    def build_from_bundles(
        self, bundles: Sequence[MediaBundleSpec]
    ) -> Tuple[Dict[str, Asset], Dict[str, List[Asset]]]:
        """Create an asset for every bundle item that can be fetched and stored."""
        for bundle in bundles:
            if not self._bundle_exists(bundle.bundle):
                logger.warning(f"Media bundle '{bundle.bundle}' does not exist; skipping its items")
                continue
            for item in bundle.items:
                if not item.url:
                    continue
                asset = self.ensure_asset(item.url, bundle.bundle, item.alt)
                if asset is not None:
                    self.assets_by_bundle.setdefault(bundle.bundle, []).append(asset)
        logger.info(f"Media phase done: {len(self.created)} asset(s) created")
        return self.url_to_asset, self.assets_by_bundle

    def ensure_asset(
        self, url: str, bundle: str = DEFAULT_BUNDLE, alt_hint: Optional[str] = None
    ) -> Optional[Asset]:
        """Cached asset for ``url`` (raw or resolved form), else fetch and create it."""
        if url in self.url_to_asset:
            return self.url_to_asset[url]
        resolved = self._fetcher.resolve(url).url
        if resolved in self.url_to_asset:
            self.url_to_asset[url] = self.url_to_asset[resolved]
            return self.url_to_asset[resolved]
        return self._create(url, bundle, alt_hint)

    def first_in_bundle(self, bundle: str = DEFAULT_BUNDLE) -> Optional[Asset]:
        assets = self.assets_by_bundle.get(bundle)
        return assets[0] if assets else None

    # ------------------------------------------------------------------
    def _bundle_exists(self, bundle: str) -> bool:
        try:
            return bool(bundle) and self._store.has_bundle(bundle)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Could not check media bundle '{bundle}': {exc}")
            return False

    def _create(self, url: str, bundle: str, alt_hint: Optional[str]) -> Optional[Asset]:
        resolution = self._fetcher.resolve(url)
        self.rules.append(RuleTrace(subject=url, rule=resolution.rule.value, value=resolution.url))

        data = self._fetcher.fetch(resolution.url)
        if not data:
            logger.warning(f"Skipping media {url}: nothing fetched from {resolution.url}")
            return None

        try:
            resource_id = self._store.write_bytes(data, suggested_path(resolution.url, self._media_directory))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Write file failed for {resolution.url}: {exc}")
            return None

        alt = choose_alt_text(alt_hint, self._page_title, self._model_default_alt, self._hard_default_alt)
        self.rules.append(RuleTrace(subject=url, rule=alt.rule.value, value=alt.text))

        try:
            asset_id = self._store.create_asset(bundle, resource_id, alt.text)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error(f"Creating {bundle} asset for {resolution.url} failed: {exc}")
            return None

        asset = Asset(
            id=str(asset_id),
            source_resource_id=str(resource_id),
            alt_text=alt.text,
            bundle=bundle,
            url=resolution.url,
        )
        self.url_to_asset[url] = asset
        self.url_to_asset[resolution.url] = asset
        self.created.append(asset)
        ASSETS_CREATED.inc()
        logger.info(f"Created {bundle} asset {asset.id} for {resolution.url} (alt: {alt.rule.value})")
        return asset
