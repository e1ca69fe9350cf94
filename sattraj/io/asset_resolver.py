"""
Model asset resolution.

Resolves the visual representation handle for the tracked body. A model is
either referenced by a Cesium ion asset id (resolved over HTTP with an explicit
access token) or by a raw URI, which is used as the handle directly.

Usage:
    resolver = AssetResourceResolver(access_token="...")
    handle = await resolver.resolve(asset_id=12345)
    handle = await resolver.resolve(uri="https://example.com/satellite.glb")
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..exceptions import AssetResolutionFailed

logger = logging.getLogger(__name__)

DEFAULT_ION_API_URL = "https://api.cesium.com"


@dataclass(frozen=True)
class ResourceHandle:
    """
    Resolved model resource.

    Attributes:
        uri: Where the model can be fetched from
        access_token: Token to present when fetching uri (None for raw URIs)
        asset_id: Source asset id (None for raw URIs)
    """
    uri: str
    access_token: Optional[str] = None
    asset_id: Optional[int] = None


class AssetResourceResolver:
    def __init__(self,
                 access_token: Optional[str] = None,
                 api_url: str = DEFAULT_ION_API_URL,
                 timeout_s: float = 10.0,
                 session: Optional[requests.Session] = None):
        """
        Params:
            access_token: ion access token used for asset-id resolution
            api_url: ion REST API base URL
            timeout_s: HTTP timeout in seconds
            session: optional requests.Session for connection reuse
        """
        self.access_token = access_token
        self.api_url = api_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    def endpoint_url(self, asset_id: int) -> str:
        return f"{self.api_url}/v1/assets/{int(asset_id)}/endpoint"

    def resolve_by_id(self, asset_id: int) -> ResourceHandle:
        """
        Resolve an ion asset id to a ResourceHandle (blocking).

        Raises:
            AssetResolutionFailed: On missing token, HTTP failure or bad payload
        """
        if not self.access_token:
            raise AssetResolutionFailed(f"No access token configured to resolve asset {asset_id}")

        url = self.endpoint_url(asset_id)
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout_s)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise AssetResolutionFailed(f"Could not resolve asset {asset_id}: {e}") from e

        if not isinstance(payload, dict) or not payload.get("url"):
            raise AssetResolutionFailed(f"Asset {asset_id} endpoint returned no url")

        logger.info(f"Resolved asset {asset_id} to {payload['url']}")
        return ResourceHandle(
            uri=payload["url"],
            access_token=payload.get("accessToken"),
            asset_id=int(asset_id),
        )

    async def resolve(self, asset_id: Optional[int] = None, uri: Optional[str] = None) -> Optional[ResourceHandle]:
        """
        Resolve the configured model reference.

        Asset ids take precedence over raw URIs. Returns None when neither is
        given.
        """
        if asset_id:
            return await asyncio.to_thread(self.resolve_by_id, asset_id)
        if uri:
            return ResourceHandle(uri=uri)
        return None
