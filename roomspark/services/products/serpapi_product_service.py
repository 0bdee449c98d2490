"""
SerpApi product discovery: Google Lens visual matches and Amazon keyword search
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from serpapi import GoogleSearch

from roomspark.core.config import settings
from roomspark.core.exceptions import DiscoveryError
from roomspark.schemas.products import ProductData, ProductPrice
from roomspark.services.products.base import ProductService

logger = logging.getLogger(__name__)

AMAZON_RESULTS_PER_DESCRIPTION = 3


class SerpApiProductService(ProductService):
    """Reverse image search through SerpApi.

    Google Lens answers in two phases: the first response carries a products page
    token and the second query, made with that token, returns the product matches.
    """

    provider_name = "serpapi"

    def __init__(self, api_key: str = None, country: str = None):
        self.api_key = api_key or settings.serpapi_api_key
        if not self.api_key:
            raise ValueError("SerpApi key is required - set SERPAPI_API_KEY environment variable")
        self.country = country or settings.serpapi_country

    async def _search(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Run a blocking SerpApi query in a worker thread"""
        query = dict(params, api_key=self.api_key)
        return await asyncio.to_thread(lambda: GoogleSearch(query).get_dict())

    @staticmethod
    def _match_to_product(match: Dict[str, Any]) -> ProductData:
        price = None
        raw_price = match.get("price")
        if isinstance(raw_price, dict) and raw_price.get("extracted_value") is not None:
            price = ProductPrice(value=raw_price["extracted_value"], currency=raw_price.get("currency") or "")

        title = match.get("title") or ""
        source = match.get("source") or ""
        return ProductData(
            title=title,
            link=match.get("link") or "",
            source=source,
            price=price,
            image=match.get("image") or match.get("thumbnail") or "",
            description=f"{source} - {title}",
            in_stock=bool(match.get("in_stock", False)),
            is_affiliate=False,
        )

    async def get_products_from_image(self, image_url: str) -> List[ProductData]:
        params = {
            "engine": "google_lens",
            "url": image_url,
            "hl": "en",
            "country": self.country,
        }

        try:
            response = await self._search(params)
        except Exception as e:
            logger.error(f"Google Lens search failed: {e}")
            raise DiscoveryError()

        if response.get("error"):
            logger.error(f"Serpapi returned an error: {response['error']}")
            raise DiscoveryError()
        if "visual_matches" not in response:
            logger.error("Serpapi returned no visual matches")
            raise DiscoveryError()

        page_token: Optional[str] = response.get("products_page_token")
        if not page_token:
            logger.error("Google Lens response has no products page token")
            raise DiscoveryError()

        try:
            products_page = await self._search(dict(params, page_token=page_token))
        except Exception as e:
            logger.error(f"Google Lens products page failed: {e}")
            raise DiscoveryError()
        if products_page.get("error"):
            logger.error(f"Serpapi returned an error on the products page: {products_page['error']}")
            raise DiscoveryError()
        matches = products_page.get("visual_matches") or []

        if not matches:
            logger.warning(f"Google Lens found no products for {image_url[:100]}")
            raise DiscoveryError()

        products = [self._match_to_product(match) for match in matches]
        logger.info(f"Google Lens returned {len(products)} products")
        return products

    @staticmethod
    def _amazon_result_to_product(result: Dict[str, Any]) -> ProductData:
        price = None
        if result.get("extracted_price") is not None:
            price = ProductPrice(value=result["extracted_price"], currency="$")

        title = result.get("title") or ""
        return ProductData(
            title=title,
            link=result.get("link") or result.get("link_clean") or "",
            source="Amazon",
            price=price,
            image=result.get("thumbnail") or "",
            description=f"Amazon - {title}",
            in_stock=True,
            is_affiliate=False,
        )

    async def get_products_by_amazon_search(
        self, descriptions: List[str], project_id: str, user_id: str
    ) -> List[ProductData]:
        products: List[ProductData] = []
        for description in descriptions:
            params = {
                "engine": "amazon",
                "k": description,
                "amazon_domain": "amazon.com",
            }
            try:
                response = await self._search(params)
            except Exception as e:
                logger.warning(f"Amazon search failed for '{description[:60]}' (project {project_id}): {e}")
                continue

            if response.get("error"):
                logger.warning(f"Amazon search error for '{description[:60]}': {response['error']}")
                continue

            results = response.get("organic_results") or []
            products.extend(self._amazon_result_to_product(r) for r in results[:AMAZON_RESULTS_PER_DESCRIPTION])

        logger.info(f"Amazon search returned {len(products)} products for {len(descriptions)} descriptions")
        return products
