"""
Product discovery contract
"""
from abc import ABC, abstractmethod
from typing import List

from roomspark.schemas.products import ProductData


class ProductService(ABC):
    """Finds shoppable products for a generated room image"""

    provider_name = "base"

    @abstractmethod
    async def get_products_from_image(self, image_url: str) -> List[ProductData]:
        """
        Visual search for products in an image.

        Raises:
            DiscoveryError: the backend reported an error or found no matches
        """

    @abstractmethod
    async def get_products_by_amazon_search(
        self, descriptions: List[str], project_id: str, user_id: str
    ) -> List[ProductData]:
        """Keyword search, one query per description; failed queries are skipped"""
