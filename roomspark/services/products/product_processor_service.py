"""
Title cleanup and marketplace-first ordering for discovered products
"""
import re
from dataclasses import dataclass
from typing import List

from roomspark.schemas.products import ProductData
from roomspark.services.products.affiliate_service import is_amazon_url

_AMAZON_TITLE_PREFIX = re.compile(r"^Amazon\.com:\s*")


@dataclass
class ProductProcessorConfig:
    amazon_priority: bool = True
    title_cleaning: bool = True


class ProductProcessorService:
    def __init__(self, config: ProductProcessorConfig = None):
        self.config = config or ProductProcessorConfig()

    @staticmethod
    def clean_title(title: str) -> str:
        return _AMAZON_TITLE_PREFIX.sub("", title or "")

    @staticmethod
    def is_amazon_product(product: ProductData) -> bool:
        return is_amazon_url(product.link)

    def process_products(self, products: List[ProductData]) -> List[ProductData]:
        processed = list(products)

        if self.config.title_cleaning:
            processed = [p.model_copy(update={"title": self.clean_title(p.title)}) for p in processed]

        if self.config.amazon_priority:
            # Stable partition: order within each group is kept
            processed = [p for p in processed if self.is_amazon_product(p)] + [
                p for p in processed if not self.is_amazon_product(p)
            ]

        return processed
