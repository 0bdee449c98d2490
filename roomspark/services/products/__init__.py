"""
Product discovery providers and post-processing
"""
from .affiliate_service import AffiliateConfig, AffiliateService
from .base import ProductService
from .mock_product_service import MockProductService
from .product_processor_service import ProductProcessorConfig, ProductProcessorService
from .serpapi_product_service import SerpApiProductService

__all__ = [
    "AffiliateConfig",
    "AffiliateService",
    "ProductService",
    "MockProductService",
    "ProductProcessorConfig",
    "ProductProcessorService",
    "SerpApiProductService",
]
