"""
Mock discovery provider with a fixed catalog sampled from real Lens results
"""
import asyncio
import logging
from typing import List

from roomspark.core.config import settings
from roomspark.schemas.products import ProductData, ProductPrice
from roomspark.services.products.base import ProductService

logger = logging.getLogger(__name__)


def _catalog() -> List[ProductData]:
    return [
        ProductData(
            title="3-Tier End Table with USB Ports and Outlets, Sofa Table for Small Space - Bed Bath & Beyond - 40768986",
            link="https://www.bedbathandbeyond.com/Home-Garden/3-Tier-End-Table-with-USB-Ports-and-Outlets-Sofa-Table-for-Small-Space/40768986/product.html",
            image="https://ak1.ostkcdn.com/images/products/is/images/direct/030e273800199eaf73b83441566aff960a710041/3-Tier-End-Table-with-USB-Ports-and-Outlets,-Sofa-Table-for-Small-Space.jpg?impolicy=medium",
            description="Bed Bath & Beyond - 3-Tier End Table with USB Ports and Outlets",
            in_stock=False,
            source="Bed Bath & Beyond",
        ),
        ProductData(
            title="BYBLIGHT Kerlin 23.62 in. Rustic Brown & Black Rectangular Wood End Table, 2-Tier Side Tables with Metal Frame for Home, 2 Pcs BB-RY0166YFx2 - The Home Depot",
            price=ProductPrice(value=170, currency="$"),
            link="https://www.homedepot.com/p/BYBLIGHT-Kerlin-23-62-in-Rustic-Brown-Black-Rectangular-Wood-End-Table-2-Tier-Side-Tables-with-Metal-Frame-for-Home-2-Pcs-BB-RY0166YFx2/332825066",
            image="https://images.thdstatic.com/productImages/1498e0a9-9ab7-4cb7-b872-3d182683d3a1/svn/rustic-brown-black-byblight-end-side-tables-bb-ry0166yfx2-31_600.jpg",
            description="The Home Depot - BYBLIGHT Kerlin Rustic Brown & Black Wood End Table",
            in_stock=False,
            source="The Home Depot",
        ),
        ProductData(
            title="George Oliver Flinn 84'' Upholstered Sofa | Wayfair",
            price=ProductPrice(value=1100, currency="$"),
            link="https://www.wayfair.com/furniture/pdp/george-oliver-flinn-84-square-arm-sofa-with-reversible-cushions-w001355366.html",
            image="https://assets.wfcdn.com/im/50357273/resize-h380-w380^compr-r70/1579/157955275/default_name.jpg",
            description="Wayfair - George Oliver Flinn 84'' Upholstered Sofa",
            in_stock=True,
            source="Wayfair",
        ),
        ProductData(
            title="Uptown 96-Inch Sofa, Atenea Snow - Walmart.com",
            price=ProductPrice(value=2304, currency="$"),
            link="https://www.walmart.com/ip/Uptown-96-Inch-Sofa-Atenea-Snow/5144555998",
            image="https://i5.walmartimages.com/seo/Uptown-96-Inch-Sofa-Atenea-Snow_5d84eff2-5f8c-4481-9e24-66ba0f9bb9a1.8025bc20f000016fe26c0521efa5b13a.jpeg?odnHeight=768&odnWidth=768&odnBg=FFFFFF",
            description="Walmart - Uptown 96-Inch Sofa, Atenea Snow",
            in_stock=True,
            source="Walmart",
        ),
        ProductData(
            title="Amazon.com: Round Side Table, Set of 2 Black LED Nightstands with Twine Rope Design, Modern Wood Coffee Table",
            link="https://www.amazon.com/-/es/auxiliar-redonda-dormitorio-moderna-mediados/dp/B0DB8C1BZH",
            image="https://m.media-amazon.com/images/I/81YYfWf2E6L._AC_UF894,1000_QL80_.jpg",
            description="Amazon.com - Round Side Table with LED Design",
            in_stock=True,
            source="Amazon",
        ),
    ]


class MockProductService(ProductService):
    """Deterministic products for local development and tests"""

    provider_name = "mock"

    def __init__(self, delay_seconds: float = None):
        self.delay_seconds = settings.mock_products_delay_seconds if delay_seconds is None else delay_seconds

    async def get_products_from_image(self, image_url: str) -> List[ProductData]:
        await asyncio.sleep(self.delay_seconds)
        products = _catalog()
        logger.info(f"Mock discovery returned {len(products)} products")
        return products

    async def get_products_by_amazon_search(
        self, descriptions: List[str], project_id: str, user_id: str
    ) -> List[ProductData]:
        await asyncio.sleep(self.delay_seconds)
        products = []
        for index, description in enumerate(descriptions):
            products.append(
                ProductData(
                    title=f"Amazon.com: {description}",
                    price=ProductPrice(value=100 + 25 * index, currency="$"),
                    link=f"https://www.amazon.com/s?k={'+'.join(description.split())}",
                    image="https://m.media-amazon.com/images/I/81YYfWf2E6L._AC_UF894,1000_QL80_.jpg",
                    description=f"Amazon - {description}",
                    in_stock=True,
                    source="Amazon",
                )
            )
        return products
