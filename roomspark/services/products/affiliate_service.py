"""
Affiliate link rewriting for marketplace product links
"""
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit

from roomspark.schemas.products import ProductData

logger = logging.getLogger(__name__)

AMAZON_DOMAINS = ("amazon.com", "amzn.to")
TRACKING_PARAM = "tag"
_DEFAULT_SCHEME = "https://"


def _split_link(url: str) -> SplitResult:
    """Split a link; scheme-less links such as "amazon.com/x" are read as https"""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        parts = urlsplit(_DEFAULT_SCHEME + url)
    return parts


def link_host(url: str) -> Optional[str]:
    if not url:
        return None
    try:
        return _split_link(url.strip()).hostname
    except ValueError:
        return None


def is_amazon_url(url: str) -> bool:
    """True when the link's host is an Amazon domain or a subdomain of one"""
    host = link_host(url)
    if not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in AMAZON_DOMAINS)


@dataclass
class AffiliateConfig:
    amazon_tag: str = ""


class AffiliateService:
    """Adds the Amazon tracking tag to Amazon links. Idempotent and never raises."""

    def __init__(self, config: AffiliateConfig):
        self.config = config

    def convert_amazon_url(self, url: str) -> str:
        """Return url with the tracking tag, keeping its original form; raises ValueError if url cannot be parsed"""
        raw = urlsplit(url)
        has_scheme = bool(raw.scheme and raw.netloc)
        parts = _split_link(url)
        if not parts.hostname:
            raise ValueError(f"no host in URL: {url[:100]}")

        query = parse_qsl(parts.query, keep_blank_values=True)
        if any(key == TRACKING_PARAM for key, _ in query):
            return url

        query.append((TRACKING_PARAM, self.config.amazon_tag))
        tagged = urlunsplit(parts._replace(query=urlencode(query)))
        if not has_scheme:
            tagged = tagged[len(_DEFAULT_SCHEME):]
        return tagged

    def convert_product_links(self, products: List[ProductData]) -> List[ProductData]:
        converted = []
        for product in products:
            if not product.link or not is_amazon_url(product.link):
                converted.append(product.model_copy())
                continue

            try:
                link = self.convert_amazon_url(product.link)
            except ValueError as e:
                logger.warning(f"Error converting Amazon URL: {e}")
                converted.append(product.model_copy())
                continue

            converted.append(product.model_copy(update={"link": link, "is_affiliate": True}))
        return converted
