from commerce_recon.config import Settings
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.platforms.easyecom import EasyecomAdapter
from commerce_recon.platforms.razorpay import RazorpayAdapter
from commerce_recon.platforms.shopify import ShopifyAdapter


def build_adapters(settings: Settings) -> list[PlatformAdapter]:
    """Fresh adapter instances, in Shopify / Razorpay / Easyecom order."""
    return [ShopifyAdapter(settings), RazorpayAdapter(settings), EasyecomAdapter(settings)]


__all__ = [
    "PlatformAdapter",
    "ShopifyAdapter",
    "RazorpayAdapter",
    "EasyecomAdapter",
    "build_adapters",
]
