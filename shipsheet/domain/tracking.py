"""Carrier tracking links.

Tracking URLs are derived, never authored, for carriers with a known page.
Carrier ``Other`` has no template, so its URL stays whatever the user typed.
"""
from typing import Optional

CARRIER_URL_TEMPLATES = {
    "DHL": "https://www.dhl.com/global-en/home/tracking.html?tracking-id={}",
    "UPS": "https://www.ups.com/track?tracknum={}",
    "FedEx": "https://www.fedex.com/fedextrack/?trknbr={}",
    "USPS": "https://tools.usps.com/go/TrackConfirmAction?tLabels={}",
}

def build_tracking_url(carrier: Optional[str], tracking_number: Optional[str]) -> Optional[str]:
    """Return the carrier's tracking page for ``tracking_number``, or None."""
    trimmed = tracking_number.strip() if tracking_number else ""
    if not carrier or not trimmed:
        return None
    template = CARRIER_URL_TEMPLATES.get(carrier)
    if template is None:
        return None
    return template.format(trimmed)
