"""Browser-side evidence capture for dlcheck.

Main Components:
- Spy: in-page data-layer interception script (spy.py)
- DataLayerProxy: async accessors over the captured push log
- Decoder: GA4 collection request classification and decoding
- NetworkSpy: request listener that logs decoded GA4 hits
- Browser Factory: browser and context lifecycle with the spy pre-attached
"""

from .browser_factory import BrowserConfig, BrowserEngineType, BrowserFactory
from .datalayer import DataLayerProxy
from .decoder import decode_hit, is_tracking_request
from .network import NetworkSpy
from .spy import DataLayerSpy, build_spy_script

__all__ = [
    # Browser
    "BrowserConfig",
    "BrowserEngineType",
    "BrowserFactory",

    # Data layer
    "DataLayerProxy",
    "DataLayerSpy",
    "build_spy_script",

    # Network
    "NetworkSpy",
    "decode_hit",
    "is_tracking_request",
]
