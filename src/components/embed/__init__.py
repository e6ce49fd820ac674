"""
Embed component - post HTML normalization (embeds, iframes, code blocks).
"""

from ._impl import (
    DEFAULT_CONFIG,
    EmbedConfig,
    NormalizeResult,
    complete_iframe_attrs,
    convert_to_embed_url,
    detect_language,
    normalize_html,
    unescape_entities,
)
from .component import run, run_normalize
from .models import NormalizeInput, NormalizeOutput
from .ports import RulesPort

__all__ = [
    # Entry points
    "run",
    "run_normalize",
    # Input/Output models
    "NormalizeInput",
    "NormalizeOutput",
    # Ports
    "RulesPort",
    # Functional core
    "DEFAULT_CONFIG",
    "EmbedConfig",
    "NormalizeResult",
    "complete_iframe_attrs",
    "convert_to_embed_url",
    "detect_language",
    "normalize_html",
    "unescape_entities",
]
