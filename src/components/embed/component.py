"""
Embed component - HTML normalization before rendering.

Unescapes entity-escaped markup, rewrites video watch URLs to embed URLs,
completes iframe attributes and wraps code blocks with a copy control.

Invariants:
- Total: never raises on malformed input
- Idempotent: normalizing normalized output changes nothing
- Existing iframe attributes are never overwritten
- Code text inside <pre> is preserved byte-for-byte, escaped for display
"""

from __future__ import annotations

from ._impl import DEFAULT_CONFIG, EmbedConfig, normalize_html
from .models import NormalizeInput, NormalizeOutput
from .ports import RulesPort


def _build_config(rules: RulesPort | None) -> EmbedConfig:
    """Build embed config from rules port."""
    if rules is None:
        return DEFAULT_CONFIG

    defaults = rules.get_iframe_defaults()
    return EmbedConfig(
        allowfullscreen=bool(defaults.get("allowfullscreen", DEFAULT_CONFIG.allowfullscreen)),
        allow=str(defaults.get("allow", DEFAULT_CONFIG.allow)),
        width=str(defaults.get("width", DEFAULT_CONFIG.width)),
        height=str(defaults.get("height", DEFAULT_CONFIG.height)),
        frameborder=str(defaults.get("frameborder", DEFAULT_CONFIG.frameborder)),
    )


# --- Component Entry Points ---


def run_normalize(
    inp: NormalizeInput,
    *,
    rules: RulesPort | None = None,
) -> NormalizeOutput:
    """
    Normalize post HTML for direct injection into a page.

    Args:
        inp: Input containing the raw HTML.
        rules: Optional rules port for iframe defaults.

    Returns:
        NormalizeOutput with the normalized HTML.
    """
    result = normalize_html(inp.html, _build_config(rules))
    return NormalizeOutput(
        html=result.html,
        code_blocks=result.code_blocks,
        iframes=result.iframes,
        success=True,
    )


def run(inp: NormalizeInput, *, rules: RulesPort | None = None) -> NormalizeOutput:
    """Main entry point for the embed component."""
    if isinstance(inp, NormalizeInput):
        return run_normalize(inp, rules=rules)
    raise ValueError(f"Unknown input type: {type(inp)}")
