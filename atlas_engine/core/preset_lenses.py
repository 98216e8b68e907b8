"""
Catalog maintenance for tool presets.

Stored records may still carry legacy example presets or lenses written for
one narrow scenario. rewrite_presets() brings a record's presets into the
lens shape and falls back to generic lenses when the authored ones are too
specific to be reusable.
"""

import re
from typing import Any, Dict, List, Mapping, Tuple

from .capabilities import Capability
from .tool_config import MAX_LABEL_CHARS, MAX_PRESETS, normalize_preset

DEFAULT_LENSES: List[Dict[str, str]] = [
    {
        "label": "Make it clearer",
        "prompt": "Rewrite/produce the output with maximum clarity. Reduce ambiguity, define terms briefly, "
                  "and avoid jargon unless necessary.",
        "hint": "Improve clarity",
    },
    {
        "label": "More structured",
        "prompt": "Use a clean structure with headings and bullet points. Make the output scannable and "
                  "logically ordered.",
        "hint": "Add structure",
    },
    {
        "label": "More critical",
        "prompt": "Be more rigorous. Identify weak spots, missing assumptions, contradictions, and any risks "
                  "or limitations.",
        "hint": "Pressure-test",
    },
    {
        "label": "More actionable",
        "prompt": "Add concrete next steps, checklists, or recommendations. Prioritize what to do first and why.",
        "hint": "Make it usable",
    },
    {
        "label": "Shorter",
        "prompt": "Keep the output concise. Remove filler, keep only the highest-signal information, "
                  "and use tight language.",
        "hint": "Concise",
    },
]

GENERIC_LENS_COUNT = 4
MIN_AUTHORED_PRESETS = 2

_TOO_SPECIFIC = re.compile(
    r"manuscript|paper|psychology|biology|social science|case study|example|notes on a|poster on"
    r"|clinical|patient|contract|lawsuit|tax return|resume for",
    re.IGNORECASE,
)


def is_too_specific_label(label: str) -> bool:
    text = str(label or "")
    return bool(_TOO_SPECIFIC.search(text)) or len(text) > MAX_LABEL_CHARS


def _raw_label(preset: Mapping[str, Any]) -> str:
    label = preset.get("label")
    return label.strip() if isinstance(label, str) else ""


def rewrite_presets(record: Mapping[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """
    Rewrite a raw record's presets into reusable lenses.

    Records without the presets capability are returned unchanged.

    Returns:
        Tuple of (record, changed)
    """
    data = dict(record)
    features = data.get("features")
    if features is None:
        features = data.get("capabilities")
    if not isinstance(features, list) or Capability.PRESETS.value not in features:
        return data, False

    raw_presets = data.get("presets") if isinstance(data.get("presets"), list) else []
    # Labels are judged before normalize_preset clips them to MAX_LABEL_CHARS.
    authored = [(p, normalize_preset(p)) for p in raw_presets]
    authored = [(p, lens) for p, lens in authored if lens is not None]
    lenses = [lens for _, lens in authored]

    too_specific = any(is_too_specific_label(_raw_label(p)) for p, _ in authored)
    if len(lenses) < MIN_AUTHORED_PRESETS or too_specific:
        presets = [dict(lens) for lens in DEFAULT_LENSES[:GENERIC_LENS_COUNT]]
    else:
        presets = [lens.to_dict() for lens in lenses[:MAX_PRESETS]]

    changed = presets != data.get("presets")
    data["presets"] = presets
    return data, changed
