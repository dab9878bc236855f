"""Decode the picked keys out of a picker's raw property value.

Pickers persist their selection in one of three formats:

- csv:  ``"12,15,9"``
- json: ``[{"key": "12", "label": "Home"}, ...]``
- xml:  ``<Picker><Picked Key="12"><![CDATA[Home]]></Picked></Picker>``
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any

from relmap.errors import SavedValueError


def get_keys(saved_value: Any) -> list[str]:
    """Return the picked keys in saved order.

    Raises:
        SavedValueError: If a json or xml value cannot be parsed, or a json
            item has no ``key``.
    """
    if saved_value is None:
        return []
    if isinstance(saved_value, (list, tuple)):
        return [_item_key(item) for item in saved_value]

    text = str(saved_value).strip()
    if not text:
        return []

    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SavedValueError(f"Invalid picker json: {exc}") from exc
        return [_item_key(item) for item in items]

    if text.startswith("<"):
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise SavedValueError(f"Invalid picker xml: {exc}") from exc
        return [picked.attrib["Key"] for picked in root.iter("Picked") if "Key" in picked.attrib]

    return [key.strip() for key in text.split(",") if key.strip()]


def _item_key(item: Any) -> str:
    if isinstance(item, dict):
        if "key" not in item:
            raise SavedValueError(f"Picker item has no key: {item!r}")
        return str(item["key"])
    return str(item)
