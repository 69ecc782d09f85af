# utils/xml_loader.py
import io
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Union
from pathlib import Path

# Sections flattened to "<section>_<field>" keys
PREFIXED_SECTIONS = ("person1", "person2", "simulation")


def try_cast(value: str) -> Any:
    """Try to convert string to bool, int or float if possible, else leave as str."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == "none":
        return None
    # Booleans
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    # Integers (try first)
    try:
        if '.' not in value and 'e' not in value.lower():
            return int(value)
    except ValueError:
        pass

    # Floats (try second)
    try:
        return float(value)
    except ValueError:
        pass

    return value # Return as string if all else fails


def _parse_property(elem: ET.Element, index: int) -> Dict[str, Any]:
    holding: Dict[str, Any] = {"name": elem.get("name", f"Property_{index + 1}")}
    for field in elem:
        holding[field.tag] = try_cast(field.text)
    return holding


def _parse_root(root: ET.Element) -> Dict[str, Any]:
    setup_dict: Dict[str, Any] = {}
    real_estate: List[Dict[str, Any]] = []

    for child in root:
        if child.tag in PREFIXED_SECTIONS:
            for sub in child:
                val = try_cast(sub.text)
                if sub.tag == "strategy" and isinstance(val, str):
                    val = val.strip().lower()
                setup_dict[f"{child.tag}_{sub.tag}"] = val
        elif child.tag == "property":
            real_estate.append(_parse_property(child, len(real_estate)))
        elif child.tag == "brackets":
            # <bracket rate="0.10" ceiling="24800"/> rows; converted by the input adapter
            setup_dict["bracket_table"] = [(b.get("rate"), b.get("ceiling")) for b in child.findall("bracket")]
        else:
            val = try_cast(child.text)
            if child.tag == "filing_status" and isinstance(val, str):
                val = val.strip().lower()
            setup_dict[child.tag] = val

    setup_dict["real_estate"] = real_estate
    return setup_dict


def parse_setup_xml(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Load a household setup file into a flat dict of typed values."""
    tree = ET.parse(file_path)
    return _parse_root(tree.getroot())


def parse_setup_xml_content(content: Union[str, bytes, Any]) -> Dict[str, Any]:
    """
    Same as parse_setup_xml, for XML already in memory (a string, bytes,
    or a file-like object).
    """
    if isinstance(content, bytes):
        content = io.BytesIO(content)
    elif isinstance(content, str):
        content = io.StringIO(content)
    tree = ET.parse(content)
    return _parse_root(tree.getroot())


CONFIG_DIR = Path(__file__).parent.parent / "config"

DEFAULT_SETUP = parse_setup_xml(CONFIG_DIR / "default_setup.xml")
