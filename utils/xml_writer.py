import xml.etree.ElementTree as ET
from dataclasses import fields
from typing import Any, Dict, Optional
from xml.dom import minidom

from models import PlannerInputs

# Household fields written as top-level tags (the people get their own sections)
HOUSEHOLD_TAGS = ("end_simulation_age", "start_year", "business_income", "business_income_until_age")


def prettify_xml(elem):
    """Return a pretty-printed XML string for an Element."""
    rough_string = ET.tostring(elem, 'utf-8')
    reparsed = minidom.parseString(rough_string)
    # Return the XML declaration and the pretty-printed content
    return reparsed.toprettyxml(indent="    ")


def _add_fields(parent: ET.Element, obj, skip=()) -> None:
    for f in fields(obj):
        if f.name in skip:
            continue
        value = getattr(obj, f.name)
        # Missing values are left out so the loader falls back to defaults
        if value is not None:
            ET.SubElement(parent, f.name).text = str(value)


def create_setup_xml(inputs: PlannerInputs, simulation: Optional[Dict[str, Any]] = None) -> str:
    """
    Converts PlannerInputs (and optional Monte Carlo settings such as
    volatility / num_trials / seed / strategy) into setup XML that
    utils.xml_loader reads back.
    """
    root = ET.Element('setup')

    household = inputs.household
    _add_fields(ET.SubElement(root, 'person1'), household.person1)
    if household.person2 is not None:
        _add_fields(ET.SubElement(root, 'person2'), household.person2)

    if simulation:
        sim_elem = ET.SubElement(root, 'simulation')
        for key, value in simulation.items():
            if value is not None:
                ET.SubElement(sim_elem, key).text = str(value)

    for tag in HOUSEHOLD_TAGS:
        value = getattr(household, tag)
        if value is not None:
            ET.SubElement(root, tag).text = str(value)

    _add_fields(root, inputs.accounts)
    _add_fields(root, inputs.spend_plan)
    _add_fields(root, inputs.tax_context, skip=("bracket_table",))

    brackets_elem = ET.SubElement(root, 'brackets')
    for rate, ceiling in inputs.tax_context.bracket_table:
        ET.SubElement(brackets_elem, 'bracket', rate=str(rate), ceiling=str(ceiling))

    for holding in inputs.real_estate:
        prop_elem = ET.SubElement(root, 'property', name=holding.name)
        _add_fields(prop_elem, holding, skip=("name",))

    return prettify_xml(root)
