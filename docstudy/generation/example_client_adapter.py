"""Example generative-text client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseGenerationClient and register the provider in GenerativeTextFactory.
"""

import json
from typing import ClassVar

from docstudy.generation.client_base import BaseGenerationClient

_EXAMPLE_TERMS = [
    ("Hard hat", "Protective helmet worn to shield the head from falling objects and impacts."),
    ("Safety goggles", "Close-fitting eyewear that protects the eyes from dust, splashes and debris."),
    ("Lockout tagout", "Procedure that isolates energy sources before maintenance so machines cannot start."),
    ("Guardrail", "Barrier along an open edge that prevents workers from falling to a lower level."),
    ("Fire extinguisher", "Portable device that discharges an agent to put out small fires."),
    ("First aid kit", "Collection of supplies used to give immediate care for minor injuries."),
    ("Hazard", "Any source of potential harm or adverse health effect in the workplace."),
    ("Respirator", "Mask that filters airborne particles or gases before they are inhaled."),
    ("Scaffold", "Temporary raised platform used to support workers and materials."),
    ("Ear protection", "Plugs or muffs that reduce exposure to harmful noise levels."),
    ("Steel-toed boots", "Work footwear with reinforced caps that protect toes from crushing."),
    ("High-visibility vest", "Brightly coloured garment that makes a worker easy to see."),
    ("Emergency exit", "Designated route that allows occupants to leave a building quickly."),
    ("Safety data sheet", "Document describing the hazards and safe handling of a chemical product."),
    ("Toolbox talk", "Short informal meeting on a specific safety topic held at the job site."),
]


class ExampleClientAdapter(BaseGenerationClient):
    """Example adapter that returns fixed study material.

    No network calls. JSON requests always receive the same 15-term extraction
    payload; text requests receive a bare category name. Useful for local
    development, tests, and as a template for real provider adapters.
    """

    DEFAULT_JSON_RESPONSE: ClassVar[dict[str, object]] = {
        "terms": [
            {"term": term, "definition": definition, "category": "Safety"}
            for term, definition in _EXAMPLE_TERMS
        ],
        "questions": [
            {"prompt": f"Which term is described as: {definition}", "answer": term}
            for term, definition in _EXAMPLE_TERMS
        ],
    }
    DEFAULT_TEXT_RESPONSE: ClassVar[str] = "General"

    def __init__(self) -> None:
        pass

    def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt
        if json_mode:
            return json.dumps(self.DEFAULT_JSON_RESPONSE)
        return self.DEFAULT_TEXT_RESPONSE
