""" Helpers for whatever presents a story to a player.

The interpreter hands out raw nodes. Turning those into something to show
(placeholders filled in, speaker names, which choices look selectable) is up
to the presentation layer, these are the bits every presentation layer
needs. None of this feeds back into the interpreter.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional

from storyscript import values
from storyscript.diagnostics import Category
from storyscript.nodes import ChoiceNode
from storyscript.runtime import Runtime, split_reference

# {affection} or {MC.name}
PLACEHOLDER_RE = re.compile(r'\{([\w.]+)\}', re.ASCII)


def interpolate(runtime:Runtime, text:str) -> str:
    """ Fills {variable} and {Char.attr} placeholders from runtime state.

    Placeholders that don't resolve are left as they are. """

    def substitute(m:"re.Match[str]") -> str:
        reference = m.group(1)
        value:Optional[values.Value]
        if "." in reference:
            value = runtime.get_character_attribute(*split_reference(reference))
        else:
            value = runtime.get_variable(reference)

        if value is None:
            runtime.report(
                Category.MISSING_REFERENCE,
                f'placeholder {m.group(0)} not found',
                level=logging.DEBUG,
                subject=reference,
            )
            return m.group(0)
        return values.to_string(value)

    return PLACEHOLDER_RE.sub(substitute, text)

def display_name(runtime:Runtime, character:str) -> str:
    """ the name attribute of a defined character, otherwise the character
    identifier as written in the script """
    return runtime.get_character_attribute(character, "name") or character


@dataclass(frozen=True)
class ChoiceView:
    text: str
    target: str
    condition: Optional[str]
    enabled: bool


def choice_options(runtime:Runtime, node:ChoiceNode) -> List[ChoiceView]:
    """ Interpolated options with whether their condition currently holds.

    enabled is advisory. select_choice will take any target. """
    return [
        ChoiceView(
            interpolate(runtime, choice.text),
            choice.target,
            choice.condition,
            runtime.evaluate_condition(choice.condition) if choice.condition else True,
        )
        for choice in node.choices
    ]
