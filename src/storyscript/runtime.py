""" Mutable story state: variables, characters and the position cursor.

Also home to the expression and condition evaluators for the bodies of
`~ ...` and `{ ... }` lines. Neither evaluator ever raises. Anything it
can't make sense of is reported and treated as a no-op or as false.
"""

import re
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Mapping, Iterator, Tuple

from storyscript import config, values
from storyscript.values import Value
from storyscript.diagnostics import Reporter, Category, DiagnosticSink

# compound operators must be tried before plain assignment, "=" is a
# substring of every one of them
COMPOUND_ASSIGN_RES = (
    ("+", re.compile(r'^(\w+)\s*\+=\s*(.+)$', re.ASCII)),
    ("-", re.compile(r'^(\w+)\s*-=\s*(.+)$', re.ASCII)),
    ("*", re.compile(r'^(\w+)\s*\*=\s*(.+)$', re.ASCII)),
    ("/", re.compile(r'^(\w+)\s*/=\s*(.+)$', re.ASCII)),
)
ASSIGN_RE = re.compile(r'^(\w+)\s*=\s*(.+)$', re.ASCII)

# longer operators first so ">=" isn't read as ">" followed by "= ..."
COMPARE_RE = re.compile(r'^([\w.]+)\s*(>=|<=|==|!=|>|<)\s*(.+)$', re.ASCII)


@dataclass
class Position:
    label: str
    node_index: int = 0


class VariableStore:
    """ The single global variable namespace of a story. """

    def __init__(self) -> None:
        self._values:Dict[str, Value] = {}

    def get(self, name:str) -> Optional[Value]:
        return self._values.get(name)

    def set(self, name:str, value:Value) -> None:
        self._values[name] = value

    def has(self, name:str) -> bool:
        return name in self._values

    def clear(self) -> None:
        self._values.clear()

    def as_dict(self) -> Dict[str, Value]:
        return dict(self._values)

    def __contains__(self, name:object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)


class CharacterRegistry:
    def __init__(self) -> None:
        self._characters:Dict[str, Dict[str, str]] = {}

    def register(self, name:str, attributes:Mapping[str, str]) -> None:
        # later registrations simply win
        self._characters[name] = dict(attributes)

    def get(self, name:str) -> Optional[Mapping[str, str]]:
        return self._characters.get(name)

    def attribute(self, name:str, attribute:str) -> Optional[str]:
        character = self._characters.get(name)
        if character is None:
            return None
        return character.get(attribute)

    def clear(self) -> None:
        self._characters.clear()

    def __contains__(self, name:object) -> bool:
        return name in self._characters

    def __len__(self) -> int:
        return len(self._characters)

    def __iter__(self) -> Iterator[str]:
        return iter(self._characters)


def split_reference(reference:str) -> Tuple[str, str]:
    """ splits Char.attr dot notation into its two parts """
    parts = reference.split(".")
    return parts[0], parts[1]


class Runtime(Reporter):
    def __init__(self, start_label:Optional[str]=None, sink:Optional[DiagnosticSink]=None) -> None:
        super().__init__(sink=sink)
        if start_label is None:
            start_label = config.Settings.Runtime.START_LABEL
        self.start_label:str = start_label
        self.position = Position(start_label, 0)
        self.variables = VariableStore()
        self.characters = CharacterRegistry()

    @property
    def current_label(self) -> str:
        return self.position.label

    @property
    def current_node_index(self) -> int:
        return self.position.node_index

    # variables

    def set_variable(self, name:str, value:Value) -> None:
        self.variables.set(name, value)
        self.logger.debug(f'set variable: {name} = {values.to_string(value)}')

    def get_variable(self, name:str) -> Optional[Value]:
        return self.variables.get(name)

    def has_variable(self, name:str) -> bool:
        return self.variables.has(name)

    # characters

    def register_character(self, name:str, attributes:Mapping[str, str]) -> None:
        self.characters.register(name, attributes)
        self.logger.debug(f'registered character: {name} {dict(attributes)}')

    def get_character(self, name:str) -> Optional[Mapping[str, str]]:
        return self.characters.get(name)

    def get_character_attribute(self, name:str, attribute:str) -> Optional[str]:
        return self.characters.attribute(name, attribute)

    # expressions and conditions

    def parse_value(self, text:str) -> Value:
        """ Interprets the right hand side of an assignment or comparison.

        In order: quoted string literal, true/false, numeric literal,
        Char.attr character attribute, existing variable, and finally the
        text itself as a bare string.
        """

        text = text.strip()

        if text.startswith('"') or text.startswith("'"):
            return text[1:-1]

        if text == "true":
            return True
        if text == "false":
            return False

        number = values.parse_number(text)
        if number is not None:
            return number

        if "." in text:
            attribute_value = self.get_character_attribute(*split_reference(text))
            if attribute_value is not None:
                return attribute_value

        if self.has_variable(text):
            return self.variables.get(text) # type: ignore[return-value]

        return text

    def evaluate_expression(self, expression:str) -> None:
        """ Applies a variable expression, e.g. "affection += 10". """

        expression = expression.strip()

        for op, pattern in COMPOUND_ASSIGN_RES:
            m = pattern.match(expression)
            if m:
                name, rhs = m.group(1), m.group(2)
                current = self.get_variable(name)
                if not values.is_truthy(current):
                    current = 0
                self.set_variable(name, values.arithmetic(op, current, self.parse_value(rhs)))
                return

        m = ASSIGN_RE.match(expression)
        if m:
            self.set_variable(m.group(1), self.parse_value(m.group(2)))
            return

        self.report(
            Category.UNKNOWN_EXPRESSION_OR_CONDITION,
            f'unknown expression: {expression}',
            subject=expression,
        )

    def _lookup(self, reference:str) -> Optional[Value]:
        """ resolves the left side of a comparison, a variable or Char.attr """
        value:Optional[Value]
        if "." in reference:
            value = self.get_character_attribute(*split_reference(reference))
        else:
            value = self.get_variable(reference)

        if value is None:
            self.report(
                Category.MISSING_REFERENCE,
                f'{reference} is not defined',
                level=logging.DEBUG,
                subject=reference,
            )
        return value

    def evaluate_condition(self, condition:str) -> bool:
        """ Evaluates a condition to true or false.

        Conditions are split on "&&" if present anywhere (every part must
        hold), otherwise on "||" (any part holds). There are no parentheses
        and no precedence beyond that: "a || b && c" means
        "(a || b) && c". Each part is a single comparison of a variable or
        Char.attr against a value.
        """

        condition = condition.strip()

        if "&&" in condition:
            return all(self.evaluate_condition(part) for part in condition.split("&&"))

        if "||" in condition:
            return any(self.evaluate_condition(part) for part in condition.split("||"))

        m = COMPARE_RE.match(condition)
        if m:
            left_name, op, rhs = m.group(1), m.group(2), m.group(3)
            right_value = self.parse_value(rhs)
            left_value = self._lookup(left_name)
            result = values.compare(left_value, op, right_value)
            self.logger.debug(f'condition {left_name} {op} {rhs}: {values.to_string(left_value)} {op} {values.to_string(right_value)} -> {result}')
            return result

        self.report(
            Category.UNKNOWN_EXPRESSION_OR_CONDITION,
            f'unknown condition: {condition}',
            subject=condition,
        )
        return False

    # navigation

    def jump(self, label:str) -> None:
        """ moves the cursor to the start of label, which need not exist """
        self.position = Position(label, 0)
        self.logger.debug(f'jumped to label: {label}')

    def next_node(self) -> None:
        self.position.node_index += 1

    def reset(self) -> None:
        """ back to the start label with no variables.

        Characters are left alone, starting a story registers them again. """
        self.position = Position(self.start_label, 0)
        self.variables.clear()
        self.logger.debug("reset complete")

    def get_state(self) -> str:
        """ a JSON snapshot of where we are, for debugging """
        return json.dumps({
            "label": self.position.label,
            "node": self.position.node_index,
            "variables": self.variables.as_dict(),
        }, indent=2)
