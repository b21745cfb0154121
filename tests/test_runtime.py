""" Tests for story state and the expression and condition evaluators. """

import json
import math
from typing import List

import pytest

from storyscript.diagnostics import Category, RecordingSink
from storyscript.runtime import Runtime, split_reference

def test_compound_assignment_accumulates(runtime:Runtime) -> None:
    runtime.evaluate_expression("affection = 0")
    assert runtime.get_variable("affection") == 0

    runtime.evaluate_expression("affection += 5")
    assert runtime.get_variable("affection") == 5

    runtime.evaluate_expression("affection += 5")
    assert runtime.get_variable("affection") == 10

def test_compound_assignment_on_absent_variable(runtime:Runtime) -> None:
    runtime.evaluate_expression("score -= 3")
    assert runtime.get_variable("score") == -3

    runtime.evaluate_expression("bonus *= 4")
    assert runtime.get_variable("bonus") == 0

def test_compound_operators(runtime:Runtime) -> None:
    runtime.evaluate_expression("x = 10")
    runtime.evaluate_expression("x /= 4")
    assert runtime.get_variable("x") == 2.5

    runtime.evaluate_expression("x *= 2")
    assert runtime.get_variable("x") == 5

    runtime.evaluate_expression("x-=1")
    assert runtime.get_variable("x") == 4

def test_string_concatenation(runtime:Runtime) -> None:
    runtime.evaluate_expression('greeting = "Hi"')
    runtime.evaluate_expression('greeting += " there"')
    assert runtime.get_variable("greeting") == "Hi there"

    runtime.evaluate_expression("greeting += 1")
    assert runtime.get_variable("greeting") == "Hi there1"

def test_assignment_values(runtime:Runtime) -> None:
    runtime.register_character("MC", {"name": "Player"})

    runtime.evaluate_expression('name = "Alex"')
    runtime.evaluate_expression("nickname = 'Al'")
    runtime.evaluate_expression("met = true")
    runtime.evaluate_expression("lost = false")
    runtime.evaluate_expression("ratio = 0.5")
    runtime.evaluate_expression("copy = ratio")
    runtime.evaluate_expression("who = MC.name")
    runtime.evaluate_expression("stranger = Nobody.name")
    runtime.evaluate_expression("mood = happy")

    assert runtime.get_variable("name") == "Alex"
    assert runtime.get_variable("nickname") == "Al"
    assert runtime.get_variable("met") is True
    assert runtime.get_variable("lost") is False
    assert runtime.get_variable("ratio") == 0.5
    assert runtime.get_variable("copy") == 0.5
    assert runtime.get_variable("who") == "Player"
    assert runtime.get_variable("stranger") == "Nobody.name"
    assert runtime.get_variable("mood") == "happy"

def test_unknown_expression(runtime:Runtime, sink:RecordingSink) -> None:
    runtime.evaluate_expression("5 + 5")
    runtime.evaluate_expression("just words")

    assert len(runtime.variables) == 0
    assert sink.subjects(Category.UNKNOWN_EXPRESSION_OR_CONDITION) == ["5 + 5", "just words"]

@pytest.mark.parametrize("condition,expected", [
    ("a == 5", True),
    ("a != 4", True),
    ("a > 5", False),
    ("a >= 5", True),
    ("a < 5", False),
    ("a <= 5", True),
    ("a>=5", True),
    ('a == "5"', True),
    ("a > 4 && a < 6", True),
    ("a > 4 && a > 6", False),
    ("a > 6 || a < 2", False),
    ("a > 6 || a < 6", True),
])
def test_comparisons(runtime:Runtime, condition:str, expected:bool) -> None:
    runtime.set_variable("a", 5)
    assert runtime.evaluate_condition(condition) == expected

def test_and_with_undefined_operand(runtime:Runtime, sink:RecordingSink, monkeypatch:pytest.MonkeyPatch) -> None:
    runtime.set_variable("a", 1)

    looked_up:List[str] = []
    get_variable = runtime.get_variable
    def spy(name:str):
        looked_up.append(name)
        return get_variable(name)
    monkeypatch.setattr(runtime, "get_variable", spy)

    assert runtime.evaluate_condition("a > 0 && b > 0") is False
    assert looked_up == ["a", "b"]
    assert sink.subjects(Category.MISSING_REFERENCE) == ["b"]

def test_and_splits_before_or(runtime:Runtime) -> None:
    runtime.set_variable("a", 1)
    # read as (a > 0 || b > 0) && c > 0
    assert runtime.evaluate_condition("a > 0 || b > 0 && c > 0") is False

    runtime.set_variable("c", 1)
    assert runtime.evaluate_condition("a > 0 || b > 0 && c > 0") is True

def test_cross_type_comparison(runtime:Runtime) -> None:
    runtime.evaluate_expression('count = "5"')
    assert runtime.get_variable("count") == "5"
    assert runtime.evaluate_condition("count == 5")
    assert runtime.evaluate_condition("count > 4")

    runtime.evaluate_expression("flag = true")
    assert runtime.evaluate_condition("flag == true")
    assert runtime.evaluate_condition("flag == 1")

def test_character_attribute_conditions(runtime:Runtime, sink:RecordingSink) -> None:
    runtime.register_character("MC", {"name": "Player", "age": "17"})

    assert runtime.evaluate_condition("MC.name == Player")
    assert runtime.evaluate_condition('MC.name == "Player"')
    assert runtime.evaluate_condition("MC.age > 16")
    assert not runtime.evaluate_condition("MC.height > 1")
    assert not runtime.evaluate_condition("Nobody.name == Player")

    assert sink.subjects(Category.MISSING_REFERENCE) == ["MC.height", "Nobody.name"]

def test_unknown_condition(runtime:Runtime, sink:RecordingSink) -> None:
    assert runtime.evaluate_condition("hasKey") is False
    assert sink.subjects(Category.UNKNOWN_EXPRESSION_OR_CONDITION) == ["hasKey"]

def test_characters(runtime:Runtime) -> None:
    assert runtime.get_character("MC") is None
    assert runtime.get_character_attribute("MC", "name") is None

    runtime.register_character("MC", {"name": "Player"})
    assert runtime.get_character("MC") == {"name": "Player"}
    assert runtime.get_character_attribute("MC", "color") is None

    runtime.register_character("MC", {"name": "Other", "color": "red"})
    assert runtime.get_character_attribute("MC", "name") == "Other"
    assert runtime.get_character_attribute("MC", "color") == "red"
    assert "MC" in runtime.characters

def test_split_reference() -> None:
    assert split_reference("MC.name") == ("MC", "name")

def test_navigation(runtime:Runtime) -> None:
    assert runtime.current_label == "Start"
    assert runtime.current_node_index == 0

    runtime.next_node()
    runtime.next_node()
    assert runtime.current_node_index == 2

    # labels are not checked until something tries to run them
    runtime.jump("Nowhere")
    assert runtime.current_label == "Nowhere"
    assert runtime.current_node_index == 0

def test_start_label_override() -> None:
    runtime = Runtime(start_label="Prologue")
    assert runtime.current_label == "Prologue"
    runtime.jump("Elsewhere")
    runtime.reset()
    assert runtime.current_label == "Prologue"

def test_reset_keeps_characters(runtime:Runtime) -> None:
    runtime.register_character("MC", {"name": "Player"})
    runtime.set_variable("a", 1)
    runtime.jump("Elsewhere")
    runtime.next_node()

    runtime.reset()

    assert runtime.current_label == "Start"
    assert runtime.current_node_index == 0
    assert not runtime.has_variable("a")
    assert runtime.get_character_attribute("MC", "name") == "Player"

def test_get_state(runtime:Runtime) -> None:
    runtime.set_variable("a", 1)
    runtime.set_variable("name", "Alex")
    runtime.next_node()

    assert json.loads(runtime.get_state()) == {
        "label": "Start",
        "node": 1,
        "variables": {"a": 1, "name": "Alex"},
    }

def test_repeated_squaring_overflows_to_infinity(runtime:Runtime) -> None:
    runtime.evaluate_expression("x = 2")
    for _ in range(11):
        runtime.evaluate_expression("x *= x")
    assert runtime.get_variable("x") == math.inf

    runtime.evaluate_expression("x /= 3")
    assert runtime.get_variable("x") == math.inf

    runtime.evaluate_expression("x -= 0.5")
    assert runtime.get_variable("x") == math.inf
    assert runtime.evaluate_condition("x > 1.5")

def test_huge_literal(runtime:Runtime) -> None:
    runtime.evaluate_expression("x = " + "9" * 400)
    assert runtime.get_variable("x") == math.inf
    assert runtime.evaluate_condition("x > 1.5")
    assert not runtime.evaluate_condition("x < " + "9" * 400)

def test_non_ascii_digits_stay_text(runtime:Runtime) -> None:
    runtime.evaluate_expression("x = ١٢")
    assert runtime.get_variable("x") == "١٢"
    assert not runtime.evaluate_condition("x == 12")
