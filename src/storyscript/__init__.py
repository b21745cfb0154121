""" storyscript: a small narrative scripting language

A story script is a list of labels, each an ordered list of lines:

    @char MC
        name: "Player"

    == Start ==
    scene school_hallway
    ~ affection = 0
    MC "Good morning!"
    * Wave -> Wave
    * [affection > 5] Hug -> Hug

Text goes through the lexer (tokens), the parser (an immutable ScriptAST)
and is then walked by an interpreter against a Runtime holding variables,
characters and the current position.

StepInterpreter is the interactive contract: each step() returns the next
observable node (dialogue, command or choice) and resolves variables,
conditions and jumps silently along the way. Callers answer choices with
select_choice(target). Interpreter runs a story to completion taking the
first option of every choice, which is handy for tracing.

Script content never causes exceptions. Bad lines, bad expressions and
missing labels are reported to a DiagnosticSink (by default, the logging
system) and the story carries on as best it can. The only hard failure is
not being able to acquire the script text in the first place.
"""

from .nodes import (
    Token, TokenType, Node, NodeType, Label, ScriptAST,
    DialogueNode, VariableNode, CommandNode, ChoiceNode, ChoiceOption,
    ConditionNode, JumpNode, CharacterDefNode,
)
from .diagnostics import Category, Diagnostic, DiagnosticSink, LoggingSink, RecordingSink
from .lexer import tokenize
from .parser import parse, loads
from .runtime import Runtime
from .interpreter import StepInterpreter, Interpreter, InterpreterState
from .engine import StoryEngine, SourceAcquisitionError
