""" Token and syntax tree definitions shared by the lexer, parser and
interpreters.

Everything here is immutable once built. A ScriptAST is produced once per
load and may be shared between any number of independent runtimes.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional, Mapping, Tuple


class TokenType(enum.Enum):
    LABEL = enum.auto()     # == Name ==
    DIALOGUE = enum.auto()  # Name "Text"
    JUMP = enum.auto()      # -> Label
    CHOICE = enum.auto()    # * Text -> Label, * [cond] Text -> Label
    COMMAND = enum.auto()   # scene, show, play, etc.
    VARIABLE = enum.auto()  # ~ name = value
    CONDITION = enum.auto() # { condition }
    CHAR_DEF = enum.auto()  # @char Name
    CHAR_ATTR = enum.auto() # indented key: value under @char
    EOF = enum.auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    # structured extras, e.g. character/text for dialogue, command/args
    metadata: Mapping[str, str] = field(default_factory=dict)


class NodeType(enum.Enum):
    DIALOGUE = "Dialogue"
    VARIABLE = "Variable"
    COMMAND = "Command"
    CHOICE = "Choice"
    CONDITION = "Condition"
    JUMP = "Jump"
    CHARACTER_DEF = "CharacterDef"


@dataclass(frozen=True)
class Node:
    line: int

    @property
    def node_type(self) -> Optional[NodeType]:
        return None


@dataclass(frozen=True)
class DialogueNode(Node):
    character: str
    text: str

    @property
    def node_type(self) -> NodeType:
        return NodeType.DIALOGUE


@dataclass(frozen=True)
class VariableNode(Node):
    expression: str

    @property
    def node_type(self) -> NodeType:
        return NodeType.VARIABLE


@dataclass(frozen=True)
class CommandNode(Node):
    """ An opaque verb and argument string for the presentation layer. """
    command: str
    args: str

    @property
    def node_type(self) -> NodeType:
        return NodeType.COMMAND


@dataclass(frozen=True)
class ChoiceOption:
    text: str
    target: str
    # informational only, the interpreter never enforces it
    condition: Optional[str] = None


@dataclass(frozen=True)
class ChoiceNode(Node):
    choices: Tuple[ChoiceOption, ...]

    @property
    def node_type(self) -> NodeType:
        return NodeType.CHOICE


@dataclass(frozen=True)
class ConditionNode(Node):
    condition: str
    then_nodes: Tuple[Node, ...]

    @property
    def node_type(self) -> NodeType:
        return NodeType.CONDITION


@dataclass(frozen=True)
class JumpNode(Node):
    target: str

    @property
    def node_type(self) -> NodeType:
        return NodeType.JUMP


@dataclass(frozen=True)
class CharacterDefNode(Node):
    name: str
    attributes: Mapping[str, str]

    @property
    def node_type(self) -> NodeType:
        return NodeType.CHARACTER_DEF


# the node kinds surfaced to whoever drives the story
OBSERVABLE_NODES = (DialogueNode, CommandNode, ChoiceNode)

def is_observable(node:Node) -> bool:
    return isinstance(node, OBSERVABLE_NODES)


@dataclass(frozen=True)
class Label:
    name: str
    nodes: Tuple[Node, ...]


@dataclass(frozen=True)
class ScriptAST:
    labels: Mapping[str, Label]
    characters: Mapping[str, CharacterDefNode]
