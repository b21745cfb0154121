""" Story script parsing: tokens to a ScriptAST.

Straightforward one-token-lookahead recursive descent. The parser never
fails. Stray tokens are skipped, so malformed input just produces a smaller
tree. Jump and choice targets are left unresolved, the interpreters look them
up lazily.
"""

import types
import logging
from typing import Dict, List, Optional, Sequence

from storyscript.diagnostics import Reporter, Category, DiagnosticSink
from storyscript.lexer import tokenize
from storyscript.nodes import (
    Token, TokenType, Node, Label, ScriptAST,
    DialogueNode, VariableNode, CommandNode, ChoiceNode, ChoiceOption,
    ConditionNode, JumpNode, CharacterDefNode,
)

EOF_TOKEN = Token(TokenType.EOF, "", 0)

def ends_scope(node:Node) -> bool:
    """ Jumps and choices are terminal control transfers. Collecting the body
    of a condition stops right after one of these. """
    return isinstance(node, (JumpNode, ChoiceNode))

def strip_quotes(value:str) -> str:
    """ strips one layer of matching single or double quotes """
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


class Parser(Reporter):
    def __init__(self, tokens:Sequence[Token], sink:Optional[DiagnosticSink]=None) -> None:
        super().__init__(sink=sink)
        self.tokens = tokens
        self.current = 0

    def parse(self) -> ScriptAST:
        labels:Dict[str, Label] = {}
        characters:Dict[str, CharacterDefNode] = {}

        while not self.is_at_end():
            token = self.peek()

            if token.type == TokenType.LABEL:
                label = self.parse_label()
                if label.name in labels:
                    self.logger.debug(f'label {label.name} redefined on line {token.line}')
                labels[label.name] = label
            elif token.type == TokenType.CHAR_DEF:
                char = self.parse_character_def()
                characters[char.name] = char
            else:
                # anything outside a label has nowhere to go
                self.logger.debug(f'skipping {token.type.name} token outside of a label on line {token.line}')
                self.advance()

        self.logger.debug(f'parsed {len(labels)} labels and {len(characters)} characters')
        return ScriptAST(types.MappingProxyType(labels), types.MappingProxyType(characters))

    def parse_label(self) -> Label:
        token = self.advance()
        nodes:List[Node] = []

        while not self.is_at_end() and self.peek().type != TokenType.LABEL:
            node = self.parse_node()
            if node is not None:
                nodes.append(node)

        return Label(token.value, tuple(nodes))

    def parse_node(self) -> Optional[Node]:
        token = self.peek()
        meta = token.metadata or {}

        if token.type == TokenType.DIALOGUE:
            self.advance()
            return DialogueNode(line=token.line, character=meta.get("character", ""), text=meta.get("text", token.value))
        elif token.type == TokenType.VARIABLE:
            self.advance()
            return VariableNode(line=token.line, expression=meta.get("expression", token.value))
        elif token.type == TokenType.COMMAND:
            self.advance()
            return CommandNode(line=token.line, command=meta.get("command", token.value), args=meta.get("args", ""))
        elif token.type == TokenType.JUMP:
            self.advance()
            return JumpNode(line=token.line, target=token.value)
        elif token.type == TokenType.CHOICE:
            return self.parse_choice()
        elif token.type == TokenType.CONDITION:
            return self.parse_condition()
        else:
            # e.g. a character attribute that wandered into a label
            self.report(
                Category.STRUCTURAL_PARSE_ANOMALY,
                f'stray {token.type.name} token "{token.value}"',
                line=token.line,
                level=logging.DEBUG,
                subject=token.value,
            )
            self.advance()
            return None

    def parse_choice(self) -> ChoiceNode:
        """ Folds a run of consecutive choice tokens into a single node. """
        first = self.peek()
        choices:List[ChoiceOption] = []

        while not self.is_at_end() and self.peek().type == TokenType.CHOICE:
            token = self.advance()
            meta = token.metadata or {}
            choices.append(ChoiceOption(
                meta.get("text", token.value),
                meta.get("target", ""),
                meta.get("condition"),
            ))

        return ChoiceNode(line=first.line, choices=tuple(choices))

    def parse_condition(self) -> ConditionNode:
        token = self.advance()
        then_nodes:List[Node] = []

        while not self.is_at_end() and self.peek().type not in (TokenType.CONDITION, TokenType.LABEL):
            node = self.parse_node()
            if node is None:
                continue
            then_nodes.append(node)
            if ends_scope(node):
                break

        return ConditionNode(
            line=token.line,
            condition=(token.metadata or {}).get("condition", token.value),
            then_nodes=tuple(then_nodes),
        )

    def parse_character_def(self) -> CharacterDefNode:
        token = self.advance()
        attributes:Dict[str, str] = {}

        while not self.is_at_end() and self.peek().type == TokenType.CHAR_ATTR:
            attr = self.advance()
            attributes[attr.value] = strip_quotes((attr.metadata or {}).get("value", ""))

        return CharacterDefNode(line=token.line, name=token.value, attributes=types.MappingProxyType(attributes))

    def peek(self) -> Token:
        if self.current >= len(self.tokens):
            return EOF_TOKEN
        return self.tokens[self.current]

    def advance(self) -> Token:
        token = self.peek()
        self.current += 1
        return token

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF


def parse(tokens:Sequence[Token], sink:Optional[DiagnosticSink]=None) -> ScriptAST:
    return Parser(tokens, sink=sink).parse()

def loads(text:str, sink:Optional[DiagnosticSink]=None) -> ScriptAST:
    """
    Loads a story script from a string.

    Parameters
    ----------
    text : str
        story script source
    sink : DiagnosticSink, optional
        where lexer and parser diagnostics go, logged if not provided

    Returns
    -------
    out : ScriptAST
        the parsed script
    """
    return parse(tokenize(text, sink=sink), sink=sink)
