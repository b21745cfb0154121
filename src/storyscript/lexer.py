""" Story script tokenizer.

Story scripts are line oriented. Each physical line is classified on its own
given a small amount of carried state: whether we're inside a character
definition block, a block comment or a multi-line piece of dialogue.
scan_line is a pure function from (line, state) to (token, next state) and
tokenize just threads the state through every line of the input.

Lines we don't recognize are dropped with a diagnostic. The lexer never
aborts.
"""

import re
import enum
import functools
from dataclasses import dataclass, replace
from typing import List, Optional, NamedTuple, Sequence, Tuple

from storyscript import config
from storyscript.diagnostics import Reporter, Category, DiagnosticSink
from storyscript.nodes import Token, TokenType

# \w and \s match ASCII only, identifiers are plain ASCII words

# == LabelName ==
LABEL_RE = re.compile(r'^==\s*(.+?)\s*==$', re.ASCII)
# Sayori "Hello!"
DIALOGUE_RE = re.compile(r'^(\w+)\s+"(.+)"$', re.ASCII)
# Sayori "Hello, this goes on
#         for a while"
DIALOGUE_START_RE = re.compile(r'^(\w+)\s+"(.*)$', re.ASCII)
# -> LabelName
JUMP_RE = re.compile(r'^->\s*(\w+)$', re.ASCII)
# * Choice Text -> LabelName
CHOICE_RE = re.compile(r'^\*\s*(.+?)\s*->\s*(\w+)$', re.ASCII)
# * [affection > 5] Choice Text -> LabelName
CONDITIONAL_CHOICE_RE = re.compile(r'^\*\s*\[(.+?)\]\s*(.+?)\s*->\s*(\w+)$', re.ASCII)
# ~ affection += 10
VARIABLE_RE = re.compile(r'^~\s*(.+)$', re.ASCII)
# { affection > 10 }
CONDITION_RE = re.compile(r'^\{\s*(.+?)\s*\}$', re.ASCII)
# @char MC
CHAR_DEF_RE = re.compile(r'^@char\s+(\w+)$', re.ASCII)
#     color: "#4A90E2"
CHAR_ATTR_RE = re.compile(r'^(\w+):\s*(.+)$', re.ASCII)

DEFAULT_COMMAND_VERBS = ("scene", "show", "hide", "play", "stop", "pause", "wait", "clear", "shake", "flash")

@functools.lru_cache(maxsize=8)
def command_pattern(verbs:Tuple[str, ...]) -> "re.Pattern[str]":
    return re.compile(r'^(' + "|".join(re.escape(v) for v in verbs) + r')\s*(.*)$', re.ASCII)


class ScanMode(enum.Enum):
    NORMAL = enum.auto()
    CHARACTER_DEFINITION = enum.auto()
    MULTILINE_COMMENT = enum.auto()
    MULTILINE_DIALOGUE = enum.auto()


@dataclass(frozen=True)
class PendingDialogue:
    character: str
    text: str
    line: int


@dataclass(frozen=True)
class ScanState:
    """ What the scanner carries from one line to the next.

    The three parts are independent, e.g. a character definition header
    inside a block comment still opens a character block without closing the
    comment.
    """

    character: Optional[str] = None
    in_comment: bool = False
    dialogue: Optional[PendingDialogue] = None

    @property
    def mode(self) -> ScanMode:
        if self.dialogue is not None:
            return ScanMode.MULTILINE_DIALOGUE
        elif self.in_comment:
            return ScanMode.MULTILINE_COMMENT
        elif self.character is not None:
            return ScanMode.CHARACTER_DEFINITION
        else:
            return ScanMode.NORMAL


INITIAL_STATE = ScanState()


class ScanResult(NamedTuple):
    token: Optional[Token]
    state: ScanState
    # true if the line had content but matched nothing
    unmatched: bool = False


def _is_indented(raw_line:str) -> bool:
    return raw_line.startswith(" ") or raw_line.startswith("\t")

def match_line(line:str, line_number:int, command_verbs:Sequence[str]=DEFAULT_COMMAND_VERBS) -> Optional[Token]:
    """ Matches a single trimmed line against the ordinary statement forms. """

    m = LABEL_RE.match(line)
    if m:
        return Token(TokenType.LABEL, m.group(1), line_number)

    m = DIALOGUE_RE.match(line)
    if m:
        return Token(TokenType.DIALOGUE, m.group(2), line_number, {"character": m.group(1), "text": m.group(2)})

    m = JUMP_RE.match(line)
    if m:
        return Token(TokenType.JUMP, m.group(1), line_number)

    # conditional choices before plain ones, the plain pattern would happily
    # swallow the [condition] as part of the text
    m = CONDITIONAL_CHOICE_RE.match(line)
    if m:
        return Token(TokenType.CHOICE, m.group(2), line_number, {"condition": m.group(1), "text": m.group(2), "target": m.group(3)})

    m = CHOICE_RE.match(line)
    if m:
        return Token(TokenType.CHOICE, m.group(1), line_number, {"text": m.group(1), "target": m.group(2)})

    m = command_pattern(tuple(command_verbs)).match(line)
    if m:
        return Token(TokenType.COMMAND, m.group(1), line_number, {"command": m.group(1), "args": m.group(2)})

    m = VARIABLE_RE.match(line)
    if m:
        return Token(TokenType.VARIABLE, m.group(1), line_number, {"expression": m.group(1)})

    m = CONDITION_RE.match(line)
    if m:
        return Token(TokenType.CONDITION, m.group(1), line_number, {"condition": m.group(1)})

    return None

def scan_line(raw_line:str, line_number:int, state:ScanState, command_verbs:Sequence[str]=DEFAULT_COMMAND_VERBS) -> ScanResult:
    """ Classifies one physical line of script.

    Parameters
    ----------
    raw_line : str
        the line as it appears in the source, indentation intact
    line_number : int
        1-based line number, attached to any token produced
    state : ScanState
        carried state from the previous line
    command_verbs : sequence of str
        verbs recognized as commands

    Returns
    -------
    out : ScanResult
        the token for this line (if any) and the state for the next line
    """

    line = raw_line.strip()

    m = CHAR_DEF_RE.match(line)
    if m:
        return ScanResult(Token(TokenType.CHAR_DEF, m.group(1), line_number), replace(state, character=m.group(1)))

    if state.character is not None:
        if _is_indented(raw_line):
            if not line:
                return ScanResult(None, state)
            m = CHAR_ATTR_RE.match(line)
            if m:
                return ScanResult(
                    Token(TokenType.CHAR_ATTR, m.group(1), line_number, {"character": state.character, "value": m.group(2).strip()}),
                    state,
                )
            # indented but not an attribute, treat it like any other line
        else:
            state = replace(state, character=None)

    # block comments are recognized a physical line at a time only
    if line.startswith("/*"):
        return ScanResult(None, replace(state, in_comment=True))
    if line.endswith("*/"):
        return ScanResult(None, replace(state, in_comment=False))
    if state.in_comment:
        return ScanResult(None, state)

    if state.dialogue is not None:
        pending = state.dialogue
        if line.endswith('"'):
            text = (pending.text + "\n" + line[:-1]).strip()
            return ScanResult(
                Token(TokenType.DIALOGUE, text, pending.line, {"character": pending.character, "text": text}),
                replace(state, dialogue=None),
            )
        return ScanResult(None, replace(state, dialogue=replace(pending, text=pending.text + "\n" + line)))

    m = DIALOGUE_START_RE.match(line)
    if m and not line.endswith('"'):
        return ScanResult(None, replace(state, dialogue=PendingDialogue(m.group(1), m.group(2), line_number)))

    if not line or line.startswith("//"):
        return ScanResult(None, state)

    token = match_line(line, line_number, command_verbs)
    return ScanResult(token, state, unmatched=token is None)


def split_lines(text:str) -> List[str]:
    return re.split(r'\r?\n', text)


class Lexer(Reporter):
    def __init__(self, sink:Optional[DiagnosticSink]=None, command_verbs:Optional[Sequence[str]]=None) -> None:
        super().__init__(sink=sink)
        if command_verbs is None:
            command_verbs = config.Settings.Lexer.COMMAND_VERBS
        self.command_verbs = tuple(command_verbs)

    def tokenize(self, text:str) -> List[Token]:
        """ Turns script text into tokens, always ending with a single EOF
        token whose line is the number of lines in the input. """

        lines = split_lines(text)
        tokens:List[Token] = []
        state = INITIAL_STATE

        for i, raw_line in enumerate(lines):
            line_number = i + 1
            token, state, unmatched = scan_line(raw_line, line_number, state, self.command_verbs)
            if token is not None:
                tokens.append(token)
            elif unmatched:
                self.report(
                    Category.STRUCTURAL_PARSE_ANOMALY,
                    f'unknown pattern "{raw_line.strip()}"',
                    line=line_number,
                    subject=raw_line.strip(),
                )

        if state.dialogue is not None:
            self.report(
                Category.STRUCTURAL_PARSE_ANOMALY,
                f'unterminated dialogue for {state.dialogue.character} dropped',
                line=state.dialogue.line,
                subject=state.dialogue.character,
            )

        tokens.append(Token(TokenType.EOF, "", len(lines)))
        self.logger.debug(f'{len(tokens)} tokens from {len(lines)} lines')

        return tokens


def tokenize(text:str, sink:Optional[DiagnosticSink]=None) -> List[Token]:
    return Lexer(sink=sink).tokenize(text)
