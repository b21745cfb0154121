""" Walking a ScriptAST.

StepInterpreter is the interactive, pull based interpreter: every call to
step() produces exactly one observable node (dialogue, command or choice)
and quietly resolves variables, conditions and jumps in between. Choices
block until the caller reports back with select_choice(). This is meant to
sit under a UI that renders one thing per user interaction.

The bodies of true conditions are run from an explicit execution stack of
(nodes, index) frames rather than being spliced into the label, so
conditions can nest arbitrarily and resume where they left off.

Interpreter is the eager variant, running a story to completion and always
taking the first option of any choice. It's useful for tracing and
debugging a script.
"""

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Iterator

from storyscript import config
from storyscript.diagnostics import Reporter, Category, DiagnosticSink
from storyscript.parser import ends_scope
from storyscript.runtime import Runtime
from storyscript.nodes import (
    Node, ScriptAST,
    DialogueNode, VariableNode, CommandNode, ChoiceNode, ConditionNode, JumpNode,
)


class InterpreterState(enum.Enum):
    NOT_STARTED = enum.auto()
    RUNNING = enum.auto()
    FINISHED = enum.auto()


@dataclass
class Frame:
    """ a partially executed condition body """
    nodes: Sequence[Node]
    index: int = 0


def advances_past_condition(node:ConditionNode) -> bool:
    """ Whether entering a true condition should move the enclosing cursor
    past it.

    Bodies ending in a jump or choice make their own transition and the
    cursor is moved when that happens. Anything else falls through to
    whatever follows the condition once the body is exhausted.
    """
    return not node.then_nodes or not ends_scope(node.then_nodes[-1])

def format_node(node:Node) -> str:
    if isinstance(node, DialogueNode):
        return f'[{node.character}] "{node.text}"'
    elif isinstance(node, CommandNode):
        return f'[CMD] {node.command} {node.args}'.rstrip()
    elif isinstance(node, ChoiceNode):
        lines = ["[CHOICE]"]
        for i, choice in enumerate(node.choices):
            condition_text = f' [if {choice.condition}]' if choice.condition else ""
            lines.append(f'  {i+1}. {choice.text}{condition_text} -> {choice.target}')
        return "\n".join(lines)
    elif node.node_type is not None:
        return f'[{node.node_type.value}]'
    else:
        return f'[{node.__class__.__name__}]'


class StepInterpreter(Reporter):
    def __init__(self, runtime:Runtime, ast:ScriptAST, sink:Optional[DiagnosticSink]=None, max_silent_steps:Optional[int]=None) -> None:
        super().__init__(sink=sink or runtime.sink)
        self.runtime = runtime
        self.ast = ast
        if max_silent_steps is None:
            max_silent_steps = config.Settings.Interpreter.MAX_SILENT_STEPS
        self.max_silent_steps:int = max_silent_steps

        self.state = InterpreterState.NOT_STARTED
        self.execution_stack:List[Frame] = []

    def get_ast(self) -> ScriptAST:
        return self.ast

    def is_story_running(self) -> bool:
        return self.state == InterpreterState.RUNNING

    def start(self) -> None:
        """ (Re)starts the story from the start label. """
        self.state = InterpreterState.RUNNING
        self.execution_stack.clear()
        self.runtime.jump(self.runtime.start_label)

        for name, character in self.ast.characters.items():
            self.runtime.register_character(name, character.attributes)

        self.logger.debug(f'started at label: {self.runtime.start_label}')

    def stop(self) -> None:
        self.state = InterpreterState.FINISHED
        self.logger.debug("stopped")

    def reset(self) -> None:
        self.state = InterpreterState.NOT_STARTED
        self.execution_stack.clear()
        self.runtime.reset()

    def jump(self, label:str) -> None:
        self.logger.debug(f'jumping to label: {label}')
        self.execution_stack.clear()
        self.runtime.jump(label)

    def select_choice(self, target:str) -> None:
        """ Answers the pending choice by jumping to target.

        Any option's condition is not checked here, the caller decides what
        is selectable. """

        self._discard_nested_scope()
        self.runtime.next_node()
        self.jump(target)

    def step(self) -> Optional[Node]:
        """ Runs until the next observable node and returns it.

        Returns None if the story is over (or was never started). Choices
        are returned again and again until select_choice is called.
        """

        if self.state == InterpreterState.NOT_STARTED:
            self.logger.warning("not running, call start() first")
            return None
        elif self.state == InterpreterState.FINISHED:
            return None

        for _ in range(self.max_silent_steps):
            node = self._current_node()
            if node is None:
                return None
            observed = self.execute_node(node)
            if observed is not None:
                return observed

        self.report(
            Category.RUNAWAY_EXECUTION,
            f'gave up after {self.max_silent_steps} nodes without anything to show in label {self.runtime.current_label}',
            level=logging.ERROR,
            subject=self.runtime.current_label,
        )
        self.state = InterpreterState.FINISHED
        return None

    def execute_node(self, node:Node) -> Optional[Node]:
        """ Executes a single node, returning it if it's observable. """

        if isinstance(node, (DialogueNode, CommandNode)):
            self._advance()
            return node
        elif isinstance(node, ChoiceNode):
            # the cursor stays put until a choice is selected
            return node
        elif isinstance(node, VariableNode):
            self.runtime.evaluate_expression(node.expression)
            self._advance()
            return None
        elif isinstance(node, ConditionNode):
            self._enter_condition(node)
            return None
        elif isinstance(node, JumpNode):
            if self._discard_nested_scope():
                # move past the condition that held this jump
                self.runtime.next_node()
            self.jump(node.target)
            return None
        else:
            self.report(
                Category.UNKNOWN_NODE,
                f'unknown node type {node.__class__.__name__}',
                line=node.line,
                subject=node.__class__.__name__,
            )
            self._advance()
            return None

    def _enter_condition(self, node:ConditionNode) -> None:
        condition_met = self.runtime.evaluate_condition(node.condition)
        self.logger.debug(f'condition: {node.condition} = {condition_met}')

        if condition_met and node.then_nodes:
            if advances_past_condition(node):
                self._advance()
            self.execution_stack.append(Frame(node.then_nodes))
        else:
            self._advance()

    def _current_node(self) -> Optional[Node]:
        """ the next node due, finishing the story if there isn't one """

        while self.execution_stack:
            frame = self.execution_stack[-1]
            if frame.index < len(frame.nodes):
                return frame.nodes[frame.index]
            # done with this body, carry on in the enclosing scope
            self.execution_stack.pop()

        label_name = self.runtime.current_label
        label = self.ast.labels.get(label_name)
        if label is None:
            self.report(
                Category.MISSING_REFERENCE,
                f'label not found: {label_name}',
                level=logging.ERROR,
                subject=label_name,
            )
            self.state = InterpreterState.FINISHED
            return None

        if self.runtime.current_node_index >= len(label.nodes):
            self.logger.debug(f'end of label: {label_name}')
            self.state = InterpreterState.FINISHED
            return None

        return label.nodes[self.runtime.current_node_index]

    def _advance(self) -> None:
        if self.execution_stack:
            self.execution_stack[-1].index += 1
        else:
            self.runtime.next_node()

    def _discard_nested_scope(self) -> bool:
        if self.execution_stack:
            self.execution_stack.clear()
            return True
        return False


class Interpreter(Reporter):
    """ Runs a story start to finish, always picking the first option. """

    def __init__(self, runtime:Runtime, ast:ScriptAST, sink:Optional[DiagnosticSink]=None, max_trace_nodes:Optional[int]=None, max_silent_steps:Optional[int]=None) -> None:
        super().__init__(sink=sink or runtime.sink)
        self.runtime = runtime
        self.ast = ast
        if max_trace_nodes is None:
            max_trace_nodes = config.Settings.Interpreter.MAX_TRACE_NODES
        self.max_trace_nodes:int = max_trace_nodes
        self.max_silent_steps = max_silent_steps

    def iter_run(self, label:Optional[str]=None) -> Iterator[Node]:
        stepper = StepInterpreter(self.runtime, self.ast, sink=self.sink, max_silent_steps=self.max_silent_steps)
        stepper.start()
        if label is not None:
            stepper.jump(label)

        for _ in range(self.max_trace_nodes):
            node = stepper.step()
            if node is None:
                return

            self.logger.info(format_node(node))
            yield node

            if isinstance(node, ChoiceNode):
                if not node.choices:
                    self.report(
                        Category.STRUCTURAL_PARSE_ANOMALY,
                        "choice without any options",
                        line=node.line,
                    )
                    stepper.stop()
                    return
                stepper.select_choice(node.choices[0].target)

        self.report(
            Category.RUNAWAY_EXECUTION,
            f'gave up after {self.max_trace_nodes} observable nodes',
            level=logging.ERROR,
            subject=self.runtime.current_label,
        )
        stepper.stop()

    def run(self, label:Optional[str]=None) -> List[Node]:
        """ Runs the story (from label, if given) and returns everything it
        showed along the way. """
        return list(self.iter_run(label))
