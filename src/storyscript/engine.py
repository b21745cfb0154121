""" The full pipeline: script source to a playable story.

StoryEngine wires the lexer, parser, runtime and interpreters together and
knows how to acquire script text from a file or a URL. Acquisition is the
one place we raise: if we can't get the script there's no story to degrade
gracefully, so SourceAcquisitionError goes straight to the caller before any
story state is built.
"""

import logging
from typing import Optional, List

import requests # type: ignore

from storyscript import config, parser
from storyscript.diagnostics import Reporter, DiagnosticSink
from storyscript.interpreter import StepInterpreter, Interpreter
from storyscript.nodes import Node, ScriptAST
from storyscript.runtime import Runtime

logger = logging.getLogger(__name__)


class SourceAcquisitionError(Exception):
    pass


def is_url(source:str) -> bool:
    return source.startswith("http://") or source.startswith("https://")

def read_script_file(path:str, encoding:Optional[str]=None) -> str:
    if encoding is None:
        encoding = config.Settings.Engine.ENCODING
    try:
        with open(path, "rt", encoding=encoding) as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceAcquisitionError(f'could not read script {path}: {e}') from e

    logger.info(f'loaded {path}: {len(text.splitlines())} lines')
    return text

def fetch_script(url:str, timeout:Optional[float]=None, encoding:Optional[str]=None) -> str:
    if timeout is None:
        timeout = config.Settings.Engine.FETCH_TIMEOUT
    if encoding is None:
        encoding = config.Settings.Engine.ENCODING
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SourceAcquisitionError(f'failed to load script from {url}: {e}') from e

    resp.encoding = encoding
    text = resp.text
    logger.info(f'loaded {url}: {len(text.splitlines())} lines')
    return text


class StoryEngine(Reporter):
    def __init__(self, sink:Optional[DiagnosticSink]=None, start_label:Optional[str]=None) -> None:
        super().__init__(sink=sink)
        self.runtime = Runtime(start_label=start_label, sink=self.sink)
        self.ast:Optional[ScriptAST] = None
        self.interpreter:Optional[Interpreter] = None
        self.stepper:Optional[StepInterpreter] = None

    def load_script(self, text:str) -> ScriptAST:
        """ Parses script text and gets interpreters ready to run it. """
        self.ast = parser.loads(text, sink=self.sink)
        self.logger.info(f'parsed {len(self.ast.labels)} labels, {len(self.ast.characters)} characters')

        self.interpreter = Interpreter(self.runtime, self.ast, sink=self.sink)
        self.stepper = StepInterpreter(self.runtime, self.ast, sink=self.sink)
        return self.ast

    def load_script_from_file(self, path:str) -> ScriptAST:
        return self.load_script(read_script_file(path))

    def load_script_from_url(self, url:str) -> ScriptAST:
        return self.load_script(fetch_script(url))

    def load(self, source:str) -> ScriptAST:
        """ loads from a URL if source looks like one, otherwise a file """
        if is_url(source):
            return self.load_script_from_url(source)
        return self.load_script_from_file(source)

    def run(self) -> List[Node]:
        if self.interpreter is None:
            self.logger.error("no script loaded, call load_script() first")
            return []
        return self.interpreter.run()

    def load_and_run(self, text:str) -> List[Node]:
        self.load_script(text)
        return self.run()

    # interactive control, delegated to the step interpreter

    def start(self) -> None:
        if self.stepper is None:
            self.logger.error("no script loaded, call load_script() first")
            return
        self.stepper.start()

    def step(self) -> Optional[Node]:
        if self.stepper is None:
            return None
        return self.stepper.step()

    def select_choice(self, target:str) -> None:
        if self.stepper is None:
            self.logger.error("no script loaded, call load_script() first")
            return
        self.stepper.select_choice(target)

    def stop(self) -> None:
        if self.stepper is not None:
            self.stepper.stop()

    def is_story_running(self) -> bool:
        return self.stepper is not None and self.stepper.is_story_running()

    def new_session(self) -> StepInterpreter:
        """ An independent playthrough of the loaded script.

        The session gets its own runtime and shares only the (immutable)
        AST with this engine. """
        if self.ast is None:
            raise ValueError("no script loaded")
        runtime = Runtime(start_label=self.runtime.start_label, sink=self.sink)
        return StepInterpreter(runtime, self.ast, sink=self.sink)

    def get_ast(self) -> Optional[ScriptAST]:
        return self.ast

    def get_runtime(self) -> Runtime:
        return self.runtime

    def get_state(self) -> str:
        return self.runtime.get_state()

    def reset(self) -> None:
        """ forgets the loaded script and all story state """
        self.runtime.reset()
        self.ast = None
        self.interpreter = None
        self.stepper = None
        self.logger.debug("reset complete")
