import pytest

from storyscript import config, parser
from storyscript.diagnostics import RecordingSink
from storyscript.interpreter import StepInterpreter
from storyscript.nodes import ScriptAST
from storyscript.runtime import Runtime
from . import DEMO_SCRIPT

@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()

@pytest.fixture
def runtime(sink:RecordingSink) -> Runtime:
    return Runtime(sink=sink)

@pytest.fixture
def demo_ast(sink:RecordingSink) -> ScriptAST:
    return parser.loads(DEMO_SCRIPT, sink=sink)

@pytest.fixture
def stepper(runtime:Runtime, demo_ast:ScriptAST) -> StepInterpreter:
    return StepInterpreter(runtime, demo_ast)

@pytest.fixture
def restore_config():
    yield config.Settings
    # undo anything a test loaded on top of the built-in config
    config.load_config()
